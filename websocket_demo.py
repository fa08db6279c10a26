#!/usr/bin/env python3
"""
Demo script streaming a pipeline run's events over the WebSocket endpoint.

Start the server first: python -m flowchain.main
"""

import asyncio
import websockets
import json
import requests

BASE_URL = "http://localhost:8000/api/v1"
WS_URL = "ws://localhost:8000/api/v1"

EVENT_ICONS = {
    "executor_invoked": "🔄",
    "executor_completed": "✅",
    "executor_failed": "❌",
    "workflow_output": "🎉",
    "workflow_error": "💥",
    "workflow_cancelled": "🛑",
}
TERMINAL_EVENTS = {"workflow_output", "workflow_error", "workflow_cancelled"}


def create_pipeline():
    """Create an uppercase -> reverse -> strip pipeline via the REST API"""
    response = requests.post(f"{BASE_URL}/pipeline/create", json={
        "name": "websocket_demo_pipeline",
        "nodes": [
            {"id": "shout", "transform": "uppercase"},
            {"id": "flip", "transform": "reverse"},
            {"id": "tidy", "transform": "strip"}
        ],
        "edges": [["shout", "flip"], ["flip", "tidy"]],
        "output": "tidy"
    })
    if response.status_code != 200:
        print(f"❌ Failed to create pipeline: {response.text}")
        return None

    pipeline_id = response.json()["pipeline_id"]
    print(f"📊 Created pipeline: {pipeline_id}")
    return pipeline_id


def start_run(pipeline_id):
    response = requests.post(f"{BASE_URL}/pipeline/start", json={
        "pipeline_id": pipeline_id,
        "input": "  Hello, WebSocket!  "
    })
    if response.status_code != 200:
        print(f"❌ Failed to start run: {response.text}")
        return None

    run_id = response.json()["run_id"]
    print(f"🏃 Started run: {run_id}")
    return run_id


def print_event(event):
    icon = EVENT_ICONS.get(event["type"], "📝")
    subject = event.get("executor_id", "workflow")
    detail = event.get("data", event.get("error", event.get("reason", "")))
    print(f"{icon} {subject}: {event['type']} {detail if detail is not None else ''}")


async def websocket_client(run_id):
    """Connect to the WebSocket and print events until the run ends"""
    uri = f"{WS_URL}/ws/run/{run_id}"
    print(f"🔌 Connecting to WebSocket: {uri}")

    async with websockets.connect(uri) as websocket:
        while True:
            try:
                data = json.loads(await websocket.recv())
            except websockets.exceptions.ConnectionClosed:
                print("🔌 WebSocket connection closed")
                break

            if data["type"] in ("connected", "waiting"):
                print(f"🎯 {data['message']}")
            elif data["type"] == "status":
                print(f"📋 Run status: {data['status']}")
                if data["status"] in ("completed", "failed", "cancelled"):
                    break
            elif data["type"] == "event":
                print_event(data["event"])
                if data["event"]["type"] in TERMINAL_EVENTS:
                    break
            elif data["type"] == "error":
                print(f"❌ Error: {data['message']}")
                break


def main():
    try:
        requests.get("http://localhost:8000/health", timeout=2)
    except requests.exceptions.ConnectionError:
        print("❌ Server not running. Please start with: python -m flowchain.main")
        return

    pipeline_id = create_pipeline()
    if not pipeline_id:
        return
    run_id = start_run(pipeline_id)
    if run_id:
        asyncio.run(websocket_client(run_id))


if __name__ == "__main__":
    main()

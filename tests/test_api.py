"""
HTTP and WebSocket API tests
"""

import time

import pytest
from fastapi.testclient import TestClient

from flowchain.main import app, create_app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def create_pipeline(client, **overrides):
    body = {
        "name": "shout_and_flip",
        "nodes": [
            {"id": "shout", "transform": "uppercase"},
            {"id": "flip", "transform": "reverse"},
            {"id": "tidy", "transform": "strip"},
        ],
        "edges": [["shout", "flip"], ["flip", "tidy"]],
    }
    body.update(overrides)
    return client.post("/api/v1/pipeline/create", json=body)


class TestPipelineEndpoints:

    def test_root_and_health(self, client):
        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert health["pipelines"] >= 1
        assert client.get("/").json()["endpoints"]["get_run"] == "GET /api/v1/pipeline/run/{run_id}"

    def test_create_app_serves_same_routes(self):
        with TestClient(create_app()) as other:
            assert other.get("/health").json()["status"] == "healthy"
            assert "uppercase" in other.get("/api/v1/tools").json()["tools"]

    def test_create_and_run(self, client):
        response = create_pipeline(client)
        assert response.status_code == 200
        pipeline_id = response.json()["pipeline_id"]

        result = client.post("/api/v1/pipeline/run", json={"pipeline_id": pipeline_id, "input": " abc"})

        assert result.status_code == 200
        body = result.json()
        assert body["status"] == "completed"
        assert body["output"] == "CBA"
        assert len(body["events"]) == 7

        fetched = client.get(f"/api/v1/pipeline/run/{body['run_id']}").json()
        assert fetched["output"] == "CBA"

    def test_failed_run_reports_error(self, client):
        pipeline_id = create_pipeline(client).json()["pipeline_id"]

        body = client.post("/api/v1/pipeline/run", json={"pipeline_id": pipeline_id, "input": 5}).json()

        assert body["status"] == "failed"
        assert "shout" in body["error"]
        assert body["events"][-1]["type"] == "workflow_error"

    @pytest.mark.parametrize("overrides", [
        {"edges": [["shout", "flip"], ["flip", "tidy"], ["tidy", "shout"]]},
        {"edges": [["shout", "missing"]]},
        {"nodes": [{"id": "shout", "transform": "shuffle"}], "edges": []},
        {"edges": [["shout", "flip"]]},
        {"nodes": [], "edges": []},
        {"output": "nowhere"},
    ])
    def test_invalid_pipelines_rejected(self, client, overrides):
        assert create_pipeline(client, **overrides).status_code == 400

    def test_repeated_node_id_rejected(self, client):
        before = len(client.get("/api/v1/pipelines").json()["pipelines"])
        response = create_pipeline(
            client,
            nodes=[{"id": "a", "transform": "uppercase"}, {"id": "a", "transform": "reverse"}],
            edges=[],
        )

        assert response.status_code == 400
        assert "'a'" in response.json()["detail"]
        assert len(client.get("/api/v1/pipelines").json()["pipelines"]) == before

    def test_unknown_ids(self, client):
        assert client.post("/api/v1/pipeline/run", json={"pipeline_id": "nope", "input": "x"}).status_code == 404
        assert client.get("/api/v1/pipeline/run/nope").status_code == 404
        assert client.post("/api/v1/pipeline/run/nope/cancel").status_code == 404

    def test_demo_text_pipeline(self, client):
        body = client.post("/api/v1/demo/text-pipeline").json()
        assert body["output"] == "!DLROW ,OLLEH"

    def test_listings(self, client):
        pipelines = client.get("/api/v1/pipelines").json()["pipelines"]
        assert pipelines[0]["start_node"] == "UpperCaseExecutor"
        assert "reverse" in client.get("/api/v1/tools").json()["tools"]
        assert "runs" in client.get("/api/v1/stats").json()

    def test_start_in_background(self, client):
        pipeline_id = create_pipeline(client).json()["pipeline_id"]
        run_id = client.post("/api/v1/pipeline/start", json={"pipeline_id": pipeline_id, "input": "xyz"}).json()["run_id"]

        body = {}
        for _ in range(100):
            body = client.get(f"/api/v1/pipeline/run/{run_id}").json()
            if body["status"] == "completed":
                break
            time.sleep(0.01)

        assert body["output"] == "ZYX"
        cancel = client.post(f"/api/v1/pipeline/run/{run_id}/cancel").json()
        assert cancel == {"run_id": run_id, "cancelled": False}


class TestWebSocket:

    def test_replays_finished_run(self, client):
        run_id = client.post("/api/v1/demo/text-pipeline", params={"text": "ab"}).json()["run_id"]

        with client.websocket_connect(f"/api/v1/ws/run/{run_id}") as websocket:
            assert websocket.receive_json()["type"] == "connected"
            events = [websocket.receive_json()["event"] for _ in range(5)]
            status = websocket.receive_json()

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

        assert events[-1] == {"type": "workflow_output", "data": "BA"}
        assert status["status"] == "completed"

    def test_unknown_run_waits(self, client):
        with client.websocket_connect("/api/v1/ws/run/not-started") as websocket:
            websocket.receive_json()
            assert websocket.receive_json()["type"] == "waiting"

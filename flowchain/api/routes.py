from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
import json
import logging

from flowchain.engine.engine import WorkflowEngine
from flowchain.engine.errors import BuildError
from flowchain.engine.graph import Graph, new_builder
from flowchain.engine.models import RunSummary
from flowchain.tools.registry import TransformRegistry
from flowchain.workflows.text_pipeline import create_text_pipeline, SAMPLE_TEXT

logger = logging.getLogger(__name__)

router = APIRouter()

# Global instances - initialized once when module loads
engine = WorkflowEngine()
tool_registry = TransformRegistry()

TEXT_PIPELINE_ID = engine.register_pipeline(create_text_pipeline(), "Uppercase then reverse")


# Request/Response models
class NodeSpec(BaseModel):
    id: str
    transform: str


class CreatePipelineRequest(BaseModel):
    name: str
    nodes: List[NodeSpec]
    edges: List[List[str]] = []  # [[source_id, target_id], ...]
    start_node: Optional[str] = None  # Defaults to the first node
    output: Optional[str] = None  # Defaults to the single sink


class CreatePipelineResponse(BaseModel):
    pipeline_id: str
    message: str


class RunPipelineRequest(BaseModel):
    pipeline_id: str
    input: Any = None


class StartPipelineResponse(BaseModel):
    run_id: str
    status: str


class CancelRunRequest(BaseModel):
    reason: Optional[str] = None


def build_pipeline(request: CreatePipelineRequest) -> Graph:
    """Turn a pipeline definition made of registered transforms into a Graph."""
    if not request.nodes:
        raise ValueError("Pipeline needs at least one node")

    executors = [tool_registry.create_executor(node.transform, node.id) for node in request.nodes]
    start_node = request.start_node or request.nodes[0].id
    start = next((executor for executor in executors if executor.id == start_node), None)
    if start is None:
        raise ValueError(f"Start node '{start_node}' is not defined")

    # A repeated id yields a second executor object, which add_node rejects
    builder = new_builder(start)
    for executor in executors:
        builder.add_node(executor)
    for edge in request.edges:
        if len(edge) != 2:
            raise ValueError(f"Edge must be [source, target], got {edge}")
        builder.add_edge(edge[0], edge[1])
    if request.output:
        builder.mark_output(request.output)
    return builder.build()


@router.post("/pipeline/create", response_model=CreatePipelineResponse)
async def create_pipeline(request: CreatePipelineRequest):
    """
    Create a pipeline from registered transforms.

    Build errors (unknown nodes, cycles, type mismatches...) become HTTP 400.
    """
    try:
        graph = build_pipeline(request)
    except (BuildError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    pipeline_id = engine.register_pipeline(graph, request.name)
    return CreatePipelineResponse(
        pipeline_id=pipeline_id,
        message=f"Pipeline '{request.name}' created successfully"
    )


@router.post("/pipeline/run", response_model=RunSummary)
async def run_pipeline(request: RunPipelineRequest):
    """Execute a pipeline to completion and return its outcome and events."""
    if engine.get_pipeline(request.pipeline_id) is None:
        raise HTTPException(status_code=404, detail="Pipeline not found")

    run = await engine.run_pipeline(request.pipeline_id, request.input)
    return engine.summarize(run)


@router.post("/pipeline/start", response_model=StartPipelineResponse)
async def start_pipeline(request: RunPipelineRequest):
    """Start a pipeline in the background; follow it over the WebSocket endpoint."""
    if engine.get_pipeline(request.pipeline_id) is None:
        raise HTTPException(status_code=404, detail="Pipeline not found")

    run = engine.start_pipeline(request.pipeline_id, request.input)
    return StartPipelineResponse(run_id=run.run_id, status=run.status.value)


@router.get("/pipeline/run/{run_id}", response_model=RunSummary)
async def get_run(run_id: str):
    """Current status, output and events of a run."""
    run = engine.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return engine.summarize(run)


@router.post("/pipeline/run/{run_id}/cancel")
async def cancel_run(run_id: str, request: Optional[CancelRunRequest] = None):
    """Request cancellation of a run that has not finished yet."""
    if engine.get_run(run_id) is None:
        raise HTTPException(status_code=404, detail="Run not found")

    reason = request.reason if request else None
    return {"run_id": run_id, "cancelled": engine.cancel_run(run_id, reason)}


@router.get("/pipelines")
async def list_pipelines():
    return {
        "pipelines": [
            {
                "pipeline_id": pipeline_id,
                "name": engine.pipeline_names[pipeline_id],
                "node_count": len(graph.executors),
                "edge_count": len(graph.edges),
                "start_node": graph.start_id,
                "output_node": graph.output_id,
            }
            for pipeline_id, graph in engine.pipelines.items()
        ]
    }


@router.get("/tools")
async def list_tools():
    return {"tools": tool_registry.list_tools()}


@router.get("/stats")
async def get_stats():
    return engine.get_stats()


@router.post("/demo/text-pipeline", response_model=RunSummary)
async def demo_text_pipeline(text: Optional[str] = None):
    """Run the built-in uppercase-then-reverse pipeline on sample or provided text."""
    run = await engine.run_pipeline(TEXT_PIPELINE_ID, text if text is not None else SAMPLE_TEXT)
    return engine.summarize(run)


@router.websocket("/ws/run/{run_id}")
async def websocket_run_events(websocket: WebSocket, run_id: str):
    """WebSocket endpoint streaming a run's events in real time"""
    await websocket.accept()
    engine.add_websocket_connection(run_id, websocket)

    try:
        await websocket.send_text(json.dumps({
            "type": "connected",
            "message": f"Connected to run {run_id}",
            "run_id": run_id
        }))

        run = engine.get_run(run_id)
        if run:
            # Replay what already happened, then live events follow via the engine
            for event in run.event_log:
                await websocket.send_text(json.dumps({
                    "type": "event", "run_id": run_id, "event": event.to_dict()
                }))
            await websocket.send_text(json.dumps({
                "type": "status",
                "run_id": run_id,
                "status": run.status.value,
                "current_executor": run.current_executor
            }))
        else:
            await websocket.send_text(json.dumps({
                "type": "waiting",
                "message": f"Waiting for run {run_id} to start..."
            }))

        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "message": "Invalid JSON"}))
                continue

            if message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
            elif message.get("type") == "cancel":
                cancelled = engine.cancel_run(run_id, message.get("reason"))
                await websocket.send_text(json.dumps({"type": "cancel", "cancelled": cancelled}))

    except WebSocketDisconnect:
        pass
    finally:
        engine.remove_websocket_connection(run_id, websocket)

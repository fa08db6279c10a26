from typing import Dict, Any, List, Optional
import asyncio
import json
import logging

from .cancellation import CancellationToken
from .graph import Graph
from .models import RunSummary, WorkflowEvent, jsonable
from .runner import Run

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Keeps built pipelines and their runs, and streams run events to WebSocket clients"""

    def __init__(self):
        """Initialize the engine with empty storage containers."""
        self.pipelines: Dict[str, Graph] = {}  # Built graphs by ID
        self.pipeline_names: Dict[str, str] = {}
        self.runs: Dict[str, Run] = {}  # Active/completed runs by ID
        self.run_pipelines: Dict[str, str] = {}
        self.websocket_connections: Dict[str, List] = {}  # WebSocket clients per run
        self._tasks: Dict[str, asyncio.Task] = {}

    def register_pipeline(self, graph: Graph, name: str = "") -> str:
        """Store a built graph and return its ID."""
        pipeline_id = f"pipeline_{len(self.pipelines) + 1}"
        self.pipelines[pipeline_id] = graph
        self.pipeline_names[pipeline_id] = name or pipeline_id
        return pipeline_id

    def get_pipeline(self, pipeline_id: str) -> Optional[Graph]:
        return self.pipelines.get(pipeline_id)

    def create_run(self, pipeline_id: str, input: Any,
                   token: Optional[CancellationToken] = None) -> Run:
        """
        Create (but do not start) a run of a stored pipeline.

        The engine's broadcaster is attached as an event sink so WebSocket
        clients see events as they are produced.
        """
        graph = self.get_pipeline(pipeline_id)
        if graph is None:
            raise KeyError(f"Pipeline {pipeline_id} not found")

        run = Run(graph, input, cancellation_token=token)
        run.sinks.append(lambda event: self._broadcast_event(run.run_id, event))
        self.runs[run.run_id] = run
        self.run_pipelines[run.run_id] = pipeline_id
        return run

    async def run_pipeline(self, pipeline_id: str, input: Any,
                           token: Optional[CancellationToken] = None) -> Run:
        """Execute a stored pipeline to completion."""
        run = self.create_run(pipeline_id, input, token)
        await run.execute()
        logger.info(f"Run {run.run_id} finished with status {run.status.value}")
        return run

    def start_pipeline(self, pipeline_id: str, input: Any,
                       token: Optional[CancellationToken] = None) -> Run:
        """Start a run in the background and return it immediately."""
        run = self.create_run(pipeline_id, input, token)
        task = asyncio.create_task(run.execute())
        self._tasks[run.run_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(run.run_id, None))
        return run

    def cancel_run(self, run_id: str, reason: Optional[str] = None) -> bool:
        run = self.get_run(run_id)
        if run is None or run.is_finished:
            return False
        run.cancel(reason or "Cancelled by request")
        logger.info(f"Cancellation requested for run {run_id}")
        return True

    def get_run(self, run_id: str) -> Optional[Run]:
        return self.runs.get(run_id)

    def summarize(self, run: Run) -> RunSummary:
        return RunSummary(
            run_id=run.run_id,
            pipeline_id=self.run_pipelines.get(run.run_id),
            status=run.status,
            output=jsonable(run.output),
            error=str(run.error) if run.error is not None else None,
            events=[event.to_dict() for event in run.event_log],
            created_at=run.created_at,
            completed_at=run.completed_at,
        )

    async def _broadcast_event(self, run_id: str, event: WorkflowEvent) -> None:
        """Send one event to every WebSocket watching this run, dropping dead clients."""
        if run_id not in self.websocket_connections:
            return

        payload = json.dumps({"type": "event", "run_id": run_id, "event": event.to_dict()})

        # Copy the list so disconnects can be removed while iterating
        connections = self.websocket_connections[run_id].copy()
        for websocket in connections:
            try:
                await websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"WebSocket disconnected for run {run_id}: {e}")
                self.remove_websocket_connection(run_id, websocket)

    def add_websocket_connection(self, run_id: str, websocket) -> None:
        self.websocket_connections.setdefault(run_id, []).append(websocket)
        logger.info(f"WebSocket connected for run {run_id}")

    def remove_websocket_connection(self, run_id: str, websocket) -> None:
        if run_id in self.websocket_connections and websocket in self.websocket_connections[run_id]:
            self.websocket_connections[run_id].remove(websocket)
            logger.info(f"WebSocket disconnected for run {run_id}")

            if not self.websocket_connections[run_id]:
                del self.websocket_connections[run_id]

    def get_stats(self) -> Dict[str, Any]:
        """Counts of stored objects, for monitoring."""
        return {
            "pipelines": len(self.pipelines),
            "runs": len(self.runs),
            "active_runs": len(self._tasks),
            "total_events": sum(len(run.event_log) for run in self.runs.values()),
            "active_websockets": sum(len(conns) for conns in self.websocket_connections.values()),
        }

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict
from enum import Enum
from datetime import datetime


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Edge(BaseModel):
    """Directed link from one executor's output to another's input"""
    model_config = ConfigDict(frozen=True)

    source_id: str
    target_id: str
    is_output_edge: bool = False


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def to_dict(self) -> Dict[str, Any]:
        payload = self.model_dump(exclude={"error", "data"})
        if "data" in type(self).model_fields:
            payload["data"] = jsonable(getattr(self, "data"))
        error = getattr(self, "error", None)
        if error is not None:
            payload["error"] = str(error)
            payload["error_type"] = type(error).__name__
        return payload


def jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return str(value)


class ExecutorInvokedEvent(_Event):
    type: Literal["executor_invoked"] = "executor_invoked"
    executor_id: str


class ExecutorCompletedEvent(_Event):
    type: Literal["executor_completed"] = "executor_completed"
    executor_id: str
    data: Any = None


class ExecutorFailedEvent(_Event):
    type: Literal["executor_failed"] = "executor_failed"
    executor_id: str
    error: BaseException


class WorkflowOutputEvent(_Event):
    type: Literal["workflow_output"] = "workflow_output"
    data: Any = None


class WorkflowErrorEvent(_Event):
    type: Literal["workflow_error"] = "workflow_error"
    error: BaseException


class WorkflowCancelledEvent(_Event):
    type: Literal["workflow_cancelled"] = "workflow_cancelled"
    reason: str


WorkflowEvent = Union[
    ExecutorInvokedEvent,
    ExecutorCompletedEvent,
    ExecutorFailedEvent,
    WorkflowOutputEvent,
    WorkflowErrorEvent,
    WorkflowCancelledEvent,
]

TERMINAL_EVENTS = (WorkflowOutputEvent, WorkflowErrorEvent, WorkflowCancelledEvent)


class RunSummary(BaseModel):
    """Serializable view of a run, used by the API"""
    run_id: str
    pipeline_id: Optional[str] = None
    status: RunStatus
    output: Any = None
    error: Optional[str] = None
    events: List[Dict[str, Any]] = []
    created_at: datetime
    completed_at: Optional[datetime] = None

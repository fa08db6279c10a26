from typing import Callable, List, Optional

from .models import (
    ExecutorCompletedEvent, ExecutorFailedEvent, ExecutorInvokedEvent,
    WorkflowCancelledEvent, WorkflowErrorEvent, WorkflowEvent, WorkflowOutputEvent,
)


class ConsoleReporter:
    """Event sink that renders each workflow event as human-readable lines."""

    def __init__(self, write: Optional[Callable[[str], None]] = None, show_data: bool = True):
        self.write = write or print
        self.show_data = show_data

    def __call__(self, event: WorkflowEvent) -> None:
        for line in self.format(event):
            self.write(line)

    def format(self, event: WorkflowEvent) -> List[str]:
        if isinstance(event, ExecutorInvokedEvent):
            return [f"🔵 [{event.executor_id}] Started"]
        if isinstance(event, ExecutorCompletedEvent):
            lines = [f"✅ [{event.executor_id}] Completed"]
            if self.show_data:
                lines.append(f"   Result: {event.data}")
            return lines
        if isinstance(event, ExecutorFailedEvent):
            return [f"❌ [{event.executor_id}] Failed", f"   Error: {event.error}"]
        if isinstance(event, WorkflowOutputEvent):
            return ["🎉 Workflow Completed Successfully!", f"   Final Output: {event.data}"]
        if isinstance(event, WorkflowErrorEvent):
            return ["💥 Workflow Failed!", f"   Error: {event.error}"]
        if isinstance(event, WorkflowCancelledEvent):
            return ["🛑 Workflow Cancelled", f"   Reason: {event.reason}"]
        return [f"ℹ️  Event: {type(event).__name__}"]

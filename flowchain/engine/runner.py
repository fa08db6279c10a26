from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union
from datetime import datetime
import asyncio
import inspect
import logging
import uuid

from .cancellation import CancellationToken
from .errors import Cancelled, ExecutionError, RunInProgressError
from .executor import Executor
from .graph import Graph
from .models import (
    ExecutorCompletedEvent, ExecutorFailedEvent, ExecutorInvokedEvent,
    RunStatus, WorkflowCancelledEvent, WorkflowErrorEvent, WorkflowEvent,
    WorkflowOutputEvent,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[WorkflowEvent], Union[None, Awaitable[None]]]


class Run:
    """
    One execution of a Graph against a single input.

    Nothing executes until events() is consumed. The first consumer drives
    the run; once it has finished, events() replays the same immutable log.
    """

    def __init__(
        self,
        graph: Graph,
        input: Any,
        cancellation_token: Optional[CancellationToken] = None,
        sinks: Optional[Iterable[EventSink]] = None,
        run_id: Optional[str] = None,
    ):
        self.run_id = run_id or str(uuid.uuid4())
        self.graph = graph
        self.input = input
        self.token = cancellation_token or CancellationToken()
        self.sinks: List[EventSink] = list(sinks or [])
        self.status = RunStatus.PENDING
        self.current_executor: Optional[str] = None
        self.output: Any = None
        self.error: Optional[BaseException] = None
        self.created_at = datetime.now()
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self._log: List[WorkflowEvent] = []
        self._seen = 0

    @property
    def event_log(self) -> Tuple[WorkflowEvent, ...]:
        return tuple(self._log)

    @property
    def new_events(self) -> List[WorkflowEvent]:
        """Events appended since the last time this property was read."""
        fresh = self._log[self._seen:]
        self._seen = len(self._log)
        return fresh

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)

    def cancel(self, reason: Optional[str] = None) -> None:
        self.token.cancel(reason)

    async def events(self) -> AsyncIterator[WorkflowEvent]:
        if self.status == RunStatus.RUNNING:
            raise RunInProgressError(f"Run {self.run_id} is already being consumed")

        if self.is_finished:
            for event in tuple(self._log):
                yield event
            return

        stream = self._drive()
        try:
            async for event in stream:
                yield event
        finally:
            await stream.aclose()
            if not self.is_finished:
                # Consumer stopped iterating before a terminal event
                self.token.cancel("Event consumer stopped before the run finished")
                self.error = Cancelled(self.token.reason)
                event = WorkflowCancelledEvent(reason=self.token.reason)
                self._log.append(event)
                self._finish(RunStatus.CANCELLED)
                await self._notify(event)

    async def execute(self) -> "Run":
        """Drain the event stream and return the finished run."""
        async for _ in self.events():
            pass
        return self

    async def _drive(self) -> AsyncIterator[WorkflowEvent]:
        graph = self.graph
        self.status = RunStatus.RUNNING
        self.started_at = datetime.now()

        # Partial inputs for executors still waiting on upstream results
        buffers: Dict[str, Dict[str, Any]] = {}

        for executor_id in graph.execution_order:
            if self.token.is_cancelled:
                yield await self._cancelled()
                return

            message = self._message_for(executor_id, buffers)
            self.current_executor = executor_id
            yield await self._emit(ExecutorInvokedEvent(executor_id=executor_id))

            try:
                result = await self._invoke(graph.get_executor(executor_id), message)
            except Cancelled:
                yield await self._cancelled()
                return
            except Exception as e:
                error = e if isinstance(e, ExecutionError) else ExecutionError(executor_id, e)
                self.error = error
                yield await self._emit(ExecutorFailedEvent(executor_id=executor_id, error=error))
                yield await self._emit(WorkflowErrorEvent(error=error))
                self._finish(RunStatus.FAILED)
                return

            yield await self._emit(ExecutorCompletedEvent(executor_id=executor_id, data=result))

            if executor_id == graph.output_id:
                self.output = result
                yield await self._emit(WorkflowOutputEvent(data=result))
                self._finish(RunStatus.COMPLETED)
                return

            for target_id in graph.downstream(executor_id):
                buffers.setdefault(target_id, {})[executor_id] = result

    def _message_for(self, executor_id: str, buffers: Dict[str, Dict[str, Any]]) -> Any:
        if executor_id == self.graph.start_id:
            return self.input
        upstream = self.graph.upstream(executor_id)
        received = buffers.pop(executor_id)
        if len(upstream) == 1:
            return received[upstream[0]]
        # Fan-in: every upstream result, keyed by source id in edge order
        return {source_id: received[source_id] for source_id in upstream}

    async def _invoke(self, executor: Executor, message: Any) -> Any:
        """Run the executor, racing it against the cancellation token."""
        task = asyncio.ensure_future(executor.handle(message, self.token))
        waiter = asyncio.ensure_future(self.token.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"[{self.run_id}] {executor.id} raised while being cancelled: {e}")
        raise Cancelled(self.token.reason)

    async def _cancelled(self) -> WorkflowEvent:
        self.error = Cancelled(self.token.reason)
        event = await self._emit(WorkflowCancelledEvent(reason=self.token.reason))
        self._finish(RunStatus.CANCELLED)
        return event

    async def _emit(self, event: WorkflowEvent) -> WorkflowEvent:
        self._log.append(event)
        await self._notify(event)
        return event

    async def _notify(self, event: WorkflowEvent) -> None:
        """Log the event and hand it to every sink."""
        logger.info(f"[{self.run_id}] {describe_event(event)}")

        for sink in self.sinks:
            try:
                result = sink(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Event sink failed for run {self.run_id}: {e}")

    def _finish(self, status: RunStatus) -> None:
        self.status = status
        self.current_executor = None
        self.completed_at = datetime.now()


def run(
    graph: Graph,
    input: Any,
    cancellation_token: Optional[CancellationToken] = None,
    sinks: Optional[Iterable[EventSink]] = None,
) -> Run:
    """Create a run of graph against input. Consume Run.events() to execute it."""
    return Run(graph, input, cancellation_token=cancellation_token, sinks=sinks)


def describe_event(event: WorkflowEvent) -> str:
    if isinstance(event, ExecutorInvokedEvent):
        return f"{event.executor_id}: invoked"
    if isinstance(event, ExecutorCompletedEvent):
        return f"{event.executor_id}: completed"
    if isinstance(event, ExecutorFailedEvent):
        return f"{event.executor_id}: failed: {event.error}"
    if isinstance(event, WorkflowOutputEvent):
        return "workflow: output produced"
    if isinstance(event, WorkflowErrorEvent):
        return f"workflow: failed: {event.error}"
    if isinstance(event, WorkflowCancelledEvent):
        return f"workflow: cancelled: {event.reason}"
    return type(event).__name__

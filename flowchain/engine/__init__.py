"""
Core pipeline engine components

Executors, graph construction, the run interpreter and its event model.
"""

from .cancellation import CancellationToken
from .engine import WorkflowEngine
from .executor import Executor, FunctionExecutor
from .graph import Graph, GraphBuilder, new_builder
from .reporter import ConsoleReporter
from .runner import Run, run
from .models import (
    Edge,
    RunStatus,
    RunSummary,
    WorkflowEvent,
    ExecutorInvokedEvent,
    ExecutorCompletedEvent,
    ExecutorFailedEvent,
    WorkflowOutputEvent,
    WorkflowErrorEvent,
    WorkflowCancelledEvent,
)

__all__ = [
    "CancellationToken",
    "WorkflowEngine",
    "Executor",
    "FunctionExecutor",
    "Graph",
    "GraphBuilder",
    "new_builder",
    "ConsoleReporter",
    "Run",
    "run",
    "Edge",
    "RunStatus",
    "RunSummary",
    "WorkflowEvent",
    "ExecutorInvokedEvent",
    "ExecutorCompletedEvent",
    "ExecutorFailedEvent",
    "WorkflowOutputEvent",
    "WorkflowErrorEvent",
    "WorkflowCancelledEvent",
]

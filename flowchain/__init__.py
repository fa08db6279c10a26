"""
Flowchain

Compose typed executors into a validated pipeline graph, run it and observe
each run through its lifecycle events.
"""

__version__ = "1.0.0"

from .engine.engine import WorkflowEngine
from .engine.executor import Executor, FunctionExecutor
from .engine.graph import Graph, GraphBuilder, new_builder
from .engine.runner import Run, run
from .engine.cancellation import CancellationToken
from .tools.registry import TransformRegistry

__all__ = [
    "WorkflowEngine",
    "Executor",
    "FunctionExecutor",
    "Graph",
    "GraphBuilder",
    "new_builder",
    "Run",
    "run",
    "CancellationToken",
    "TransformRegistry"
]

from typing import Any, List, Optional


class WorkflowError(Exception):
    """Base class for every error raised by the pipeline engine"""


class BuildError(WorkflowError):
    """Structural problem detected while assembling a graph"""


class UnknownNodeError(BuildError):
    def __init__(self, executor_id: str):
        self.executor_id = executor_id
        super().__init__(f"Executor '{executor_id}' is not registered with this builder")


class DuplicateNodeError(BuildError):
    def __init__(self, executor_id: str):
        self.executor_id = executor_id
        super().__init__(f"Another executor is already registered as '{executor_id}'")


class DuplicateEdgeError(BuildError):
    def __init__(self, source_id: str, target_id: str):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Edge {source_id} -> {target_id} already exists")


class TypeMismatchError(BuildError):
    def __init__(self, source_id: str, target_id: str, output_type: Any, input_type: Any):
        self.source_id = source_id
        self.target_id = target_id
        self.output_type = output_type
        self.input_type = input_type
        super().__init__(
            f"Cannot connect {source_id} -> {target_id}: "
            f"{type_name(output_type)} output does not match {type_name(input_type)} input"
        )


class CycleError(BuildError):
    def __init__(self, executor_id: str, cycle: Optional[List[str]] = None):
        self.executor_id = executor_id
        self.cycle = cycle or [executor_id]
        super().__init__(f"Graph has a cycle through '{executor_id}': {' -> '.join(self.cycle)}")


class NoStartNodeError(BuildError):
    pass


class MultipleStartNodesError(BuildError):
    def __init__(self, executor_ids: List[str]):
        self.executor_ids = executor_ids
        super().__init__(f"Graph has more than one start node: {', '.join(executor_ids)}")


class DuplicateOutputError(BuildError):
    def __init__(self, current_id: str, requested_id: str):
        self.current_id = current_id
        self.requested_id = requested_id
        super().__init__(
            f"Output already designated as '{current_id}', cannot also use '{requested_id}'"
        )


class AmbiguousOutputError(BuildError):
    def __init__(self, sink_ids: List[str]):
        self.sink_ids = sink_ids
        super().__init__(
            f"No output designated and graph has several sinks: {', '.join(sink_ids)}"
        )


class RunError(WorkflowError):
    """Failure that halts a single run"""


class ExecutionError(RunError):
    """An executor's capability failed. Wraps the underlying exception."""

    def __init__(self, executor_id: str, cause: BaseException):
        self.executor_id = executor_id
        self.cause = cause
        super().__init__(f"Error executing '{executor_id}': {cause}")
        self.__cause__ = cause


class UnsupportedOutputTypeError(RunError):
    def __init__(self, executor_id: str, output_type: Any):
        self.executor_id = executor_id
        self.output_type = output_type
        super().__init__(
            f"Cannot convert agent response to {type_name(output_type)} in '{executor_id}'. "
            "Provide an output converter."
        )


class Cancelled(RunError):
    def __init__(self, reason: str = "Run cancelled"):
        self.reason = reason
        super().__init__(reason)


class RunInProgressError(RunError):
    pass


def type_name(tag: Any) -> str:
    return getattr(tag, "__name__", None) or str(tag)

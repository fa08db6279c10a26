from typing import Any, Callable, Generic, TypeVar, get_origin
import asyncio
import inspect

from .cancellation import CancellationToken

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


class Executor(Generic[TInput, TOutput]):
    """
    A named, typed processing stage.

    Subclasses set input_type/output_type (or pass them to __init__) and
    implement handle(). The type tags are only used to validate edges when
    the graph is built.
    """

    input_type: Any = Any
    output_type: Any = Any

    def __init__(self, executor_id: str, input_type: Any = None, output_type: Any = None):
        if not isinstance(executor_id, str) or not executor_id.strip():
            raise ValueError("Executor id cannot be empty")
        self.id = executor_id
        if input_type is not None:
            self.input_type = input_type
        if output_type is not None:
            self.output_type = output_type

    async def handle(self, message: TInput, token: CancellationToken) -> TOutput:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class FunctionExecutor(Executor[TInput, TOutput]):
    """Executor backed by a plain sync or async callable taking one argument."""

    def __init__(
        self,
        executor_id: str,
        func: Callable[[Any], Any],
        input_type: Any = str,
        output_type: Any = str,
    ):
        super().__init__(executor_id, input_type, output_type)
        self.func = func

    async def handle(self, message: TInput, token: CancellationToken) -> TOutput:
        if asyncio.iscoroutinefunction(self.func):
            return await self.func(message)
        result = self.func(message)
        if inspect.isawaitable(result):
            result = await result
        return result


def types_compatible(output_type: Any, input_type: Any) -> bool:
    """Whether a value declared as output_type may be fed to input_type."""
    if output_type is Any or input_type is Any or input_type is object:
        return True
    if output_type == input_type:
        return True
    if isinstance(output_type, type) and isinstance(input_type, type):
        return issubclass(output_type, input_type)
    return False


def accepts_mapping(input_type: Any) -> bool:
    """Whether input_type can receive the {source_id: value} dict a fan-in node is given."""
    if input_type is Any or input_type is object:
        return True
    origin = get_origin(input_type) or input_type
    return isinstance(origin, type) and issubclass(dict, origin)

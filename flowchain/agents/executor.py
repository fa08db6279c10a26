from typing import Any, Callable, Optional

from flowchain.engine.cancellation import CancellationToken
from flowchain.engine.errors import Cancelled, ExecutionError, UnsupportedOutputTypeError
from flowchain.engine.executor import Executor, TInput, TOutput

from .agent import AgentResponse, Capability, extract_text


class AgentExecutor(Executor[TInput, TOutput]):
    """
    Executor that fronts an agent capability.

    input_converter turns the incoming message into a prompt (str() by
    default). output_converter turns the AgentResponse into the declared
    output; without one the output type must be str or AgentResponse.
    """

    def __init__(
        self,
        executor_id: str,
        agent: Capability,
        input_converter: Optional[Callable[[TInput], str]] = None,
        output_converter: Optional[Callable[[AgentResponse], TOutput]] = None,
        input_type: Any = Any,
        output_type: Any = str,
    ):
        super().__init__(executor_id, input_type, output_type)
        if agent is None:
            raise ValueError("agent cannot be None")
        if output_converter is None and self.output_type not in (str, AgentResponse):
            raise UnsupportedOutputTypeError(executor_id, self.output_type)
        self.agent = agent
        self.input_converter = input_converter
        self.output_converter = output_converter

    def to_prompt(self, message: TInput) -> str:
        if self.input_converter is not None:
            return self.input_converter(message)
        return "" if message is None else str(message)

    def from_response(self, response: AgentResponse) -> TOutput:
        if self.output_converter is not None:
            return self.output_converter(response)
        if self.output_type is str:
            return extract_text(response)
        return response

    async def handle(self, message: TInput, token: CancellationToken) -> TOutput:
        try:
            prompt = self.to_prompt(message)
            response = await self.agent.invoke(prompt, token)
            return self.from_response(response)
        except (Cancelled, ExecutionError):
            raise
        except Exception as e:
            raise ExecutionError(self.id, e) from e

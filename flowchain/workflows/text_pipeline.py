from flowchain.engine.cancellation import CancellationToken
from flowchain.engine.executor import Executor
from flowchain.engine.graph import Graph, new_builder


class UpperCaseExecutor(Executor[str, str]):
    """First step: converts input text to uppercase."""

    input_type = str
    output_type = str

    def __init__(self):
        super().__init__("UpperCaseExecutor")

    async def handle(self, message: str, token: CancellationToken) -> str:
        return message.upper()


class ReverseTextExecutor(Executor[str, str]):
    """Second step: reverses the text."""

    input_type = str
    output_type = str

    def __init__(self):
        super().__init__("ReverseTextExecutor")

    async def handle(self, message: str, token: CancellationToken) -> str:
        return message[::-1]


def create_text_pipeline() -> Graph:
    """Uppercase the input, then reverse it. Output comes from the reverse step."""
    uppercase = UpperCaseExecutor()
    reverse = ReverseTextExecutor()

    builder = new_builder(uppercase)
    builder.add_edge(uppercase, reverse).mark_output(reverse)
    return builder.build()


SAMPLE_TEXT = "Hello, World!"

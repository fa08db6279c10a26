from typing import Any, Dict, List, Optional, Protocol
from pydantic import BaseModel
import logging

from flowchain.engine.cancellation import CancellationToken
from flowchain.engine.errors import Cancelled

logger = logging.getLogger(__name__)


class AgentMessage(BaseModel):
    role: str
    text: str


class AgentResponse(BaseModel):
    """Messages returned by one agent invocation"""
    agent_name: Optional[str] = None
    messages: List[AgentMessage] = []

    @property
    def text(self) -> str:
        return extract_text(self)


class Capability(Protocol):
    """Anything an AgentExecutor can delegate to."""

    async def invoke(self, prompt: str, token: CancellationToken) -> Any:
        ...


def extract_text(response: AgentResponse) -> str:
    """Join the text of every message in the response with newlines."""
    return "\n".join(message.text for message in response.messages if message.text)


class ChatAgent:
    """
    Capability backed by an OpenAI-compatible chat completion client.

    The client is injected (openai.AsyncOpenAI, openai.AsyncAzureOpenAI or a
    fake in tests); the agent only sends its instructions plus the prompt.
    """

    def __init__(self, client: Any, model: str, instructions: str, name: str):
        self.client = client
        self.model = model
        self.instructions = instructions
        self.name = name

    def build_messages(self, prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.instructions},
            {"role": "user", "content": prompt},
        ]

    async def invoke(self, prompt: str, token: CancellationToken) -> AgentResponse:
        if token.is_cancelled:
            raise Cancelled(token.reason)

        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(prompt),
        )

        messages = [
            AgentMessage(role=choice.message.role or "assistant", text=choice.message.content or "")
            for choice in completion.choices
        ]
        logger.debug(f"Agent {self.name} returned {len(messages)} message(s)")
        return AgentResponse(agent_name=self.name, messages=messages)

    def __repr__(self) -> str:
        return f"ChatAgent(name={self.name!r}, model={self.model!r})"

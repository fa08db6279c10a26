"""Fakes and small builders shared by the test modules."""
from types import SimpleNamespace

from flowchain.agents.agent import AgentMessage, AgentResponse
from flowchain.engine.executor import FunctionExecutor


class FakeCapability:
    """Capability that records prompts and answers with canned text."""

    def __init__(self, reply="ok", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def invoke(self, prompt, token):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return AgentResponse(agent_name="fake", messages=[AgentMessage(role="assistant", text=self.reply)])


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, model, messages):
        self.calls.append({"model": model, "messages": messages})
        content = self.replies.pop(0) if self.replies else "default reply"
        message = SimpleNamespace(role="assistant", content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeChatClient:
    """Stands in for openai.AsyncOpenAI: only chat.completions.create is used."""

    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)


class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(text)


def text_step(executor_id, func=lambda text: text):
    return FunctionExecutor(executor_id, func, input_type=str, output_type=str)



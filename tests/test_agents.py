"""
Agent adapter, chat agent and agent factory tests
"""

import json

import pytest
from openai import AsyncAzureOpenAI

from flowchain.agents import (
    AgentExecutor,
    AgentFactory,
    AgentMessage,
    AgentResponse,
    AgentSettings,
    ChatAgent,
    create_chat_client,
    extract_text,
)
from flowchain.engine.cancellation import CancellationToken
from flowchain.engine.errors import Cancelled, ExecutionError, UnsupportedOutputTypeError
from flowchain.engine.models import RunStatus
from flowchain.engine.runner import run
from flowchain.workflows.task_classifier import create_task_classifier_pipeline, SAMPLE_TASK

from tests.helpers import FakeCapability, FakeChatClient


class TestAgentExecutor:

    @pytest.mark.asyncio
    async def test_default_conversion_extracts_text(self):
        capability = FakeCapability()
        capability.reply = "line one"
        executor = AgentExecutor("Classifier", capability)

        result = await executor.handle(42, CancellationToken())

        assert result == "line one"
        assert capability.prompts == ["42"]

    @pytest.mark.asyncio
    async def test_none_input_becomes_empty_prompt(self, fake_capability):
        await AgentExecutor("Classifier", fake_capability).handle(None, CancellationToken())
        assert fake_capability.prompts == [""]

    @pytest.mark.asyncio
    async def test_converters_are_applied(self, fake_capability):
        executor = AgentExecutor(
            "Classifier",
            fake_capability,
            input_converter=lambda task: f"Classify this task: {task['title']}",
            output_converter=lambda response: len(response.text),
            input_type=dict,
            output_type=int,
        )

        result = await executor.handle({"title": "Fix login"}, CancellationToken())

        assert fake_capability.prompts == ["Classify this task: Fix login"]
        assert result == len("classified: urgent")

    @pytest.mark.asyncio
    async def test_raw_response_output(self, fake_capability):
        executor = AgentExecutor("Classifier", fake_capability, output_type=AgentResponse)
        result = await executor.handle("task", CancellationToken())
        assert isinstance(result, AgentResponse)

    def test_unsupported_output_type_without_converter(self, fake_capability):
        with pytest.raises(UnsupportedOutputTypeError):
            AgentExecutor("Classifier", fake_capability, output_type=int)

    @pytest.mark.asyncio
    async def test_capability_failure_is_wrapped(self):
        cause = ConnectionError("endpoint unreachable")
        executor = AgentExecutor("Classifier", FakeCapability(error=cause))

        with pytest.raises(ExecutionError) as excinfo:
            await executor.handle("task", CancellationToken())

        assert excinfo.value.executor_id == "Classifier"
        assert excinfo.value.cause is cause

    @pytest.mark.asyncio
    async def test_converter_failure_is_wrapped(self, fake_capability):
        executor = AgentExecutor(
            "Classifier", fake_capability, output_converter=lambda response: int(response.text), output_type=int
        )
        with pytest.raises(ExecutionError) as excinfo:
            await executor.handle("task", CancellationToken())
        assert isinstance(excinfo.value.cause, ValueError)

    def test_agent_is_required(self):
        with pytest.raises(ValueError):
            AgentExecutor("Classifier", None)

    def test_extract_text_joins_messages(self):
        response = AgentResponse(messages=[
            AgentMessage(role="assistant", text="first"),
            AgentMessage(role="assistant", text=""),
            AgentMessage(role="assistant", text="second"),
        ])
        assert extract_text(response) == "first\nsecond"


class TestChatAgent:

    @pytest.mark.asyncio
    async def test_sends_instructions_and_prompt(self):
        client = FakeChatClient("urgent")
        agent = ChatAgent(client, "gpt-4.1", "Classify tasks.", "ClassifierAgent")

        response = await agent.invoke("Fix the login bug", CancellationToken())

        assert response.text == "urgent"
        assert response.agent_name == "ClassifierAgent"
        call = client.completions.calls[0]
        assert call["model"] == "gpt-4.1"
        assert call["messages"] == [
            {"role": "system", "content": "Classify tasks."},
            {"role": "user", "content": "Fix the login bug"},
        ]

    @pytest.mark.asyncio
    async def test_cancelled_token_is_not_wrapped(self):
        client = FakeChatClient("urgent")
        executor = AgentExecutor("Classifier", ChatAgent(client, "gpt-4.1", "Classify.", "ClassifierAgent"))
        token = CancellationToken()
        token.cancel()

        with pytest.raises(Cancelled):
            await executor.handle("task", token)
        assert client.completions.calls == []


class TestAgentFactory:

    def test_caching_returns_same_agent(self, fake_chat_client):
        factory = AgentFactory(fake_chat_client, "gpt-4.1", enable_caching=True)
        first = factory.create_agent("Summarizer", "Summarize.")
        second = factory.create_agent("Summarizer", "Summarize.")

        assert first is second
        assert first.name == "SummarizerAgent"
        assert factory.cached_agent_count == 1

        factory.clear_cache()
        assert factory.cached_agent_count == 0
        assert factory.create_agent("Summarizer", "Summarize.") is not first

    def test_without_caching_creates_new_agents(self, fake_chat_client):
        factory = AgentFactory(fake_chat_client, "gpt-4.1")
        assert factory.create_agent("Summarizer", "Summarize.") is not factory.create_agent("Summarizer", "Summarize.")
        assert factory.cached_agent_count == 0

    def test_different_names_are_cached_separately(self, fake_chat_client):
        factory = AgentFactory(fake_chat_client, "gpt-4.1", enable_caching=True)
        factory.create_agent("Summarizer", "Summarize.", name="Short")
        factory.create_agent("Summarizer", "Summarize.", name="Long")
        assert factory.cached_agent_count == 2

    @pytest.mark.parametrize("executor_type,instructions", [("", "Summarize."), ("Summarizer", "   ")])
    def test_blank_arguments_rejected(self, fake_chat_client, executor_type, instructions):
        with pytest.raises(ValueError):
            AgentFactory(fake_chat_client, "gpt-4.1").create_agent(executor_type, instructions)

    def test_client_is_required(self):
        with pytest.raises(ValueError):
            AgentFactory(None, "gpt-4.1")


class TestTaskClassifierPipeline:

    @pytest.mark.asyncio
    async def test_classify_then_summarize(self, fake_chat_client):
        factory = AgentFactory(fake_chat_client, "gpt-4.1", enable_caching=True)
        graph = create_task_classifier_pipeline(factory)

        pipeline_run = await run(graph, SAMPLE_TASK).execute()

        assert pipeline_run.status == RunStatus.COMPLETED
        assert pipeline_run.output == "An urgent security fix is needed."
        prompts = [call["messages"][1]["content"] for call in fake_chat_client.completions.calls]
        assert prompts == [f"Classify this task: {SAMPLE_TASK}", "Summarize this text: urgent"]
        assert factory.cached_agent_count == 2


class TestSettings:

    def test_from_file(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text(json.dumps({
            "AzureOpenAI": {"Endpoint": "https://example.openai.azure.com/", "Key": "secret"}
        }))

        settings = AgentSettings.from_file(str(path))

        assert settings.endpoint == "https://example.openai.azure.com/"
        assert settings.api_key == "secret"
        assert settings.deployment_name == "gpt-4.1"

    def test_create_chat_client(self):
        settings = AgentSettings(endpoint="https://example.openai.azure.com/", api_key="secret")
        assert isinstance(create_chat_client(settings), AsyncAzureOpenAI)

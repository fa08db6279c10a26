from typing import Any
from pathlib import Path
from pydantic import BaseModel
from openai import AsyncAzureOpenAI
import json


class AgentSettings(BaseModel):
    """Connection settings for the chat completion backend"""
    endpoint: str
    api_key: str
    deployment_name: str = "gpt-4.1"
    api_version: str = "2024-10-21"

    @classmethod
    def from_file(cls, path: str = "appsettings.json") -> "AgentSettings":
        """
        Load the "AzureOpenAI" section of an appsettings.json file:

            {"AzureOpenAI": {"Endpoint": "...", "Key": "...", "DeploymentName": "gpt-4.1"}}
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        section = raw.get("AzureOpenAI", raw)
        values = {
            "endpoint": section.get("Endpoint"),
            "api_key": section.get("Key"),
            "deployment_name": section.get("DeploymentName"),
            "api_version": section.get("ApiVersion"),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


def create_chat_client(settings: AgentSettings) -> Any:
    """Build an async Azure OpenAI client from explicit settings."""
    return AsyncAzureOpenAI(
        azure_endpoint=settings.endpoint,
        api_key=settings.api_key,
        api_version=settings.api_version,
    )

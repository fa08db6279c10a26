"""
Agent collaborators

Chat agents, the executor adapter that fronts them, and the agent factory.
"""

from .agent import AgentMessage, AgentResponse, Capability, ChatAgent, extract_text
from .executor import AgentExecutor
from .factory import AgentFactory
from .settings import AgentSettings, create_chat_client

__all__ = [
    "AgentMessage",
    "AgentResponse",
    "Capability",
    "ChatAgent",
    "extract_text",
    "AgentExecutor",
    "AgentFactory",
    "AgentSettings",
    "create_chat_client",
]

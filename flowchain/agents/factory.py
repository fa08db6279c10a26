from typing import Any, Dict, Optional
import logging

from .agent import ChatAgent

logger = logging.getLogger(__name__)


class AgentFactory:
    """
    Creates chat agents for pipeline executors.

    All agents share the injected chat client and model. With caching
    enabled, asking twice for the same executor type and name returns the
    same agent.
    """

    def __init__(self, client: Any, model: str, enable_caching: bool = False):
        if client is None:
            raise ValueError("client cannot be None")
        self.client = client
        self.model = model
        self.enable_caching = enable_caching
        self._agent_cache: Dict[str, ChatAgent] = {}

    def create_agent(self, executor_type: str, instructions: str,
                     name: Optional[str] = None) -> ChatAgent:
        if not executor_type or not executor_type.strip():
            raise ValueError("Executor type cannot be empty")
        if not instructions or not instructions.strip():
            raise ValueError("Instructions cannot be empty")

        agent_name = name or f"{executor_type}Agent"
        cache_key = f"{executor_type}_{agent_name}"

        if self.enable_caching and cache_key in self._agent_cache:
            return self._agent_cache[cache_key]

        agent = ChatAgent(self.client, self.model, instructions, agent_name)
        logger.info(f"Created agent {agent_name} for {executor_type}")

        if self.enable_caching:
            self._agent_cache[cache_key] = agent
        return agent

    def clear_cache(self) -> None:
        self._agent_cache.clear()

    @property
    def cached_agent_count(self) -> int:
        return len(self._agent_cache)

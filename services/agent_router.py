# services/agent_router.py
import logging
from typing import Any, Dict, List

from configurations.config import DEFAULT_AGENT
from executors.base import BaseExecutor

logger = logging.getLogger("agent_router")


class AgentRouter:
    """
    Registry of domain agents.

    A miss never fails: it is logged and the default agent answers instead.
    """

    def __init__(self, default_agent: str = DEFAULT_AGENT):
        self.default_agent = default_agent
        self.agents: Dict[str, BaseExecutor] = {}

    def register(self, name: str, agent: BaseExecutor) -> None:
        self.agents[name] = agent
        logger.info(f"[AGENT_REGISTERED] name={name}, capabilities={agent.capabilities}")

    def has(self, name: str) -> bool:
        return name in self.agents

    def select(self, agent_name: str) -> BaseExecutor:
        agent = self.agents.get(agent_name)
        if agent is not None:
            return agent

        logger.warning(
            f"[ROUTING_MISS] agent='{agent_name}' not found. "
            f"Available: {', '.join(self.agents)}; falling back to '{self.default_agent}'"
        )
        if self.default_agent not in self.agents:
            raise LookupError(f"Default agent '{self.default_agent}' is not registered")
        return self.agents[self.default_agent]

    def capabilities(self) -> Dict[str, List[str]]:
        return {name: list(agent.capabilities) for name, agent in self.agents.items()}

    def status(self) -> Dict[str, Any]:
        return {name: agent.status() for name, agent in self.agents.items()}

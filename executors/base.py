from abc import ABC, abstractmethod
from typing import Any, Dict, List

from models.agent_io import AgentRequest, AgentResult, ExecutionContext


class BaseExecutor(ABC):
    """
    Base contract for all domain agents.
    Agents take an AgentRequest plus the turn's ExecutionContext and
    return an AgentResult. No routing, no approval decisions here.
    """

    name: str = "base"
    capabilities: List[str] = []

    @abstractmethod
    async def handle(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        pass

    def can_handle(self, action: str) -> bool:
        return action in self.capabilities

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "capabilities": list(self.capabilities),
            "ready": True,
        }

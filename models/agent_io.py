# models/agent_io.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class AgentRequest(BaseModel):
    """What the orchestrator hands to a domain agent."""

    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    original_message: str = ""


class ExecutionContext(BaseModel):
    """
    Per-turn execution context.
    Caller-supplied extras (user_location, document_text, approved, ...)
    are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    user_id: str
    approval_required: bool = False
    trip_context: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)


class AgentResult(BaseModel):
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)

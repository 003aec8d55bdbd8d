# models/api.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class UserRequest(BaseModel):
    user_id: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class OrchestratorResponse(BaseModel):
    """
    The single envelope every turn produces.
    Field names follow the chat transport's camelCase contract.
    """

    message: str
    agent: str
    requiresApproval: bool = False
    requiresConfirmation: bool = False
    handled: bool = True
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

# core/context.py
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

from core.intent import Intent


class ConversationContext(BaseModel):
    """
    The last resolved turn for one user.
    Overwritten after every routed turn, never deleted.
    """

    agent: str
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class PendingConfirmation(BaseModel):
    """An intent withheld until the user answers yes or no."""

    intent: Intent
    original_message: str
    previous_agent: str
    description: str
    created_at: datetime

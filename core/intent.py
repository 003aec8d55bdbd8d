# core/intent.py
from pydantic import BaseModel, Field, field_validator
import math
from typing import Any, Dict

FALLBACK_AGENT = "budget"
FALLBACK_ACTION = "general_query"
FALLBACK_CONFIDENCE = 0.3


class Intent(BaseModel):
    """
    The resolved meaning of one user message.
    A passive container: it does NOT execute logic and does NOT decide
    whether it may run. Routing and approval happen downstream.
    """

    agent: str
    action: str
    confidence: float = Field(default=FALLBACK_CONFIDENCE)
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        try:
            v = float(v)
        except (TypeError, ValueError):
            return FALLBACK_CONFIDENCE
        if math.isnan(v):
            return FALLBACK_CONFIDENCE
        return min(max(v, 0.0), 1.0)

    @field_validator("params", mode="before")
    @classmethod
    def params_must_be_mapping(cls, v):
        if not isinstance(v, dict):
            return {}
        return v


def fallback_intent(message: str) -> Intent:
    """Low-confidence general query used whenever resolution fails."""
    return Intent(
        agent=FALLBACK_AGENT,
        action=FALLBACK_ACTION,
        confidence=FALLBACK_CONFIDENCE,
        params={"message": message},
    )

# services/context_switch_guard.py

from datetime import datetime, timedelta
from typing import Optional

from configurations.config import CONTEXT_FRESHNESS_SECONDS, SWITCH_CONFIDENCE_THRESHOLD
from core.context import ConversationContext
from core.intent import Intent

AGENT_DISPLAY_NAMES = {
    "budget": "Budget",
    "trip": "Trip Planning",
}


def display_name(agent: str) -> str:
    return AGENT_DISPLAY_NAMES.get(agent, agent.replace("_", " ").title())


def should_confirm_switch(
    intent: Intent,
    prior_context: Optional[ConversationContext],
    now: datetime,
    *,
    freshness: timedelta = timedelta(seconds=CONTEXT_FRESHNESS_SECONDS),
    confidence_threshold: float = SWITCH_CONFIDENCE_THRESHOLD,
) -> bool:
    """
    True exactly when the user was recently with a different agent and the
    resolver is not sure about the hop.

    Rules:
    - a prior context exists
    - the agent changed
    - the prior context is still fresh
    - intent.confidence < confidence_threshold
    """
    if prior_context is None:
        return False
    if prior_context.agent == intent.agent:
        return False
    if now - prior_context.timestamp >= freshness:
        return False
    return intent.confidence < confidence_threshold


def describe_switch(intent: Intent, prior_context: ConversationContext, message: str) -> str:
    previous = display_name(prior_context.agent)
    new = display_name(intent.agent)
    return (
        "🔄 *Context Switch Detected*\n\n"
        f"You were working with: *{previous}*\n"
        f"New request seems to be: *{new}*\n\n"
        f'*Your message:* "{message}"\n\n'
        "*What would you like to do?*\n"
        f'• Reply "yes" to switch to {new}\n'
        f'• Reply "no" to stay in {previous}\n'
        "• Or rephrase your request to be more specific"
    )

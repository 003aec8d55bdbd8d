# FILE: services/intent_resolver.py
"""
Intent Resolver

- Turns a raw message (plus the user's previous turn) into an Intent
- One completion call, strict parse, fixed fallback
- Never raises: every failure collapses into the low-confidence fallback intent
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from core.context import ConversationContext
from core.intent import Intent, fallback_intent
from services.intent_parser import IntentParseFailure, parse_intent_text

logger = logging.getLogger("intent_resolver")

CompletePrompt = Callable[[str], Awaitable[str]]

_EXAMPLES = """Examples:
- "show me my balance" -> {"agent": "budget", "action": "view_balance", "confidence": 0.95, "params": {}}
- "add $50 expense at Starbucks" -> {"agent": "budget", "action": "create_transaction", "confidence": 0.90, "params": {"amount": -50, "payee": "Starbucks"}}
- "categorize pending transactions" -> {"agent": "budget", "action": "categorize_transactions", "confidence": 0.85, "params": {}}
- "here is my statement" (document attached) -> {"agent": "budget", "action": "import_statement", "confidence": 0.90, "params": {}}
- "put them in checking" (after a statement import) -> {"agent": "budget", "action": "commit_statement", "confidence": 0.90, "params": {"account": "checking"}}
- "plan trip to NYC Dec 11-21" -> {"agent": "trip", "action": "plan_trip", "confidence": 0.90, "params": {"destination": "NYC", "dates": "Dec 11-21"}}
- "search flights from LAX to NRT on Dec 11" -> {"agent": "trip", "action": "search_flights", "confidence": 0.95, "params": {"from": "LAX", "to": "NRT", "dates": "Dec 11"}}
- "find hotels in Paris for 5 nights" -> {"agent": "trip", "action": "search_hotels", "confidence": 0.90, "params": {"destination": "Paris", "dates": "5 nights"}}
- "book option 1" -> {"agent": "trip", "action": "book_flight", "confidence": 0.95, "params": {"option": "1"}}
- "walking directions to Central Park" -> {"agent": "trip", "action": "get_directions", "confidence": 0.95, "params": {"to": "Central Park", "mode": "walking"}}"""


class IntentResolver:
    """
    Resolves free text into an Intent using the completion collaborator.

    `capabilities` maps agent name -> list of actions; it is read on every
    call so agents registered later still show up in the prompt.
    """

    def __init__(
        self,
        complete_prompt: CompletePrompt,
        capabilities: Callable[[], Mapping[str, List[str]]],
        is_fresh: Optional[Callable[[ConversationContext], bool]] = None,
    ):
        self.complete_prompt = complete_prompt
        self.capabilities = capabilities
        self.is_fresh = is_fresh or (lambda ctx: True)

    async def resolve(
        self,
        message: str,
        prior_context: Optional[ConversationContext] = None,
        hints: Optional[Dict[str, Any]] = None,
    ) -> Intent:
        try:
            prompt = self.build_prompt(message, prior_context, hints or {})
            text = await self.complete_prompt(prompt)
        except Exception as e:
            logger.warning(f"[INTENT_FALLBACK] completion failed: {e}")
            return fallback_intent(message)

        result = parse_intent_text(text)
        if isinstance(result, IntentParseFailure):
            logger.warning(
                f"[INTENT_FALLBACK] reason={result.reason}, raw='{(result.raw or '')[:120]}'"
            )
            return fallback_intent(message)

        return result.intent

    # -----------------------------
    # Prompt construction
    # -----------------------------
    def build_prompt(
        self,
        message: str,
        prior_context: Optional[ConversationContext],
        hints: Dict[str, Any],
    ) -> str:
        lines = [
            "Analyze this user message and determine their intent.",
            "",
            f'User message: "{message}"',
            "",
            "Available agents and their capabilities:",
        ]
        for agent_name, actions in self.capabilities().items():
            lines.append(f"- {agent_name}: {', '.join(actions)}")

        lines += [
            "",
            "Context: "
            + ("User sent a document (PDF/Image)" if hints.get("has_document") else "No document attached"),
            "User location: "
            + ("User has shared their location (use for directions)" if hints.get("user_location") else "No location shared"),
        ]

        if prior_context is not None and self.is_fresh(prior_context):
            lines += self._continuity_section(prior_context)

        lines += [
            "",
            "Return a JSON object with:",
            '{"agent": "<agent name>", "action": "<action name>", "confidence": 0.0-1.0, "params": {...}}',
            "",
            _EXAMPLES,
            "",
            "Respond ONLY with the JSON object, no markdown, no explanations.",
        ]
        return "\n".join(lines)

    @staticmethod
    def _continuity_section(ctx: ConversationContext) -> List[str]:
        params = json.dumps(ctx.params, default=str)
        return [
            "",
            "IMPORTANT - CONTEXT CONTINUITY:",
            f"User's last action was: {ctx.agent} agent ({ctx.action})",
            f"Previous parameters: {params}",
            "",
            "RULES FOR FOLLOW-UP QUESTIONS:",
            '1. If the user asks a FOLLOW-UP ("show me", "what about walking?", "X instead"), '
            "REUSE the previous parameters and change only the ones the message implies.",
            f"2. Prefer staying with the same agent ({ctx.agent}) and action ({ctx.action}) "
            "unless the message CLEARLY asks for something else.",
            "3. For ambiguous messages, continue the same conversation with modified parameters.",
            "4. Only report a different agent or action if your confidence is above 0.9.",
            "",
            f"Example: previous turn get_directions with {{\"to\": \"JFK\", \"mode\": \"walking\"}}:",
            '- "what about driving?" -> SAME action, params {"to": "JFK", "mode": "driving"}',
            '- "and to central park?" -> SAME action, params {"to": "central park", "mode": "walking"}',
        ]


def resolution_hints(extra_context: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the ambient hints the prompt cares about out of caller context."""
    return {
        "has_document": bool(
            extra_context.get("has_document")
            or extra_context.get("document_text")
            or extra_context.get("document_path")
        ),
        "user_location": extra_context.get("user_location"),
    }

# services/intent_parser.py

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Union

from pydantic import ValidationError

from core.intent import Intent, FALLBACK_AGENT

DEFAULT_ACTION = "unknown"
DEFAULT_CONFIDENCE = 0.5

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


# ---------------------------------------------------------------------
# Parse Result Model
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class IntentParseSuccess:
    intent: Intent


@dataclass(frozen=True)
class IntentParseFailure:
    reason: str
    raw: str = ""


IntentParseResult = Union[IntentParseSuccess, IntentParseFailure]


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` / ```json fence, if any."""
    stripped = (text or "").strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def load_json_object(text: str) -> Dict[str, Any]:
    """
    Parse completion text into a JSON object.
    Raises ValueError when the text is not a single JSON object.
    """
    payload = json.loads(strip_code_fence(text))
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


# ---------------------------------------------------------------------
# Intent Parsing (PURE, DETERMINISTIC)
# ---------------------------------------------------------------------
def parse_intent_text(text: str) -> IntentParseResult:
    """
    Strict parse of a model completion into an Intent.

    Rules:
    - Exactly one JSON object, optionally fenced
    - Missing fields take conservative defaults
    - Anything else is a failure; this function never raises
    """
    if not text or not text.strip():
        return IntentParseFailure(reason="empty_completion", raw=text or "")

    try:
        payload = load_json_object(text)
    except (ValueError, json.JSONDecodeError) as e:
        return IntentParseFailure(reason=f"malformed_json: {e}", raw=text)

    confidence = payload.get("confidence")
    try:
        intent = Intent(
            agent=str(payload.get("agent") or FALLBACK_AGENT).strip().lower(),
            action=str(payload.get("action") or DEFAULT_ACTION).strip(),
            confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
            params=payload.get("params") or {},
        )
    except ValidationError as e:
        return IntentParseFailure(reason=f"invalid_intent: {e.error_count()} errors", raw=text)

    return IntentParseSuccess(intent=intent)

import asyncio
from datetime import timedelta

import pytest

from core.context import ConversationContext
from services.intent_resolver import IntentResolver, resolution_hints
from tests.support import StubCompletion, intent_json

CAPABILITIES = {
    "budget": ["view_balance", "create_transaction"],
    "trip": ["search_flights", "get_directions"],
}


def make_resolver(completion, is_fresh=None):
    return IntentResolver(
        complete_prompt=completion,
        capabilities=lambda: CAPABILITIES,
        is_fresh=is_fresh,
    )


def assert_fallback(intent, message):
    assert intent.agent == "budget"
    assert intent.action == "general_query"
    assert intent.confidence == 0.3
    assert intent.params == {"message": message}


# ---------------------------------------------------------------------
# Fallback totality
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "reply",
    [
        RuntimeError("model unavailable"),
        asyncio.TimeoutError(),
        "not json at all",
        "```json\n{broken\n```",
        "[]",
    ],
)
def test_any_failure_yields_fallback_intent(reply):
    resolver = make_resolver(StubCompletion(reply))

    intent = asyncio.run(resolver.resolve("what is going on", None))

    assert_fallback(intent, "what is going on")


def test_failure_in_capabilities_is_absorbed():
    def broken_capabilities():
        raise KeyError("registry")

    resolver = IntentResolver(complete_prompt=StubCompletion("{}"), capabilities=broken_capabilities)

    intent = asyncio.run(resolver.resolve("hello", None))

    assert_fallback(intent, "hello")


def test_no_retry_after_failure():
    completion = StubCompletion(RuntimeError("boom"))
    resolver = make_resolver(completion)

    asyncio.run(resolver.resolve("hello", None))

    assert len(completion.prompts) == 1


# ---------------------------------------------------------------------
# Successful resolution
# ---------------------------------------------------------------------

def test_balance_request_resolves_to_budget():
    completion = StubCompletion(intent_json("budget", "view_balance", 0.95))
    resolver = make_resolver(completion)

    intent = asyncio.run(resolver.resolve("show me my balance", None))

    assert intent.agent == "budget"
    assert intent.action == "view_balance"
    assert intent.confidence == pytest.approx(0.95)


def test_prompt_lists_every_registered_capability():
    completion = StubCompletion(intent_json("budget", "view_balance", 0.95))
    resolver = make_resolver(completion)

    asyncio.run(resolver.resolve("show me my balance", None))

    prompt = completion.prompts[0]
    assert 'User message: "show me my balance"' in prompt
    assert "- budget: view_balance, create_transaction" in prompt
    assert "- trip: search_flights, get_directions" in prompt
    assert "CONTEXT CONTINUITY" not in prompt


# ---------------------------------------------------------------------
# Continuity section
# ---------------------------------------------------------------------

def test_fresh_prior_context_is_embedded(clock):
    completion = StubCompletion(intent_json("trip", "get_directions", 0.6, to="JFK", mode="driving"))
    resolver = make_resolver(completion, is_fresh=lambda ctx: True)
    prior = ConversationContext(
        agent="trip",
        action="get_directions",
        params={"to": "JFK", "mode": "walking"},
        timestamp=clock(),
    )

    asyncio.run(resolver.resolve("what about driving?", prior))

    prompt = completion.prompts[0]
    assert "User's last action was: trip agent (get_directions)" in prompt
    assert '"mode": "walking"' in prompt
    assert "above 0.9" in prompt


def test_stale_prior_context_is_left_out(clock):
    completion = StubCompletion(intent_json("budget", "view_balance", 0.9))
    prior = ConversationContext(
        agent="trip",
        action="get_directions",
        params={"to": "JFK"},
        timestamp=clock() - timedelta(minutes=10),
    )
    resolver = make_resolver(completion, is_fresh=lambda ctx: clock() - ctx.timestamp < timedelta(minutes=5))

    asyncio.run(resolver.resolve("show me my balance", prior))

    assert "CONTEXT CONTINUITY" not in completion.prompts[0]


def test_resolution_hints_detect_documents_and_location():
    hints = resolution_hints({"document_text": "statement", "user_location": "40.7,-74.0"})

    assert hints == {"has_document": True, "user_location": "40.7,-74.0"}
    assert resolution_hints({}) == {"has_document": False, "user_location": None}

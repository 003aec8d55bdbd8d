import pytest

from core.context import PendingConfirmation
from core.intent import Intent
from services.pending_confirmations import (
    ConfirmationReply,
    PendingConfirmationStore,
    classify_reply,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("yes", ConfirmationReply.YES),
        ("Yes!", ConfirmationReply.YES),
        ("sí", ConfirmationReply.YES),
        ("ok", ConfirmationReply.YES),
        ("no", ConfirmationReply.NO),
        ("No.", ConfirmationReply.NO),
        ("stay", ConfirmationReply.NO),
        ("yes please book the hotel", ConfirmationReply.OTHER),
        ("", ConfirmationReply.OTHER),
    ],
)
def test_classify_reply(text, expected):
    assert classify_reply(text) is expected


def test_pending_confirmation_expires(clock):
    store = PendingConfirmationStore(clock=clock)
    store.put(
        "u1",
        PendingConfirmation(
            intent=Intent(agent="budget", action="view_balance", confidence=0.5),
            original_message="balance?",
            previous_agent="trip",
            description="switch?",
            created_at=clock(),
        ),
    )

    assert store.peek("u1") is not None
    clock.advance(minutes=5)
    assert store.pop("u1") is None


def test_pop_consumes(clock):
    store = PendingConfirmationStore(clock=clock)
    store.put(
        "u1",
        PendingConfirmation(
            intent=Intent(agent="budget", action="view_balance", confidence=0.5),
            original_message="balance?",
            previous_agent="trip",
            description="switch?",
            created_at=clock(),
        ),
    )

    assert store.pop("u1").original_message == "balance?"
    assert store.pop("u1") is None

# tests/support.py
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Union

from models.transaction import LedgerAccount
from services.ledger import InMemoryLedger
from services.orchestrator import build_orchestrator


class FakeClock:
    """Deterministic wall clock for TTL and freshness checks."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


Reply = Union[str, dict, Exception, Callable[[str], Any]]


class StubCompletion:
    """
    Stand-in for the completion collaborator.
    Replies are consumed in order; the last one repeats.
    """

    def __init__(self, *replies: Reply):
        self.replies: List[Reply] = list(replies)
        self.prompts: List[str] = []

    def queue(self, *replies: Reply) -> "StubCompletion":
        self.replies.extend(replies)
        return self

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            return "ok"
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


def intent_json(agent: str, action: str, confidence: float, **params) -> dict:
    return {"agent": agent, "action": action, "confidence": confidence, "params": params}


def make_ledger() -> InMemoryLedger:
    return InMemoryLedger(
        accounts=[
            LedgerAccount(id="checking", name="Checking", balance=1_250_000),
            LedgerAccount(id="savings", name="Savings", type="savings", balance=5_000_000),
        ]
    )


def make_orchestrator(completion, clock, ledger=None, travel=None):
    return build_orchestrator(
        complete_prompt=completion,
        ledger=ledger or make_ledger(),
        travel=travel,
        clock=clock,
    )

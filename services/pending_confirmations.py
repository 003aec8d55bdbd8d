# services/pending_confirmations.py
import re
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional

from configurations.config import PENDING_CONFIRMATION_TTL_SECONDS
from core.context import PendingConfirmation
from services.utils import Clock, utc_now

AFFIRMATIVE = {"yes", "y", "yeah", "yep", "sure", "ok", "okay", "switch", "si", "sí", "dale"}
NEGATIVE = {"no", "n", "nope", "stay", "cancel", "nah"}


class ConfirmationReply(str, Enum):
    YES = "yes"
    NO = "no"
    OTHER = "other"


def classify_reply(message: str) -> ConfirmationReply:
    """Classify a short yes/no answer; anything longer is a new request."""
    normalized = re.sub(r"[^\w\sáéíóú]", "", (message or "").lower()).strip()
    if normalized in AFFIRMATIVE:
        return ConfirmationReply.YES
    if normalized in NEGATIVE:
        return ConfirmationReply.NO
    return ConfirmationReply.OTHER


class PendingConfirmationStore:
    """
    At most one withheld intent per user, valid for a short window.
    Expired entries are dropped on read.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=PENDING_CONFIRMATION_TTL_SECONDS),
        clock: Clock = utc_now,
    ):
        self.ttl = ttl
        self.clock = clock
        self._pending: Dict[str, PendingConfirmation] = {}

    def put(self, user_id: str, pending: PendingConfirmation) -> None:
        self._pending[user_id] = pending

    def peek(self, user_id: str) -> Optional[PendingConfirmation]:
        pending = self._pending.get(user_id)
        if pending is None:
            return None
        if self.clock() - pending.created_at >= self.ttl:
            del self._pending[user_id]
            return None
        return pending

    def pop(self, user_id: str) -> Optional[PendingConfirmation]:
        pending = self.peek(user_id)
        self._pending.pop(user_id, None)
        return pending

# services/context_store.py
import logging
from datetime import timedelta
from typing import Dict, Optional

from configurations.config import CONTEXT_FRESHNESS_SECONDS
from core.context import ConversationContext
from services.utils import Clock, utc_now

logger = logging.getLogger("context_store")


class ContextStore:
    """
    Per-user last resolved turn.

    Plain last-write-wins map keyed by user id; no merging, no eviction.
    Construct once per process and hand it to the orchestrator.
    """

    def __init__(
        self,
        freshness: timedelta = timedelta(seconds=CONTEXT_FRESHNESS_SECONDS),
        clock: Clock = utc_now,
    ):
        self.freshness = freshness
        self.clock = clock
        self._contexts: Dict[str, ConversationContext] = {}

    def get(self, user_id: str) -> Optional[ConversationContext]:
        return self._contexts.get(user_id)

    def set(self, user_id: str, context: ConversationContext) -> None:
        self._contexts[user_id] = context
        logger.info(
            f"[CONTEXT_SET] user_id={user_id}, agent={context.agent}, "
            f"action={context.action}, params={context.params}"
        )

    def is_fresh(self, context: Optional[ConversationContext]) -> bool:
        if context is None:
            return False
        return self.clock() - context.timestamp < self.freshness

    def get_fresh(self, user_id: str) -> Optional[ConversationContext]:
        context = self.get(user_id)
        return context if self.is_fresh(context) else None

    def __len__(self) -> int:
        return len(self._contexts)

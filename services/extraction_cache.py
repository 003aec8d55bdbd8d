# services/extraction_cache.py
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from configurations.config import EXTRACTION_TTL_SECONDS
from models.transaction import ExtractedTransaction
from services.utils import Clock, utc_now

logger = logging.getLogger("extraction_cache")


class CachedExtraction(BaseModel):
    """One bulk-extraction batch waiting for the user's confirmation."""

    owner_user_id: str
    payload: List[ExtractedTransaction] = Field(default_factory=list)
    created_at: datetime
    budget_name: Optional[str] = None


class ExtractionCache:
    """
    Short-lived per-user store bridging the extract turn and the commit turn.

    - put() replaces, never merges
    - get() returns None for a missing or expired batch
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=EXTRACTION_TTL_SECONDS),
        clock: Clock = utc_now,
    ):
        self.ttl = ttl
        self.clock = clock
        self._batches: Dict[str, CachedExtraction] = {}

    def put(
        self,
        user_id: str,
        records: Sequence[ExtractedTransaction],
        budget_name: Optional[str] = None,
    ) -> CachedExtraction:
        batch = CachedExtraction(
            owner_user_id=user_id,
            payload=list(records),
            created_at=self.clock(),
            budget_name=budget_name,
        )
        replaced = user_id in self._batches
        self._batches[user_id] = batch
        logger.info(
            f"[EXTRACTION_CACHED] user_id={user_id}, records={len(batch.payload)}, replaced={replaced}"
        )
        return batch

    def is_expired(self, batch: CachedExtraction) -> bool:
        return self.clock() - batch.created_at >= self.ttl

    def get(self, user_id: str) -> Optional[CachedExtraction]:
        batch = self._batches.get(user_id)
        if batch is None:
            return None
        if self.is_expired(batch):
            logger.info(f"[EXTRACTION_EXPIRED] user_id={user_id}")
            del self._batches[user_id]
            return None
        return batch

    def discard(self, user_id: str) -> None:
        self._batches.pop(user_id, None)

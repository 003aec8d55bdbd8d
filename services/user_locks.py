# services/user_locks.py
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class UserTurnLocks:
    """
    One asyncio.Lock per user.
    Turns of the same user run one at a time; different users run freely.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def is_processing(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def turn(self, user_id: str) -> AsyncIterator[None]:
        async with self.lock_for(user_id):
            yield

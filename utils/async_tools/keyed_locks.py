"""
Per-key asyncio locks.

Serializes coroutines that touch the same logical resource (for example one
mentor's calendar) inside a single process. Locks are created on demand and
dropped once nobody holds or waits on them.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable, Tuple


class KeyedLockManager:
    """
    Lock registry keyed by arbitrary hashable values.

    Usage:
        async with booking_locks.hold(("mentor", mentor_id)):
            ...
    """

    def __init__(self):
        # key -> (lock, number of holders + waiters)
        self._locks: Dict[Hashable, Tuple[asyncio.Lock, int]] = {}

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        return lock

    def _checkin(self, key: Hashable):
        lock, users = self._locks[key]
        if users <= 1:
            del self._locks[key]
        else:
            self._locks[key] = (lock, users - 1)

    @asynccontextmanager
    async def hold(self, key: Hashable):
        """Acquire the lock for ``key`` for the duration of the block."""
        lock = self._checkout(key)
        try:
            async with lock:
                yield
        finally:
            self._checkin(key)

    def __len__(self) -> int:
        return len(self._locks)


# Global lock registry for mentor calendars
_booking_locks: KeyedLockManager = KeyedLockManager()


def get_booking_locks() -> KeyedLockManager:
    """Get the process-wide mentor calendar lock registry."""
    return _booking_locks

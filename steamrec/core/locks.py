"""Per-key asyncio locks.

Used to serialize learned-vector read-modify-write cycles for a single
user inside one process. The database row lock covers multiple workers.
"""

import asyncio
import weakref


class KeyedLocks:
    """Hands out one asyncio.Lock per key; unused locks are garbage collected."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)

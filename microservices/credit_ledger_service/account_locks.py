"""
Per-account mutual exclusion for ledger mutations.

Each key (credit id, or client id for account creation) gets its own
asyncio.Lock. Locks are created on first use and dropped once no task holds
or waits for them, so the registry only holds keys that are in use.

The locks are process-local. Serialization holds for one service instance
per store; running several replicas against the same PostgreSQL database
needs exclusion in the store (row locks or version checks) instead.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class AccountLockRegistry:
    """Keyed asyncio locks; different keys never block each other."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Run the block exclusively with respect to other holders of `key`."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def is_locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["AccountLockRegistry"]

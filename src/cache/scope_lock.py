# src/cache/scope_lock.py — v1
"""Per-scope locks serializing load → reconcile → save for one scope.

The cache cycle is not transactional; two concurrent normalizations of the
same scope would otherwise clobber each other's snapshot. Locks only guard
callers in the same event loop / process.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from transnorm.core.models import TranslationScope


class ScopeLockRegistry:
    """Hands out one asyncio.Lock per TranslationScope."""

    def __init__(self) -> None:
        self._locks: dict[TranslationScope, asyncio.Lock] = {}
        self._holders: dict[TranslationScope, int] = {}

    @asynccontextmanager
    async def hold(self, scope: TranslationScope) -> AsyncIterator[None]:
        """Hold the scope's lock for the duration of the block."""
        lock = self._locks.setdefault(scope, asyncio.Lock())
        self._holders[scope] = self._holders.get(scope, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[scope] -= 1
            if self._holders[scope] == 0:
                del self._holders[scope]
                del self._locks[scope]

    def is_locked(self, scope: TranslationScope) -> bool:
        lock = self._locks.get(scope)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

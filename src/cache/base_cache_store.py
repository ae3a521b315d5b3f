# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

A store owns one CacheSnapshot per TranslationScope. Load and save never
raise: a failed load yields an empty snapshot, a failed save returns False.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from transnorm.core.models import CacheSnapshot, TranslationScope


class BaseCacheStore(ABC):
    """Unified interface for snapshot storage backends."""

    @abstractmethod
    async def load(self, scope: TranslationScope) -> CacheSnapshot:
        """Return the persisted snapshot for a scope (empty if none or unreadable)."""

    @abstractmethod
    async def save(self, scope: TranslationScope, snapshot: CacheSnapshot) -> bool:
        """Fully replace the scope's snapshot. Returns False on failure."""

    @abstractmethod
    async def delete(self, scope: TranslationScope) -> None:
        """Remove the scope's snapshot if present."""

    @abstractmethod
    async def list_scopes(self) -> list[str]:
        """List storage identifiers of all persisted snapshots."""

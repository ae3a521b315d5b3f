# src/cache/json_store.py — v2
"""JSON file-based cache store (default cache_backend=json).

One pretty-printed JSON file per scope under cache_root, named after the
scope's storage identifier (see storage.layout).
"""

from __future__ import annotations

import logging
from pathlib import Path

from transnorm.cache.base_cache_store import BaseCacheStore
from transnorm.cache.snapshot import dump_snapshot, parse_snapshot
from transnorm.core.errors import CacheLoadError, CacheSaveError
from transnorm.core.models import CacheSnapshot, TranslationScope
from transnorm.storage import layout
from transnorm.storage.local_writer import atomic_write

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based snapshot store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, scope: TranslationScope) -> Path:
        """Return the snapshot file path for a scope."""
        return layout.cache_file(self._root, scope)

    async def load(self, scope: TranslationScope) -> CacheSnapshot:
        """Load a scope's snapshot; missing or unreadable files yield {}."""
        path = self.path_for(scope)
        if not path.exists():
            logger.debug("No cache snapshot for %s at %s", scope, path)
            return {}
        try:
            snapshot = self._read(path)
        except CacheLoadError as e:
            logger.warning(
                "Failed to load cache for %s, treating all entries as new: %s",
                scope, e,
            )
            return {}
        logger.debug("Loaded %d cached records for %s", len(snapshot), scope)
        return snapshot

    async def save(self, scope: TranslationScope, snapshot: CacheSnapshot) -> bool:
        """Atomically overwrite a scope's snapshot file."""
        path = self.path_for(scope)
        try:
            self._write(path, snapshot)
        except CacheSaveError as e:
            logger.error("Failed to save cache for %s: %s", scope, e)
            return False
        logger.debug("Saved %d records for %s to %s", len(snapshot), scope, path)
        return True

    async def delete(self, scope: TranslationScope) -> None:
        """Remove a scope's snapshot file."""
        path = self.path_for(scope)
        if path.exists():
            path.unlink()

    async def list_scopes(self) -> list[str]:
        """List storage identifiers of all snapshot files."""
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob(f"*{layout.CACHE_SUFFIX}"))

    @staticmethod
    def _read(path: Path) -> CacheSnapshot:
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CacheLoadError(f"{path}: {e}") from e
        return parse_snapshot(raw, source=str(path))

    @staticmethod
    def _write(path: Path, snapshot: CacheSnapshot) -> None:
        try:
            atomic_write(path, dump_snapshot(snapshot))
        except OSError as e:
            raise CacheSaveError(f"{path}: {e}") from e

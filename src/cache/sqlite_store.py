# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (cache_backend=sqlite).

Uses stdlib sqlite3, no external dependency. One row per scope holding the
serialized snapshot; saves replace the row inside a transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from transnorm.cache.base_cache_store import BaseCacheStore
from transnorm.cache.snapshot import dump_snapshot, parse_snapshot
from transnorm.core.errors import CacheLoadError
from transnorm.core.models import CacheSnapshot, TranslationScope
from transnorm.storage.layout import scope_storage_id

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    storage_id TEXT PRIMARY KEY,
    language_code TEXT NOT NULL,
    project_id INTEGER NOT NULL,
    file_id INTEGER,
    data TEXT NOT NULL,
    record_count INTEGER NOT NULL,
    saved_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_snapshots_project ON snapshots(project_id);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed snapshot store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def load(self, scope: TranslationScope) -> CacheSnapshot:
        """Load a scope's snapshot; missing or unreadable rows yield {}."""
        storage_id = scope_storage_id(scope)
        try:
            row = self._conn.execute(
                "SELECT data FROM snapshots WHERE storage_id = ?", (storage_id,)
            ).fetchone()
            if row is None:
                return {}
            return parse_snapshot(row[0], source=f"sqlite:{storage_id}")
        except (sqlite3.Error, CacheLoadError) as e:
            logger.warning(
                "Failed to load cache for %s, treating all entries as new: %s",
                scope, e,
            )
            return {}

    async def save(self, scope: TranslationScope, snapshot: CacheSnapshot) -> bool:
        """Replace a scope's snapshot row (upsert)."""
        try:
            with self._conn:
                self._conn.execute(
                    """INSERT OR REPLACE INTO snapshots
                       (storage_id, language_code, project_id, file_id,
                        data, record_count, saved_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        scope_storage_id(scope),
                        scope.language_code,
                        scope.project_id,
                        scope.file_id,
                        dump_snapshot(snapshot),
                        len(snapshot),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            logger.error("Failed to save cache for %s: %s", scope, e)
            return False
        return True

    async def delete(self, scope: TranslationScope) -> None:
        """Remove a scope's snapshot row."""
        with self._conn:
            self._conn.execute(
                "DELETE FROM snapshots WHERE storage_id = ?",
                (scope_storage_id(scope),),
            )

    async def list_scopes(self) -> list[str]:
        """List storage identifiers of all stored snapshots."""
        cursor = self._conn.execute(
            "SELECT storage_id FROM snapshots ORDER BY storage_id"
        )
        return [row[0] for row in cursor.fetchall()]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

# src/cache/snapshot.py — v1
"""Snapshot (de)serialization shared by all cache backends.

On disk a snapshot is a JSON object mapping translation key to a camelCase
CacheRecord, pretty-printed with two-space indentation.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from transnorm.core.errors import CacheLoadError
from transnorm.core.models import CacheRecord, CacheSnapshot

logger = logging.getLogger(__name__)


def dump_snapshot(snapshot: CacheSnapshot) -> str:
    """Serialize a snapshot to pretty-printed JSON, preserving key order."""
    data = {
        key: record.model_dump(mode="json", by_alias=True)
        for key, record in snapshot.items()
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def parse_snapshot(raw: str | bytes, source: str = "snapshot") -> CacheSnapshot:
    """Parse serialized snapshot text.

    Invalid individual records are skipped with a warning so one bad entry
    does not reset the timestamps of every other key.

    Raises:
        CacheLoadError: If the text is not JSON or its root is not an object.
    """
    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CacheLoadError(f"{source}: invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CacheLoadError(
            f"{source}: expected a JSON object, got {type(data).__name__}"
        )

    snapshot: CacheSnapshot = {}
    for key, item in data.items():
        try:
            record = CacheRecord.model_validate(item)
        except ValidationError as e:
            logger.warning(
                "Skipping invalid cache record %r in %s: %s",
                key, source, e.errors()[0].get("msg", e),
            )
            continue
        if record.key != key:
            logger.warning(
                "Cache record key mismatch in %s: %r stored under %r; using %r",
                source, record.key, key, key,
            )
            record = record.model_copy(update={"key": key})
        snapshot[key] = record
    return snapshot

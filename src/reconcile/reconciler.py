# src/reconcile/reconciler.py — v1
"""Merge freshly extracted entries with the previous cache snapshot.

For each entry, in extraction order:
  - new key            → createdAt = updatedAt = now
  - same value         → both timestamps carried over (no churn)
  - different value    → createdAt carried over, updatedAt = now

The output snapshot holds exactly the extracted keys; keys that disappeared
from the payload are dropped. ``now`` is captured once by the caller and shared
by every entry of the pass.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime

from transnorm.core.models import CacheRecord, ExtractedEntry, ReconcileResult, as_utc

logger = logging.getLogger(__name__)


def reconcile(
    entries: Sequence[ExtractedEntry],
    previous: Mapping[str, CacheRecord],
    now: datetime,
    language: str,
) -> ReconcileResult:
    """Reconcile extracted entries against a previous snapshot.

    Args:
        entries: Extracted entries, keys unique, in payload order.
        previous: Snapshot loaded for the scope (may be empty).
        now: Single timestamp for every creation/update in this pass.
        language: Language code stamped on each record.

    Returns:
        ReconcileResult with ordered records, the snapshot to persist and
        created/updated/unchanged/removed counts.
    """
    now = as_utc(now)
    result = ReconcileResult()

    for entry in entries:
        prior = previous.get(entry.key)

        if prior is None:
            created_at = updated_at = now
            result.created += 1
        elif prior.value == entry.value:
            created_at, updated_at = prior.created_at, prior.updated_at
            result.unchanged += 1
        else:
            created_at = prior.created_at
            updated_at = now
            if updated_at < created_at:
                logger.warning(
                    "Cached createdAt for %r is in the future (%s > %s), clamping",
                    entry.key, created_at.isoformat(), now.isoformat(),
                )
                updated_at = created_at
            result.updated += 1

        record = CacheRecord(
            key=entry.key,
            value=entry.value,
            created_at=created_at,
            updated_at=updated_at,
            language=language,
        )
        result.records.append(record)
        result.snapshot[entry.key] = record

    result.removed = sum(1 for key in previous if key not in result.snapshot)

    logger.info(
        "Reconciled %d entries: %d new, %d changed, %d unchanged, %d removed",
        len(result.records), result.created, result.updated,
        result.unchanged, result.removed,
    )
    return result

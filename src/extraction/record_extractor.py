# src/extraction/record_extractor.py — v1
"""Key/value extraction for JSON and CSV payloads.

Sequences of records (CSV rows, JSON arrays) use the first field of each
record as key and the second as value. Mappings (JSON objects) yield one entry
per top-level key in insertion order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from transnorm.core.errors import ExtractionSkipped
from transnorm.core.models import ClassifiedPayload, ExtractionResult, FormatTag
from transnorm.extraction.base_extractor import (
    BaseExtractor,
    collect_entries,
    display_value,
    mapping_pairs,
)

logger = logging.getLogger(__name__)


def record_pair(index: int, record: Any) -> tuple[str, str]:
    """Return (key, value) from the first two fields of a record.

    Raises:
        ExtractionSkipped: If the record is not a row or its key is empty.
    """
    if isinstance(record, Mapping):
        fields = list(record.values())
    elif isinstance(record, Sequence) and not isinstance(record, (str, bytes)):
        fields = list(record)
    else:
        raise ExtractionSkipped(index, f"not a record ({type(record).__name__})")

    if not fields or fields[0] is None or fields[0] == "":
        raise ExtractionSkipped(index, "empty key")

    key = display_value(fields[0])
    value = display_value(fields[1]) if len(fields) > 1 else ""
    return key, value


class RecordExtractor(BaseExtractor):
    """Extractor for json and csv payloads."""

    @property
    def supported_formats(self) -> list[FormatTag]:
        return [FormatTag.JSON, FormatTag.CSV]

    def extract(self, classified: ClassifiedPayload) -> ExtractionResult:
        content = classified.content

        if isinstance(content, Mapping):
            return ExtractionResult(
                entries=collect_entries(mapping_pairs(content)),
                original=content,
            )

        if isinstance(content, list):
            pairs: list[tuple[str, str]] = []
            skipped = 0
            for index, record in enumerate(content):
                try:
                    pairs.append(record_pair(index, record))
                except ExtractionSkipped as e:
                    skipped += 1
                    logger.warning("Dropping %s row: %s", classified.format.value, e)
            if skipped:
                logger.warning(
                    "Skipped %d of %d %s records", skipped, len(content),
                    classified.format.value,
                )
            return ExtractionResult(
                entries=collect_entries(pairs), original=content, skipped=skipped
            )

        logger.debug(
            "Content of type %s has no records, passing through",
            type(content).__name__,
        )
        return ExtractionResult(original=content, reducible=False)

# src/extraction/base_extractor.py — v2
"""Abstract extractor interface and the shared key/value helpers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from transnorm.core.models import (
    ClassifiedPayload,
    ExtractedEntry,
    ExtractionResult,
    FormatTag,
)
from transnorm.extraction.object_literal import display_number

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """Turns a classified payload into ordered key/value entries."""

    @property
    @abstractmethod
    def supported_formats(self) -> list[FormatTag]:
        """Format tags this extractor handles."""

    @abstractmethod
    def extract(self, classified: ClassifiedPayload) -> ExtractionResult:
        """Extract entries from a classified payload."""


def display_value(value: Any) -> str:
    """Stringify a value for storage. Non-scalars are not flattened.

    Mirrors JS String(): booleans are lowercase, null is "null", integral
    floats drop their fraction, objects become "[object Object]" and lists
    join their items with commas.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return display_number(value)
    if isinstance(value, Mapping):
        return "[object Object]"
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else display_value(item) for item in value)
    return str(value)


def collect_entries(pairs: Iterable[tuple[str, str]]) -> list[ExtractedEntry]:
    """Deduplicate pairs by key: the later value wins, the first position stays."""
    collected: dict[str, str] = {}
    for key, value in pairs:
        if key in collected:
            logger.debug("Duplicate key %r in payload, later value wins", key)
        collected[key] = value
    return [ExtractedEntry(key=k, value=v) for k, v in collected.items()]


def mapping_pairs(mapping: Mapping[Any, Any]) -> list[tuple[str, str]]:
    """Key/value pairs of a mapping in insertion order."""
    return [(display_value(k), display_value(v)) for k, v in mapping.items()]

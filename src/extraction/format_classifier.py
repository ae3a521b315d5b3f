# src/extraction/format_classifier.py — v1
"""Payload format sniffing.

The upstream backend never declares a content type, so the format is inferred
by an ordered cascade of probes. Formats overlap under loose parsing, which
makes the probe order the tie-break policy:

    structured object → binary → json → csv → typescript → text

Classification is total: every payload gets exactly one FormatTag.
"""

from __future__ import annotations

import base64
import csv
import io
import json
import logging
import re
from collections.abc import Callable
from typing import Any

from transnorm.core.errors import DecodeError, ParseError
from transnorm.core.models import ClassifiedPayload, FormatTag

logger = logging.getLogger(__name__)

Probe = Callable[[str], "ClassifiedPayload | None"]

# Module-export heuristics, checked per line.
_MODULE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*export\s+default\s*\{", re.MULTILINE),
    re.compile(r"^\s*export\s+default\b", re.MULTILINE),
    re.compile(
        r"^\s*export\s+(?:declare\s+)?"
        r"(?:const|let|var|function|class|interface|type|enum)\b",
        re.MULTILINE,
    ),
    re.compile(r"^\s*import\s+[\s\S]*?\s+from\s+['\"]", re.MULTILINE),
    re.compile(
        r"^\s*(?:declare\s+)?(?:interface|type|namespace)\s+[A-Za-z_$][\w$]*",
        re.MULTILINE,
    ),
)


def decode_bytes(raw: bytes) -> str:
    """Strict UTF-8 decode, dropping a leading BOM.

    Raises:
        DecodeError: If the bytes are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"payload is not valid UTF-8: {e.reason} at byte {e.start}") from e


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json_strict(text: str) -> Any:
    """Parse RFC 8259 JSON (NaN/Infinity rejected).

    Raises:
        ParseError: If text is not valid JSON.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(f"not JSON: {e}") from e
    except RecursionError as e:
        raise ParseError("not JSON: nesting too deep") from e


def parse_csv_with_header(text: str, min_columns: int = 2) -> list[dict[str, str]]:
    """Parse CSV whose first non-empty row is the header.

    Empty lines are skipped. Every record must have exactly as many fields as
    the header, and there must be at least one record.

    Raises:
        ParseError: If text does not look like a headed CSV table.
    """
    try:
        rows = [row for row in csv.reader(io.StringIO(text, newline=""), strict=True) if row]
    except csv.Error as e:
        raise ParseError(f"not CSV: {e}") from e

    if not rows:
        raise ParseError("not CSV: no rows")
    header, records = rows[0], rows[1:]
    if len(header) < min_columns:
        raise ParseError(
            f"not CSV: header has {len(header)} column(s), need {min_columns}"
        )
    if not records:
        raise ParseError("not CSV: header without data rows")
    for line_no, record in enumerate(records, start=2):
        if len(record) != len(header):
            raise ParseError(
                f"not CSV: record {line_no} has {len(record)} fields, "
                f"header has {len(header)}"
            )
    return [dict(zip(header, record)) for record in records]


def looks_like_module(text: str) -> bool:
    """Heuristic check for JS/TS module syntax."""
    return any(pattern.search(text) for pattern in _MODULE_PATTERNS)


class FormatClassifier:
    """Assigns one FormatTag per payload via an ordered probe cascade."""

    def __init__(self, csv_min_columns: int = 2) -> None:
        self._csv_min_columns = csv_min_columns
        self._probes: tuple[tuple[str, Probe], ...] = (
            ("json", self._try_json),
            ("csv", self._try_csv),
            ("typescript", self._try_module),
        )

    @property
    def probe_order(self) -> list[str]:
        return [name for name, _ in self._probes]

    def classify(self, payload: Any) -> ClassifiedPayload:
        """Classify bytes, text, or an already-structured object."""
        if isinstance(payload, (dict, list)):
            logger.debug("Payload already structured, classified as json")
            return ClassifiedPayload(format=FormatTag.JSON, content=payload)

        if isinstance(payload, (bytes, bytearray, memoryview)):
            raw = bytes(payload)
            try:
                text = decode_bytes(raw)
            except DecodeError as e:
                logger.warning("%s; keeping base64 representation", e)
                return ClassifiedPayload(
                    format=FormatTag.BINARY,
                    content={"rawBuffer": base64.b64encode(raw).decode("ascii")},
                )
            return self.classify_text(text)

        if isinstance(payload, str):
            return self.classify_text(payload)

        logger.warning(
            "Unsupported payload type %s, passing through as unknown",
            type(payload).__name__,
        )
        return ClassifiedPayload(format=FormatTag.UNKNOWN, content=payload)

    def classify_text(self, text: str) -> ClassifiedPayload:
        """Run the text probes in order; fall back to plain text."""
        for name, probe in self._probes:
            result = probe(text)
            if result is not None:
                logger.debug("Payload classified as %s", result.format.value)
                return result
            logger.debug("Probe %s did not match", name)
        return ClassifiedPayload(
            format=FormatTag.TEXT, content={"content": text}, text=text
        )

    # --- Probes ---

    def _try_json(self, text: str) -> ClassifiedPayload | None:
        try:
            value = parse_json_strict(text)
        except ParseError:
            return None
        if isinstance(value, (dict, list)):
            return ClassifiedPayload(format=FormatTag.JSON, content=value, text=text)
        # Valid JSON, but a bare scalar carries no translations.
        return ClassifiedPayload(format=FormatTag.UNKNOWN, content=value, text=text)

    def _try_csv(self, text: str) -> ClassifiedPayload | None:
        try:
            rows = parse_csv_with_header(text, self._csv_min_columns)
        except ParseError as e:
            logger.debug("%s", e)
            return None
        return ClassifiedPayload(format=FormatTag.CSV, content=rows, text=text)

    def _try_module(self, text: str) -> ClassifiedPayload | None:
        if not looks_like_module(text):
            return None
        return ClassifiedPayload(format=FormatTag.TS_MODULE, content=text, text=text)


def classify(payload: Any, csv_min_columns: int = 2) -> ClassifiedPayload:
    """Classify a payload with a default FormatClassifier."""
    return FormatClassifier(csv_min_columns=csv_min_columns).classify(payload)

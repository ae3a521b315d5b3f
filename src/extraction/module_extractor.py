# src/extraction/module_extractor.py — v1
"""Key/value extraction for JS/TS modules that export an object literal.

Two attempts are made before giving up:

1. Clean the whole module (comments, leading ``export default``, trailing
   ``;`` / ``as const``) and parse it as one object literal.
2. Locate ``export default {`` or ``export const|let|var NAME = {`` and parse
   the brace-balanced object that follows.

If both fail the module text is passed through untouched. Parsing goes
through object_literal, which accepts literal data only.
"""

from __future__ import annotations

import logging
import re

from transnorm.core.errors import ParseError
from transnorm.core.models import ClassifiedPayload, ExtractionResult, FormatTag
from transnorm.extraction.base_extractor import (
    BaseExtractor,
    collect_entries,
    mapping_pairs,
)
from transnorm.extraction.object_literal import parse_object_literal

logger = logging.getLogger(__name__)

_LEADING_EXPORT_RE = re.compile(r"^\s*export\s+default\s+")
_TRAILING_RE = re.compile(
    r"(?:\s*;|\s+as\s+const|\s+satisfies\s+[A-Za-z_$][\w$.<>, \[\]]*)+\s*$"
)
_EXPORT_OBJECT_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"export\s+default\s*(?=\{)"),
    re.compile(
        r"export\s+(?:const|let|var)\s+[A-Za-z_$][\w$]*"
        r"\s*(?::\s*[^=]+?)?\s*=\s*(?=\{)"
    ),
)


def strip_comments(text: str) -> str:
    """Remove // and /* */ comments outside string literals.

    Newlines inside removed block comments are kept so offsets in later
    error messages still point at the right line.
    """
    out: list[str] = []
    i, n = 0, len(text)
    quote: str | None = None
    while i < n:
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
        elif ch in "'\"`":
            quote = ch
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            stop = n if end == -1 else end + 2
            out.append("\n" * text.count("\n", i, stop))
            i = stop
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def clean_module_source(text: str) -> str:
    """Reduce a module to its exported literal: no comments, prefix or terminator."""
    cleaned = strip_comments(text).strip()
    cleaned = _LEADING_EXPORT_RE.sub("", cleaned, count=1)
    return _TRAILING_RE.sub("", cleaned).strip()


def balanced_object(text: str, start: int) -> str | None:
    """Return the ``{...}`` starting at ``start``, honouring strings, or None."""
    depth = 0
    quote: str | None = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
        i += 1
    return None


def capture_export_objects(text: str) -> list[str]:
    """Object literals exported via ``export default`` or ``export const``, in order."""
    source = strip_comments(text)
    captured: list[str] = []
    for pattern in _EXPORT_OBJECT_RES:
        for match in pattern.finditer(source):
            obj = balanced_object(source, match.end())
            if obj is not None:
                captured.append(obj)
    return captured


class ModuleExtractor(BaseExtractor):
    """Extractor for typescript payloads."""

    @property
    def supported_formats(self) -> list[FormatTag]:
        return [FormatTag.TS_MODULE]

    def extract(self, classified: ClassifiedPayload) -> ExtractionResult:
        text = classified.text if classified.text is not None else str(classified.content)

        try:
            exported = parse_object_literal(clean_module_source(text))
        except ParseError as first_error:
            logger.debug("Whole-module parse failed: %s", first_error)
            exported = self._parse_captured(text)

        if exported is None:
            logger.warning(
                "Could not parse an exported object literal, passing module through as text"
            )
            return ExtractionResult(
                original={"content": text, "type": "typescript"}, reducible=False
            )

        return ExtractionResult(
            entries=collect_entries(mapping_pairs(exported)), original=exported
        )

    @staticmethod
    def _parse_captured(text: str) -> dict | None:
        for candidate in capture_export_objects(text):
            try:
                return parse_object_literal(candidate)
            except ParseError as e:
                logger.debug("Captured export did not parse: %s", e)
        return None

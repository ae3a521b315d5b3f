# src/extraction/passthrough_extractor.py — v1
"""Passthrough for payloads without key/value structure (text, binary, unknown)."""

from __future__ import annotations

from transnorm.core.models import ClassifiedPayload, ExtractionResult, FormatTag
from transnorm.extraction.base_extractor import BaseExtractor


class PassthroughExtractor(BaseExtractor):
    """Yields no entries; the classified content is preserved verbatim."""

    @property
    def supported_formats(self) -> list[FormatTag]:
        return [FormatTag.TEXT, FormatTag.BINARY, FormatTag.UNKNOWN]

    def extract(self, classified: ClassifiedPayload) -> ExtractionResult:
        return ExtractionResult(original=classified.content, reducible=False)

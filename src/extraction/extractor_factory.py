# src/extraction/extractor_factory.py — v3
"""Factory: instantiate the extractor for a classified format."""

from __future__ import annotations

from transnorm.core.models import FormatTag
from transnorm.extraction.base_extractor import BaseExtractor
from transnorm.extraction.module_extractor import ModuleExtractor
from transnorm.extraction.passthrough_extractor import PassthroughExtractor
from transnorm.extraction.record_extractor import RecordExtractor

# Registry maps format tag → extractor class.
_EXTRACTOR_REGISTRY: dict[FormatTag, type[BaseExtractor]] = {}


def _register_defaults() -> None:
    """Register built-in extractors."""
    for cls in [RecordExtractor, ModuleExtractor, PassthroughExtractor]:
        instance = cls()
        for tag in instance.supported_formats:
            _EXTRACTOR_REGISTRY[tag] = cls


_register_defaults()


class UnsupportedFormatError(ValueError):
    """Raised when no extractor is available for a format."""


def create_extractor(fmt: FormatTag | str) -> BaseExtractor:
    """Create an extractor for the given format tag.

    Args:
        fmt: FormatTag or its string value (e.g. "json", "typescript").

    Returns:
        BaseExtractor instance.

    Raises:
        UnsupportedFormatError: If no extractor is registered.
    """
    try:
        tag = FormatTag(fmt)
    except ValueError as e:
        raise UnsupportedFormatError(f"Unknown format {fmt!r}") from e

    cls = _EXTRACTOR_REGISTRY.get(tag)
    if cls is None:
        raise UnsupportedFormatError(
            f"No extractor for format {tag.value!r}. "
            f"Supported: {', '.join(sorted(t.value for t in _EXTRACTOR_REGISTRY))}"
        )
    return cls()


def register_extractor(fmt: FormatTag, cls: type[BaseExtractor]) -> None:
    """Register a custom extractor for a format."""
    _EXTRACTOR_REGISTRY[FormatTag(fmt)] = cls


def supported_formats() -> list[str]:
    """Return list of supported format tag values."""
    return sorted(tag.value for tag in _EXTRACTOR_REGISTRY)

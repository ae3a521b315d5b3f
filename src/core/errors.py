# src/core/errors.py — v1
"""Error taxonomy for payload normalization.

Only FatalNormalizationError is allowed to escape Normalizer.normalize().
Every other error is absorbed by falling back to a lower-fidelity
representation of the payload.
"""

from __future__ import annotations


class TransnormError(Exception):
    """Base class for all transnorm errors."""


class DecodeError(TransnormError):
    """Payload bytes are not valid UTF-8 text (degrades to binary)."""


class ParseError(TransnormError):
    """A format-specific parse attempt failed (advances the fallback chain)."""


class ExtractionSkipped(TransnormError):
    """A record could not yield an entry, e.g. its key is empty."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"record {index} skipped: {reason}")
        self.index = index
        self.reason = reason


class CacheLoadError(TransnormError):
    """A persisted snapshot could not be read (treated as empty)."""


class CacheSaveError(TransnormError):
    """A snapshot could not be persisted (reported, not fatal)."""


class FatalNormalizationError(TransnormError):
    """Scope is malformed or no representation of the payload could be built."""

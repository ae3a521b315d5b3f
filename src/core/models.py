# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Persisted and mirrored JSON uses camelCase aliases; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

PositiveId = Annotated[StrictInt, Field(gt=0)]


def as_utc(value: datetime) -> datetime:
    """Assume UTC for naive datetimes; aware ones are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === FORMAT CLASSIFICATION ===


class FormatTag(str, Enum):
    """Closed set of payload formats. Value is what lands in metadata.dataFormat."""

    JSON = "json"
    CSV = "csv"
    TS_MODULE = "typescript"
    TEXT = "text"
    BINARY = "binary"
    UNKNOWN = "unknown"


class ClassifiedPayload(BaseModel):
    """Outcome of format classification."""

    format: FormatTag
    content: Any = None
    text: str | None = None


# === SCOPE ===


class TranslationScope(_CamelModel):
    """Composite cache key: (language, project, optional file).

    Frozen so it can key dicts (scope locks) directly. Accepts camelCase
    (languageCode, projectId, fileId) or snake_case input.
    """

    model_config = ConfigDict(frozen=True)

    language_code: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    project_id: PositiveId
    file_id: PositiveId | None = None

    def __str__(self) -> str:
        parts = [self.language_code, f"project={self.project_id}"]
        if self.file_id is not None:
            parts.append(f"file={self.file_id}")
        return "/".join(parts)


# === EXTRACTION ===


class ExtractedEntry(BaseModel):
    """Single translation key/value pair pulled out of a payload."""

    key: str
    value: str


class ExtractionResult(BaseModel):
    """Entries extracted from a classified payload.

    reducible is False for formats that carry no key/value structure; their
    original content is passed through to the output untouched.
    """

    entries: list[ExtractedEntry] = Field(default_factory=list)
    original: Any = None
    reducible: bool = True
    skipped: int = 0


# === CACHE ===


class CacheRecord(_CamelModel):
    """Timestamped translation entry, as persisted in a snapshot."""

    key: str
    value: str
    created_at: datetime
    updated_at: datetime
    language: str

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def check_timestamps(self) -> CacheRecord:
        if self.created_at > self.updated_at:
            raise ValueError(
                f"createdAt {self.created_at.isoformat()} is after "
                f"updatedAt {self.updated_at.isoformat()} for key {self.key!r}"
            )
        return self


CacheSnapshot = dict[str, CacheRecord]


class ReconcileResult(BaseModel):
    """Records for the output plus the snapshot to persist."""

    records: list[CacheRecord] = Field(default_factory=list)
    snapshot: dict[str, CacheRecord] = Field(default_factory=dict)
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    removed: int = 0


# === OUTPUT ===


class TranslationMetadata(_CamelModel):
    """Provenance of one normalized download."""

    downloaded_at: datetime
    language_code: str
    project_id: int
    file_id: int | None = None
    version: str = "1.0"
    data_format: FormatTag


class EnhancedTranslation(_CamelModel):
    """Final normalized record handed back to the caller."""

    original: Any = None
    metadata: TranslationMetadata
    content: list[CacheRecord] | Any = None

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, dropping metadata.fileId when unset."""
        data = self.model_dump(mode="json", by_alias=True)
        if data["metadata"].get("fileId") is None:
            data["metadata"].pop("fileId", None)
        return data

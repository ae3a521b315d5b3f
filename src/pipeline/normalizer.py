# src/pipeline/normalizer.py — v1
"""Normalizer — single entry point from raw payload to EnhancedTranslation.

Steps:
  1. Validate scope and capture ``now`` once
  2. Classify (structured / binary / json / csv / typescript / text)
  3. Extract key/value entries, or pass the content through
  4. For key/value formats: under the scope lock, load cache → reconcile → save
  5. Assemble the EnhancedTranslation and mirror it to the output tree

Only FatalNormalizationError escapes; cache and mirror failures are logged.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from transnorm.cache.scope_lock import ScopeLockRegistry
from transnorm.core.errors import FatalNormalizationError
from transnorm.core.models import (
    CacheRecord,
    CacheSnapshot,
    EnhancedTranslation,
    ExtractionResult,
    FormatTag,
    TranslationMetadata,
    TranslationScope,
    as_utc,
)
from transnorm.extraction.extractor_factory import create_extractor
from transnorm.extraction.format_classifier import FormatClassifier
from transnorm.logging.context import clear_context, set_scope_context, set_step_context
from transnorm.reconcile.reconciler import reconcile
from transnorm.storage.layout import translation_output_path

if TYPE_CHECKING:
    from transnorm.cache.base_cache_store import BaseCacheStore
    from transnorm.config.settings import Settings
    from transnorm.storage.base_output_writer import BaseOutputWriter

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_scope(
    scope: TranslationScope | Mapping[str, Any] | None = None,
    *,
    language_code: str | None = None,
    project_id: int | None = None,
    file_id: int | None = None,
) -> TranslationScope:
    """Validate scope parameters.

    Raises:
        FatalNormalizationError: If the scope is malformed.
    """
    if isinstance(scope, TranslationScope):
        return scope
    data: dict[str, Any] = dict(scope) if scope is not None else {
        "language_code": language_code,
        "project_id": project_id,
        "file_id": file_id,
    }
    try:
        return TranslationScope.model_validate(data)
    except ValidationError as e:
        raise FatalNormalizationError(f"Malformed translation scope {data!r}: {e}") from e


class Normalizer:
    """Turns raw translation payloads into timestamped, cached records.

    Usage:
        normalizer = Normalizer(cache_store=JsonCacheStore(root))
        result = await normalizer.normalize(payload, scope)
    """

    def __init__(
        self,
        cache_store: BaseCacheStore | None = None,
        writer: BaseOutputWriter | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
        classifier: FormatClassifier | None = None,
        locks: ScopeLockRegistry | None = None,
    ) -> None:
        self._cache_store = cache_store
        self._writer = writer
        self._version = settings.format_version if settings is not None else "1.0"
        self._clock = clock or utc_now
        self._classifier = classifier or FormatClassifier(
            csv_min_columns=settings.csv_min_columns if settings is not None else 2
        )
        self._locks = locks or ScopeLockRegistry()

    @property
    def locks(self) -> ScopeLockRegistry:
        return self._locks

    async def normalize(
        self,
        payload: Any,
        scope: TranslationScope | Mapping[str, Any],
    ) -> EnhancedTranslation:
        """Normalize one payload for one scope.

        Args:
            payload: bytes, decoded text, or an already-parsed dict/list.
            scope: TranslationScope or a mapping with languageCode/projectId/fileId.

        Returns:
            EnhancedTranslation with reconciled records (or passthrough content).

        Raises:
            FatalNormalizationError: Malformed scope or unusable payload.
        """
        scope = build_scope(scope)
        set_scope_context(scope.language_code, scope.project_id, scope.file_id)
        try:
            now = as_utc(self._clock())
            extraction, data_format = self._extract(payload)

            if extraction.reducible:
                set_step_context("reconcile")
                content: Any = await self._reconcile(scope, extraction, now)
            else:
                content = extraction.original

            translation = EnhancedTranslation(
                original=extraction.original,
                metadata=TranslationMetadata(
                    downloaded_at=now,
                    language_code=scope.language_code,
                    project_id=scope.project_id,
                    file_id=scope.file_id,
                    version=self._version,
                    data_format=data_format,
                ),
                content=content,
            )

            if self._writer is not None:
                set_step_context("mirror")
                await self._mirror(scope, translation)

            logger.info(
                "Normalized %s payload for %s: %s, %d skipped",
                data_format.value, scope,
                f"{len(content)} records" if extraction.reducible else "passthrough",
                extraction.skipped,
            )
            return translation
        finally:
            clear_context()

    def _extract(self, payload: Any) -> tuple[ExtractionResult, FormatTag]:
        try:
            set_step_context("classify")
            classified = self._classifier.classify(payload)
            set_step_context("extract")
            extraction = create_extractor(classified.format).extract(classified)
        except Exception as e:
            logger.error("Payload could not be classified or extracted", exc_info=True)
            raise FatalNormalizationError(f"Could not normalize payload: {e}") from e
        return extraction, classified.format

    async def _reconcile(
        self,
        scope: TranslationScope,
        extraction: ExtractionResult,
        now: datetime,
    ) -> list[CacheRecord]:
        if self._cache_store is None:
            return reconcile(extraction.entries, {}, now, scope.language_code).records

        async with self._locks.hold(scope):
            previous = await self._load(scope)
            result = reconcile(extraction.entries, previous, now, scope.language_code)
            if not await self._save(scope, result.snapshot):
                logger.error(
                    "Cache for %s not persisted; the next run will treat %d entries as new",
                    scope, len(result.snapshot),
                )
        return result.records

    async def _load(self, scope: TranslationScope) -> CacheSnapshot:
        try:
            return await self._cache_store.load(scope)  # type: ignore[union-attr]
        except Exception:
            logger.warning(
                "Cache load for %s raised, treating all entries as new", scope,
                exc_info=True,
            )
            return {}

    async def _save(self, scope: TranslationScope, snapshot: CacheSnapshot) -> bool:
        try:
            return await self._cache_store.save(scope, snapshot)  # type: ignore[union-attr]
        except Exception:
            logger.error("Cache save for %s raised", scope, exc_info=True)
            return False

    async def _mirror(self, scope: TranslationScope, translation: EnhancedTranslation) -> None:
        path = translation_output_path(scope.language_code, scope.file_id)
        try:
            body = json.dumps(translation.to_json_dict(), indent=2, ensure_ascii=False)
            await self._writer.write(path, body)  # type: ignore[union-attr]
        except Exception:
            logger.error("Failed to mirror translation to %s", path, exc_info=True)
            return
        logger.info("Translation mirrored to %s", path)

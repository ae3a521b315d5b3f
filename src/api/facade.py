# src/api/facade.py — v2
"""Public API facade — single entry point for translation normalization.

Usage:
    from transnorm.api.facade import normalize_translation
    result = await normalize_translation(raw_bytes, "de", 7, file_id=12)

Callers handling many payloads should build one Normalizer via
create_normalizer() and reuse it, so per-scope locks are shared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from transnorm.cache.cache_factory import create_cache_store
from transnorm.config.settings import Settings
from transnorm.pipeline.normalizer import Clock, Normalizer, build_scope
from transnorm.storage.local_writer import LocalWriter

if TYPE_CHECKING:
    from transnorm.cache.base_cache_store import BaseCacheStore
    from transnorm.core.models import EnhancedTranslation
    from transnorm.storage.base_output_writer import BaseOutputWriter

logger = logging.getLogger(__name__)


def create_normalizer(
    settings: Settings | None = None,
    cache_store: BaseCacheStore | None = None,
    writer: BaseOutputWriter | None = None,
    clock: Clock | None = None,
) -> Normalizer:
    """Build a Normalizer wired from settings.

    Args:
        settings: Global settings. Loaded from .env if None.
        cache_store: Snapshot backend. Built from settings if None and caching is on.
        writer: Mirror writer. A LocalWriter on settings.output_dir if mirroring is on.
        clock: Time source, mainly for tests.
    """
    settings = settings or Settings()

    if cache_store is None and settings.cache_enabled:
        cache_store = create_cache_store(settings)
    if writer is None and settings.mirror_output and settings.output_dir is not None:
        writer = LocalWriter(base_path=settings.output_dir)

    logger.debug(
        "Normalizer: cache=%s, mirror=%s",
        type(cache_store).__name__ if cache_store else "disabled",
        type(writer).__name__ if writer else "disabled",
    )
    return Normalizer(
        cache_store=cache_store, writer=writer, settings=settings, clock=clock
    )


async def normalize_translation(
    payload: Any,
    language_code: str,
    project_id: int,
    file_id: int | None = None,
    settings: Settings | None = None,
    cache_store: BaseCacheStore | None = None,
    writer: BaseOutputWriter | None = None,
) -> EnhancedTranslation:
    """Normalize one downloaded translation payload end-to-end.

    Args:
        payload: Raw bytes, decoded text, or an already-parsed dict/list.
        language_code: Target language of the payload (e.g. "de", "zh-CN").
        project_id: Project the payload belongs to.
        file_id: Source file id, None for whole-project bundles.
        settings: Global settings. Loaded from .env if None.
        cache_store: Snapshot backend override.
        writer: Mirror writer override.

    Returns:
        EnhancedTranslation with reconciled records or passthrough content.

    Raises:
        FatalNormalizationError: If the scope is malformed.
    """
    scope = build_scope(
        language_code=language_code, project_id=project_id, file_id=file_id
    )
    normalizer = create_normalizer(settings, cache_store=cache_store, writer=writer)
    return await normalizer.normalize(payload, scope)

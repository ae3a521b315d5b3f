# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from transnorm.cache.base_cache_store import BaseCacheStore
from transnorm.config.settings import Settings

_DEFAULT_CACHE_ROOT = "~/.transnorm/cache"
SQLITE_DB_NAME = "transnorm_cache.db"


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = _DEFAULT_CACHE_ROOT if settings is None else str(settings.cache_root)

    if backend == "json":
        from transnorm.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from transnorm.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/{SQLITE_DB_NAME}")

    raise ValueError(f"Unsupported cache backend: {backend!r}")

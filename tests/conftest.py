# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides fixed clocks, sample scopes and payloads, and tmp-path backed stores.
All I/O goes to tmp_path.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from transnorm.cache.json_store import JsonCacheStore
from transnorm.core.models import TranslationScope


class FakeClock:
    """Deterministic clock; advance() moves it forward."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


# === FIXTURES: Logging ===


@pytest.fixture(autouse=True)
def _restore_transnorm_logger():
    """Undo setup_logging() side effects between tests."""
    root = logging.getLogger("transnorm")
    level, handlers = root.level, list(root.handlers)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


# === FIXTURES: Time ===


@pytest.fixture
def t0() -> datetime:
    return datetime(2026, 10, 19, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0: datetime) -> FakeClock:
    return FakeClock(t0)


# === FIXTURES: Scopes ===


@pytest.fixture
def scope_de() -> TranslationScope:
    return TranslationScope(language_code="de", project_id=7)


@pytest.fixture
def scope_fr_file() -> TranslationScope:
    return TranslationScope(language_code="fr", project_id=7, file_id=12)


# === FIXTURES: Payloads ===


@pytest.fixture
def json_payload() -> bytes:
    return b'{"greeting": "Hallo", "farewell": "Tschuss", "count": 3}'


@pytest.fixture
def csv_payload() -> bytes:
    return (
        b"key,translation,context\n"
        b"greeting,Hallo,home page\n"
        b"\n"
        b"farewell,Tschuss,footer\n"
    )


@pytest.fixture
def ts_payload() -> bytes:
    return (
        b"// generated by the translation backend\n"
        b"export default {\n"
        b"  greeting: 'Hallo', /* home */\n"
        b"  \"farewell\": \"Tschuss\",\n"
        b"};\n"
    )


# === FIXTURES: Stores ===


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def json_store(cache_root: Path) -> JsonCacheStore:
    return JsonCacheStore(cache_root=cache_root)

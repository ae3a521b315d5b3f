# tests/unit/pipeline/test_normalizer.py — v2
"""Tests for pipeline/normalizer.py — classification through cache and mirror."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone

import pytest

from transnorm.cache.base_cache_store import BaseCacheStore
from transnorm.core.errors import FatalNormalizationError
from transnorm.core.models import CacheRecord, FormatTag, TranslationScope
from transnorm.logging.context import get_context
from transnorm.pipeline.normalizer import Normalizer, build_scope
from transnorm.storage.base_output_writer import BaseOutputWriter
from transnorm.storage.local_writer import LocalWriter


class RaisingStore(BaseCacheStore):
    """Store whose every operation fails."""

    async def load(self, scope):
        raise RuntimeError("load exploded")

    async def save(self, scope, snapshot):
        raise RuntimeError("save exploded")

    async def delete(self, scope):
        raise RuntimeError("delete exploded")

    async def list_scopes(self):
        return []


class SlowStore(BaseCacheStore):
    """In-memory store that yields to the loop between load and save."""

    def __init__(self) -> None:
        self.data: dict = {}
        self.active = 0
        self.max_active = 0

    async def load(self, scope):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        return dict(self.data.get(scope, {}))

    async def save(self, scope, snapshot):
        await asyncio.sleep(0.01)
        self.data[scope] = dict(snapshot)
        self.active -= 1
        return True

    async def delete(self, scope):
        self.data.pop(scope, None)

    async def list_scopes(self):
        return []


class BrokenWriter(BaseOutputWriter):
    """Writer that fails with a non-OS error."""

    async def write(self, path, content):
        raise RuntimeError("bucket unavailable")

    async def read(self, path):
        raise RuntimeError("bucket unavailable")

    async def exists(self, path):
        return False

    async def delete(self, path):
        return None

    async def list_dir(self, path):
        return []


@pytest.fixture
def normalizer(json_store, clock) -> Normalizer:
    return Normalizer(cache_store=json_store, clock=clock)


class TestBuildScope:
    def test_passthrough_instance(self, scope_de):
        assert build_scope(scope_de) is scope_de

    def test_from_mapping(self):
        scope = build_scope({"languageCode": "de", "projectId": 7})
        assert scope == TranslationScope(language_code="de", project_id=7)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"language_code": "", "project_id": 7},
            {"language_code": "de", "project_id": 0},
            {"language_code": "de", "project_id": None},
            {"language_code": "../x", "project_id": 7},
        ],
    )
    def test_malformed(self, kwargs):
        with pytest.raises(FatalNormalizationError, match="Malformed"):
            build_scope(**kwargs)


class TestNormalizeJson:
    @pytest.mark.asyncio
    async def test_single_record(self, normalizer, scope_de, t0):
        result = await normalizer.normalize('{"hello":"world"}', scope_de)
        assert result.metadata.data_format == FormatTag.JSON
        assert result.metadata.downloaded_at == t0
        assert result.original == {"hello": "world"}
        assert result.content == [
            CacheRecord(key="hello", value="world", created_at=t0, updated_at=t0, language="de")
        ]

    @pytest.mark.asyncio
    async def test_idempotent(self, normalizer, json_store, scope_de, clock, t0, json_payload):
        first = await normalizer.normalize(json_payload, scope_de)
        clock.advance(hours=1)
        second = await normalizer.normalize(json_payload, scope_de)
        assert [r.model_dump() for r in second.content] == [r.model_dump() for r in first.content]
        assert second.metadata.downloaded_at == t0.replace(hour=9)

    @pytest.mark.asyncio
    async def test_change_detection(self, normalizer, scope_de, clock, t0):
        await normalizer.normalize({"a": "1", "b": "2"}, scope_de)
        later = clock.advance(days=1)
        result = await normalizer.normalize({"b": "two", "a": "1", "c": "3"}, scope_de)
        by_key = {r.key: r for r in result.content}
        assert [r.key for r in result.content] == ["b", "a", "c"]
        assert (by_key["a"].created_at, by_key["a"].updated_at) == (t0, t0)
        assert (by_key["b"].created_at, by_key["b"].updated_at) == (t0, later)
        assert (by_key["c"].created_at, by_key["c"].updated_at) == (later, later)

    @pytest.mark.asyncio
    async def test_removed_keys_leave_cache(self, normalizer, json_store, scope_de):
        await normalizer.normalize({"a": "1", "b": "2"}, scope_de)
        await normalizer.normalize({"a": "1"}, scope_de)
        assert list(await json_store.load(scope_de)) == ["a"]

    @pytest.mark.asyncio
    async def test_empty_object(self, normalizer, json_store, scope_de):
        await normalizer.normalize({"a": "1"}, scope_de)
        result = await normalizer.normalize("{}", scope_de)
        assert result.content == []
        assert await json_store.load(scope_de) == {}

    @pytest.mark.asyncio
    async def test_scopes_independent(self, normalizer, scope_de, scope_fr_file, clock, t0):
        await normalizer.normalize({"a": "1"}, scope_de)
        later = clock.advance(minutes=5)
        result = await normalizer.normalize({"a": "1"}, scope_fr_file)
        assert result.content[0].created_at == later
        assert result.content[0].language == "fr"


class TestNormalizeOtherFormats:
    @pytest.mark.asyncio
    async def test_csv_skips_bad_rows(self, normalizer, scope_de):
        payload = "key,value\ngreeting,Hallo\n,orphan\nfarewell,Tschuss\n"
        result = await normalizer.normalize(payload, scope_de)
        assert result.metadata.data_format == FormatTag.CSV
        assert [(r.key, r.value) for r in result.content] == [
            ("greeting", "Hallo"), ("farewell", "Tschuss"),
        ]

    @pytest.mark.asyncio
    async def test_typescript(self, normalizer, scope_de, ts_payload):
        result = await normalizer.normalize(ts_payload, scope_de)
        assert result.metadata.data_format == FormatTag.TS_MODULE
        assert [r.key for r in result.content] == ["greeting", "farewell"]
        assert result.original == {"greeting": "Hallo", "farewell": "Tschuss"}

    @pytest.mark.asyncio
    async def test_text_does_not_touch_cache(self, normalizer, json_store, scope_de):
        await normalizer.normalize({"a": "1"}, scope_de)
        result = await normalizer.normalize("just some words", scope_de)
        assert result.metadata.data_format == FormatTag.TEXT
        assert result.content == {"content": "just some words"}
        assert result.original == result.content
        assert list(await json_store.load(scope_de)) == ["a"]

    @pytest.mark.asyncio
    async def test_binary(self, normalizer, scope_de):
        result = await normalizer.normalize(b"\xff\xfe\xfd", scope_de)
        assert result.metadata.data_format == FormatTag.BINARY
        assert result.content == {"rawBuffer": "//79"}

    @pytest.mark.asyncio
    async def test_json_scalar_unknown(self, normalizer, scope_de):
        result = await normalizer.normalize("true", scope_de)
        assert result.metadata.data_format == FormatTag.UNKNOWN
        assert result.content is True

    @pytest.mark.asyncio
    async def test_degraded_typescript(self, normalizer, json_store, scope_de):
        text = "export default { a: t('x') };"
        result = await normalizer.normalize(text, scope_de)
        assert result.metadata.data_format == FormatTag.TS_MODULE
        assert result.content == {"content": text, "type": "typescript"}
        assert await json_store.list_scopes() == []


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_deep_json_degrades_to_text(self, normalizer, scope_de):
        text = "[" * 100_000 + "]" * 100_000
        result = await normalizer.normalize(text, scope_de)
        assert result.metadata.data_format == FormatTag.TEXT

    @pytest.mark.asyncio
    async def test_deep_module_degrades(self, normalizer, scope_de):
        text = "export default " + "{a:" * 3000 + "1" + "}" * 3000
        result = await normalizer.normalize(text, scope_de)
        assert result.metadata.data_format == FormatTag.TS_MODULE
        assert result.content == {"content": text, "type": "typescript"}

    @pytest.mark.asyncio
    async def test_naive_cached_timestamps_assumed_utc(
        self, normalizer, json_store, scope_de, t0
    ):
        path = json_store.path_for(scope_de)
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({
            "a": {
                "key": "a", "value": "old", "language": "de",
                "createdAt": "2026-01-01T00:00:00", "updatedAt": "2026-01-01T00:00:00",
            },
        }), encoding="utf-8")
        result = await normalizer.normalize(b'{"a": "new"}', scope_de)
        record = result.content[0]
        assert record.created_at == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert record.updated_at == t0

    @pytest.mark.asyncio
    async def test_naive_clock_assumed_utc(self, json_store, scope_de, t0):
        normalizer = Normalizer(cache_store=json_store, clock=lambda: t0.replace(tzinfo=None))
        await normalizer.normalize({"a": "1"}, scope_de)
        result = await normalizer.normalize({"a": "2"}, scope_de)
        assert result.metadata.downloaded_at == t0

    @pytest.mark.asyncio
    async def test_skipped_rows_in_summary(self, normalizer, scope_de, caplog):
        caplog.set_level(logging.INFO, logger="transnorm")
        await normalizer.normalize([["a", "1"], ["", "2"], "loose"], scope_de)
        assert "1 records, 2 skipped" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_scope_is_fatal(self, normalizer):
        with pytest.raises(FatalNormalizationError):
            await normalizer.normalize("{}", {"languageCode": "de", "projectId": -3})

    @pytest.mark.asyncio
    async def test_store_errors_are_logged(self, clock, scope_de, t0, caplog):
        normalizer = Normalizer(cache_store=RaisingStore(), clock=clock)
        result = await normalizer.normalize({"a": "1"}, scope_de)
        assert result.content[0].created_at == t0
        assert "Cache load" in caplog.text
        assert "not persisted" in caplog.text

    @pytest.mark.asyncio
    async def test_no_store(self, clock, scope_de, t0):
        result = await Normalizer(clock=clock).normalize({"a": "1"}, scope_de)
        assert result.content[0].updated_at == t0

    @pytest.mark.asyncio
    async def test_context_cleared(self, normalizer, scope_de):
        await normalizer.normalize({"a": "1"}, scope_de)
        assert get_context().as_dict() == {}


class TestMirror:
    @pytest.mark.asyncio
    async def test_writer_error_is_logged(self, json_store, clock, scope_de, caplog):
        normalizer = Normalizer(cache_store=json_store, writer=BrokenWriter(), clock=clock)
        result = await normalizer.normalize({"a": "1"}, scope_de)
        assert len(result.content) == 1
        assert "Failed to mirror" in caplog.text
        assert list(await json_store.load(scope_de)) == ["a"]

    @pytest.mark.asyncio
    async def test_file_scope(self, json_store, clock, tmp_path, scope_fr_file):
        out = tmp_path / "out"
        normalizer = Normalizer(cache_store=json_store, writer=LocalWriter(out), clock=clock)
        await normalizer.normalize({"a": "1"}, scope_fr_file)
        data = json.loads((out / "fr" / "file_12.json").read_text(encoding="utf-8"))
        assert data["metadata"]["fileId"] == 12
        assert data["metadata"]["dataFormat"] == "json"
        assert data["content"][0]["key"] == "a"

    @pytest.mark.asyncio
    async def test_project_scope(self, clock, tmp_path, scope_de):
        out = tmp_path / "out"
        normalizer = Normalizer(writer=LocalWriter(out), clock=clock)
        await normalizer.normalize("plain", scope_de)
        data = json.loads((out / "de" / "project_translation.json").read_text(encoding="utf-8"))
        assert "fileId" not in data["metadata"]
        assert data["content"] == {"content": "plain"}

    @pytest.mark.asyncio
    async def test_mirror_failure_logged(self, clock, tmp_path, scope_de, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        normalizer = Normalizer(writer=LocalWriter(blocker), clock=clock)
        result = await normalizer.normalize({"a": "1"}, scope_de)
        assert len(result.content) == 1
        assert "Failed to mirror" in caplog.text


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_same_scope_serialized(self, clock, scope_de):
        store = SlowStore()
        normalizer = Normalizer(cache_store=store, clock=clock)
        await asyncio.gather(
            normalizer.normalize({"a": "1"}, scope_de),
            normalizer.normalize({"b": "2"}, scope_de),
        )
        assert store.max_active == 1
        assert len(normalizer.locks) == 0

    @pytest.mark.asyncio
    async def test_different_scopes_overlap(self, clock, scope_de, scope_fr_file):
        store = SlowStore()
        normalizer = Normalizer(cache_store=store, clock=clock)
        await asyncio.gather(
            normalizer.normalize({"a": "1"}, scope_de),
            normalizer.normalize({"a": "1"}, scope_fr_file),
        )
        assert store.max_active == 2

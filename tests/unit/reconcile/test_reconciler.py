# tests/unit/reconcile/test_reconciler.py — v1
"""Tests for reconcile/reconciler.py."""

from __future__ import annotations

from datetime import timedelta

from transnorm.core.models import CacheRecord, ExtractedEntry
from transnorm.reconcile.reconciler import reconcile


def _entries(*pairs: tuple[str, str]) -> list[ExtractedEntry]:
    return [ExtractedEntry(key=k, value=v) for k, v in pairs]


class TestReconcile:
    def test_all_new(self, t0):
        result = reconcile(_entries(("a", "1"), ("b", "2")), {}, t0, "de")
        assert [r.key for r in result.records] == ["a", "b"]
        assert all(r.created_at == r.updated_at == t0 for r in result.records)
        assert all(r.language == "de" for r in result.records)
        assert result.created == 2

    def test_unchanged_keeps_timestamps(self, t0):
        first = reconcile(_entries(("a", "1")), {}, t0, "de")
        later = t0 + timedelta(days=1)
        second = reconcile(_entries(("a", "1")), first.snapshot, later, "de")
        assert second.records[0].created_at == t0
        assert second.records[0].updated_at == t0
        assert second.unchanged == 1

    def test_changed_bumps_updated_only(self, t0):
        first = reconcile(_entries(("a", "1")), {}, t0, "de")
        later = t0 + timedelta(days=1)
        second = reconcile(_entries(("a", "2")), first.snapshot, later, "de")
        record = second.records[0]
        assert (record.value, record.created_at, record.updated_at) == ("2", t0, later)
        assert second.updated == 1

    def test_removed_keys_dropped(self, t0):
        first = reconcile(_entries(("a", "1"), ("b", "2")), {}, t0, "de")
        second = reconcile(_entries(("b", "2")), first.snapshot, t0, "de")
        assert list(second.snapshot) == ["b"]
        assert second.removed == 1

    def test_order_follows_entries(self, t0):
        first = reconcile(_entries(("a", "1"), ("b", "2")), {}, t0, "de")
        second = reconcile(_entries(("c", "3"), ("b", "2"), ("a", "1")), first.snapshot, t0, "de")
        assert [r.key for r in second.records] == ["c", "b", "a"]
        assert list(second.snapshot) == ["c", "b", "a"]

    def test_clock_skew_clamped(self, t0, caplog):
        future = t0 + timedelta(hours=2)
        previous = {
            "a": CacheRecord(key="a", value="1", created_at=future, updated_at=future, language="de"),
        }
        result = reconcile(_entries(("a", "2")), previous, t0, "de")
        assert result.records[0].updated_at == future
        assert "clamping" in caplog.text

    def test_naive_now_compares_with_cached(self, t0):
        first = reconcile(_entries(("a", "1")), {}, t0, "de")
        later = (t0 + timedelta(hours=1)).replace(tzinfo=None)
        second = reconcile(_entries(("a", "2")), first.snapshot, later, "de")
        assert second.records[0].updated_at == t0 + timedelta(hours=1)

    def test_empty(self, t0):
        result = reconcile([], {}, t0, "de")
        assert result.records == []
        assert result.snapshot == {}

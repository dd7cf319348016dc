# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the key-value store implementations and the repositories on top."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from oncall_rotation.core.database import build_engine
from oncall_rotation.core.errors import StoreError
from oncall_rotation.models.domain import Actor, AuditAction, AuditRecord
from oncall_rotation.repositories.audit_repository import AuditRepository
from oncall_rotation.repositories.kv_store import InMemoryKVStore, SqlKVStore
from oncall_rotation.repositories.schedule_repository import SCHEDULE_KEY, ScheduleRepository


@pytest.fixture(params=["memory", "sqlite"])
def kv(request):
    if request.param == "memory":
        yield InMemoryKVStore()
        return
    store = SqlKVStore(build_engine("sqlite://"))
    store.ensure_schema()
    yield store
    store.dispose()


class TestBasicOps:
    def test_missing_key(self, kv):
        assert kv.get("ONCALL:NOPE") is None

    def test_put_get_overwrite(self, kv):
        kv.put("ONCALL:A", "1")
        kv.put("ONCALL:A", "2")
        assert kv.get("ONCALL:A") == "2"

    def test_delete_is_idempotent(self, kv):
        kv.put("ONCALL:A", "1")
        kv.delete("ONCALL:A")
        kv.delete("ONCALL:A")
        assert kv.get("ONCALL:A") is None


class TestListing:
    def test_prefix_in_key_order(self, kv):
        for key in ("ONCALL:HISTORY:b", "ONCALL:HISTORY:a", "ONCALL:CURRENT", "ONCALL:HISTORY:c"):
            kv.put(key, "{}")
        page = kv.list("ONCALL:HISTORY:")
        assert page.keys == ["ONCALL:HISTORY:a", "ONCALL:HISTORY:b", "ONCALL:HISTORY:c"]
        assert page.done is True
        assert page.next_cursor is None

    def test_cursor_paging(self, kv):
        for i in range(5):
            kv.put(f"ONCALL:HISTORY:{i}", "{}")
        first = kv.list("ONCALL:HISTORY:", limit=2)
        assert first.keys == ["ONCALL:HISTORY:0", "ONCALL:HISTORY:1"]
        assert first.done is False
        second = kv.list("ONCALL:HISTORY:", cursor=first.next_cursor, limit=2)
        assert second.keys == ["ONCALL:HISTORY:2", "ONCALL:HISTORY:3"]
        third = kv.list("ONCALL:HISTORY:", cursor=second.next_cursor, limit=2)
        assert third.keys == ["ONCALL:HISTORY:4"]
        assert third.done is True

    def test_iter_keys_walks_all_pages(self, kv):
        for i in range(7):
            kv.put(f"ONCALL:ROSTER:d{i}", "[]")
        assert len(kv.iter_keys("ONCALL:ROSTER:")) == 7

    def test_wildcard_characters_are_literal(self, kv):
        kv.put("ONCALL:X_1", "{}")
        kv.put("ONCALL:XA1", "{}")
        kv.put("ONCALL:X%2", "{}")
        assert kv.iter_keys("ONCALL:X_") == ["ONCALL:X_1"]
        assert kv.iter_keys("ONCALL:X%") == ["ONCALL:X%2"]


class TestSqlStore:
    def test_broken_engine_raises_store_error(self):
        store = SqlKVStore(build_engine("sqlite://"))
        with pytest.raises(StoreError):
            store.get("ONCALL:SCHEDULE")

    def test_updated_at_is_written(self):
        engine = build_engine("sqlite://")
        store = SqlKVStore(engine)
        store.ensure_schema()
        store.put("ONCALL:A", "1")
        with engine.connect() as conn:
            updated_at = conn.execute(
                text("SELECT updated_at FROM kv_store WHERE key = 'ONCALL:A'")
            ).scalar()
        assert updated_at

    def test_overwrite_keeps_one_row(self):
        engine = build_engine("sqlite://")
        store = SqlKVStore(engine)
        store.ensure_schema()
        store.put("ONCALL:AUDIT", "[1]")
        store.put("ONCALL:AUDIT", "[2]")
        store.put("ONCALL:AUDIT", "[3]")
        assert store.get("ONCALL:AUDIT") == "[3]"
        with engine.connect() as conn:
            rows = conn.execute(
                text("SELECT COUNT(*) FROM kv_store WHERE key = 'ONCALL:AUDIT'")
            ).scalar()
        assert rows == 1


class TestRepositories:
    def test_corrupt_schedule_is_store_error(self, kv):
        kv.put(SCHEDULE_KEY, '{"version": "not-a-number"}')
        with pytest.raises(StoreError):
            ScheduleRepository(kv).get_schedule()

    def test_audit_log_is_capped_newest_first(self, kv):
        repo = AuditRepository(kv, max_size=3)
        for i in range(5):
            repo.prepend(
                AuditRecord(
                    ts=datetime(2024, 1, 1, i, tzinfo=timezone.utc),
                    actor=Actor.ADMIN,
                    action=AuditAction.SCHEDULE_SAVED,
                    payload={"n": i},
                )
            )
        records = repo.get_all()
        assert [r.payload["n"] for r in records] == [4, 3, 2]
        assert repo.count() == 3

    def test_audit_cap_of_zero_keeps_nothing(self, kv):
        repo = AuditRepository(kv, max_size=0)
        repo.prepend(
            AuditRecord(
                ts=datetime(2024, 1, 1, tzinfo=timezone.utc),
                actor=Actor.ADMIN,
                action=AuditAction.SCHEDULE_SAVED,
            )
        )
        assert repo.get_all() == []

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the schedule store: save, CURRENT, HISTORY, revert and restore."""

from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import TZ, make_roster
from oncall_rotation.core.errors import NotFoundError, ValidationError
from oncall_rotation.models.domain import (
    Actor,
    AuditAction,
    Channel,
    NotifyState,
    NotifyType,
    Person,
    Schedule,
    ScheduleEntry,
)

ALICE = Person(name="Alice Martin", email="alice@example.com", phone="+15550000001")


def entry(entry_id, start, end):
    return ScheduleEntry(id=entry_id, start=start, end=end, departments={"enterprise_network": ALICE})


PAST = entry("wk-past", datetime(2023, 12, 22, 16), datetime(2023, 12, 29, 7))
ACTIVE = entry("wk-active", datetime(2023, 12, 29, 16), datetime(2024, 1, 5, 7))
NEXT = entry("wk-next", datetime(2024, 1, 5, 16), datetime(2024, 1, 12, 7))


def schedule(*entries):
    return Schedule(timezone=TZ, entries=list(entries))


class TestSave:
    def test_first_save_is_version_one(self, schedule_service, clock):
        saved = schedule_service.save(schedule(ACTIVE, NEXT), updated_by="admin")
        assert saved.version == 1
        assert saved.updated_by == "admin"
        assert saved.updated_at == clock.now()

    def test_version_increments_on_each_save(self, schedule_service):
        schedule_service.save(schedule(NEXT))
        assert schedule_service.save(schedule(NEXT)).version == 2

    def test_entries_are_sorted(self, schedule_service):
        saved = schedule_service.save(schedule(NEXT, ACTIVE))
        assert [e.id for e in saved.entries] == ["wk-active", "wk-next"]

    def test_aware_times_become_local(self, schedule_service):
        utc_entry = ScheduleEntry(
            id="wk-utc",
            start=datetime(2024, 1, 5, 22, 0, tzinfo=timezone.utc),
            end=datetime(2024, 1, 12, 13, 0, tzinfo=timezone.utc),
        )
        saved = schedule_service.save(schedule(utc_entry))
        assert saved.entries[0].start == datetime(2024, 1, 5, 16, 0)
        assert saved.entries[0].end == datetime(2024, 1, 12, 7, 0)

    def test_save_is_audited(self, schedule_service, audit):
        schedule_service.save(schedule(NEXT))
        record = audit.read()[0]
        assert record.action == AuditAction.SCHEDULE_SAVED
        assert record.actor == Actor.ADMIN
        assert record.payload["version"] == 1


class TestValidation:
    def test_start_must_precede_end(self, schedule_service):
        bad = entry("wk-bad", datetime(2024, 1, 5, 16), datetime(2024, 1, 5, 16))
        with pytest.raises(ValidationError):
            schedule_service.save(schedule(bad))

    def test_overlap_rejected(self, schedule_service):
        overlapping = entry("wk-overlap", datetime(2024, 1, 10, 0), datetime(2024, 1, 15, 0))
        with pytest.raises(ValidationError):
            schedule_service.save(schedule(NEXT, overlapping))

    def test_duplicate_ids_rejected(self, schedule_service):
        dup = entry("wk-next", datetime(2024, 1, 12, 16), datetime(2024, 1, 19, 7))
        with pytest.raises(ValidationError):
            schedule_service.save(schedule(NEXT, dup))

    def test_unknown_timezone_rejected(self, schedule_service):
        with pytest.raises(ValidationError):
            schedule_service.save(Schedule(timezone="Mars/Olympus", entries=[NEXT]))

    def test_rejected_save_writes_nothing(self, schedule_service, schedule_repo):
        bad = entry("wk-bad", datetime(2024, 1, 5, 16), datetime(2024, 1, 4, 16))
        with pytest.raises(ValidationError):
            schedule_service.save(schedule(PAST, bad))
        assert schedule_repo.get_schedule() is None
        assert schedule_repo.list_snapshot_ids() == []


class TestArchive:
    def test_concluded_entry_archived_once(self, schedule_service, schedule_repo, clock):
        schedule_service.save(schedule(PAST, ACTIVE))
        snapshot = schedule_repo.get_snapshot("wk-past")
        assert snapshot is not None
        assert snapshot.archived_at == clock.now()
        assert schedule_repo.list_snapshot_ids() == ["wk-past"]

        clock.set(clock.now() + timedelta(hours=1))
        schedule_service.save(schedule(PAST, ACTIVE))
        assert schedule_repo.list_snapshot_ids() == ["wk-past"]
        assert schedule_repo.get_snapshot("wk-past").archived_at == snapshot.archived_at

    def test_snapshot_is_write_once(self, schedule_service, schedule_repo):
        schedule_service.save(schedule(PAST))
        renamed = PAST.model_copy(
            update={"departments": {"enterprise_network": Person(name="Someone Else")}}
        )
        schedule_service.save(schedule(renamed))
        kept = schedule_repo.get_snapshot("wk-past")
        assert kept.entry.departments["enterprise_network"].name == "Alice Martin"

    def test_entry_ending_exactly_now_is_archived(self, schedule_service, schedule_repo, clock):
        clock.set(datetime(2024, 1, 5, 7, 0))
        schedule_service.save(schedule(ACTIVE, NEXT))
        assert schedule_repo.snapshot_exists("wk-active")
        assert not schedule_repo.snapshot_exists("wk-next")

    def test_history_listing_newest_first(self, schedule_service, clock):
        clock.set(datetime(2024, 1, 20))
        schedule_service.save(schedule(PAST, ACTIVE, NEXT))
        history = schedule_service.list_history()
        assert [s.entry.id for s in history] == ["wk-next", "wk-active", "wk-past"]

    def test_get_history_missing(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.get_history("nope")


class TestCurrent:
    def test_current_contains_now(self, schedule_service, schedule_repo):
        schedule_service.save(schedule(PAST, ACTIVE, NEXT))
        current = schedule_repo.get_current()
        assert current.entry.id == "wk-active"
        assert current.entry.start <= datetime(2024, 1, 1, 8) < current.entry.end

    def test_gap_between_entries_has_no_current(self, schedule_service, schedule_repo, clock):
        clock.set(datetime(2024, 1, 5, 10, 0))
        schedule_service.save(schedule(ACTIVE, NEXT))
        assert schedule_repo.get_current() is None
        assert schedule_service.get_current() is None

    def test_stale_current_is_recomputed_on_read(self, schedule_service, clock):
        schedule_service.save(schedule(ACTIVE, NEXT))
        clock.set(datetime(2024, 1, 6, 12, 0))
        assert schedule_service.get_current().entry.id == "wk-next"

    def test_no_schedule_means_no_current(self, schedule_service):
        assert schedule_service.get_current() is None


class TestRevert:
    def test_revert_restores_previous(self, schedule_service):
        schedule_service.save(schedule(ACTIVE, NEXT))
        schedule_service.save(schedule(NEXT))
        reverted = schedule_service.revert()
        assert [e.id for e in reverted.entries] == ["wk-active", "wk-next"]
        assert reverted.version == 3
        assert schedule_service.get_current().entry.id == "wk-active"

    def test_revert_is_single_level(self, schedule_service):
        schedule_service.save(schedule(ACTIVE))
        schedule_service.save(schedule(NEXT))
        schedule_service.revert()
        with pytest.raises(NotFoundError):
            schedule_service.revert()

    def test_revert_without_previous(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.revert()

    def test_revert_is_audited(self, schedule_service, audit):
        schedule_service.save(schedule(ACTIVE))
        schedule_service.save(schedule(NEXT))
        schedule_service.revert()
        assert audit.read()[0].action == AuditAction.SCHEDULE_REVERTED


class TestRestore:
    def test_restore_puts_archived_entry_back(self, schedule_service):
        schedule_service.save(schedule(PAST, ACTIVE))
        schedule_service.save(schedule(ACTIVE))
        restored = schedule_service.restore_from_history("wk-past")
        assert [e.id for e in restored.entries] == ["wk-past", "wk-active"]
        assert restored.updated_by == "admin-restore"

    def test_restore_replaces_same_id(self, schedule_service):
        schedule_service.save(schedule(PAST))
        edited = PAST.model_copy(
            update={"departments": {"enterprise_network": Person(name="Someone Else")}}
        )
        schedule_service.save(schedule(edited))
        restored = schedule_service.restore_from_history("wk-past")
        assert len(restored.entries) == 1
        assert restored.entries[0].departments["enterprise_network"].name == "Alice Martin"

    def test_restore_unknown_entry(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.restore_from_history("missing")

    def test_restore_overlapping_entry_rejected(self, schedule_service):
        schedule_service.save(schedule(PAST))
        clash = entry("wk-clash", datetime(2023, 12, 25), datetime(2023, 12, 31))
        schedule_service.save(schedule(clash))
        with pytest.raises(ValidationError):
            schedule_service.restore_from_history("wk-past")

    def test_restore_is_audited(self, schedule_service, audit):
        schedule_service.save(schedule(PAST))
        schedule_service.restore_from_history("wk-past")
        record = audit.read()[0]
        assert record.action == AuditAction.SCHEDULE_RESTORED
        assert record.payload["entry_id"] == "wk-past"


class TestReads:
    def test_get_schedule_missing(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.get_schedule()

    def test_include_notify_state(self, schedule_service, notify_states, clock):
        schedule_service.save(schedule(NEXT))
        notify_states.save(
            NotifyState(
                entry_id="wk-next",
                channel=Channel.EMAIL,
                notify_type=NotifyType.UPCOMING,
                sent_at=clock.now(),
            )
        )
        plain = schedule_service.get_schedule()
        assert plain.entries[0].notifications is None
        enriched = schedule_service.get_schedule(include_notify_state=True)
        assert enriched.entries[0].notifications[0].channel == Channel.EMAIL


class TestGenerateAndSave:
    def test_persists_and_audits(self, schedule_service, audit):
        result = schedule_service.generate_and_save(make_roster(), date(2024, 1, 1), date(2024, 1, 21))
        assert result.schedule.version == 1
        assert len(schedule_service.get_schedule().entries) == 3
        assert audit.read()[0].action == AuditAction.SCHEDULE_GENERATED

    def test_preview_does_not_persist(self, schedule_service, audit):
        result = schedule_service.generate_and_save(
            make_roster(), date(2024, 1, 1), date(2024, 1, 21), persist=False
        )
        assert len(result.schedule.entries) == 3
        assert schedule_service.find_schedule() is None
        assert audit.read() == []

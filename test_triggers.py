# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for driving events, roster management and the audit service."""

from datetime import date, datetime

import pytest

from conftest import TZ, make_roster
from oncall_rotation.core.errors import NotFoundError, ValidationError
from oncall_rotation.models.domain import (
    Actor,
    AuditAction,
    CronHint,
    NotifyMode,
    Person,
    Schedule,
    ScheduleEntry,
)
from oncall_rotation.services.triggers import (
    GenerateSchedule,
    NotifyEntries,
    RestoreEntry,
    RevertSchedule,
    SaveRoster,
    SaveSchedule,
    TimeTick,
    TriggerService,
)


def one_week(tz_name):
    return Schedule(
        timezone=tz_name,
        entries=[ScheduleEntry(id="wk", start=datetime(2024, 1, 5, 22), end=datetime(2024, 1, 12, 13))],
    )


@pytest.fixture
def triggers(schedule_service, roster_service, dispatch_service):
    return TriggerService(schedule_service, roster_service, dispatch_service, default_timezone=TZ)


class TestAdminCommands:
    def test_roster_then_generate(self, triggers, schedule_service):
        triggers.on_admin_command(SaveRoster(roster=make_roster()))
        result = triggers.on_admin_command(
            GenerateSchedule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 21))
        )
        assert len(result.schedule.entries) == 3
        assert schedule_service.get_schedule().version == 1

    def test_save_uses_existing_timezone(self, triggers, schedule_service):
        schedule_service.save(one_week("UTC"))
        saved = triggers.on_admin_command(SaveSchedule(entries=[]))
        assert saved.timezone == "UTC"

    def test_save_defaults_timezone(self, triggers):
        saved = triggers.on_admin_command(SaveSchedule(entries=[]))
        assert saved.timezone == TZ

    def test_revert_and_restore_route_to_store(self, triggers, schedule_service):
        triggers.on_admin_command(SaveRoster(roster=make_roster()))
        triggers.on_admin_command(
            GenerateSchedule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 21))
        )
        triggers.on_admin_command(SaveSchedule(entries=[]))
        reverted = triggers.on_admin_command(RevertSchedule())
        assert len(reverted.entries) == 3
        with pytest.raises(NotFoundError):
            triggers.on_admin_command(RestoreEntry(entry_id="never-archived"))

    def test_notify_routes_to_dispatch(self, triggers, channel):
        triggers.on_admin_command(SaveRoster(roster=make_roster()))
        triggers.on_admin_command(
            GenerateSchedule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 21))
        )
        result = triggers.on_admin_command(NotifyEntries(mode=NotifyMode.EMAIL))
        assert result.trigger == "manual"
        assert len(channel.emails) == 1

    def test_unknown_command(self, triggers):
        with pytest.raises(TypeError):
            triggers.on_admin_command(object())


class TestTimeTick:
    def test_tick_runs_dispatch(self, triggers, channel):
        triggers.on_admin_command(SaveRoster(roster=make_roster()))
        triggers.on_admin_command(
            GenerateSchedule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 21))
        )
        result = triggers.on_time_tick()
        assert result.cron_hint == CronHint.MONDAY
        assert len(channel.emails) == 1

    def test_dry_run_tick(self, triggers, channel):
        triggers.on_admin_command(SaveRoster(roster=make_roster()))
        triggers.on_admin_command(
            GenerateSchedule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 21))
        )
        result = triggers.on_time_tick(TimeTick(dry_run=True))
        assert result.dry_run is True
        assert channel.emails == []


class TestRosterService:
    def test_removed_department_is_deleted(self, roster_service):
        roster_service.save_roster(make_roster())
        roster = roster_service.save_roster({"collaboration": make_roster()["collaboration"]})
        assert roster["enterprise_network"] == []
        assert roster["collaboration"][0].name == "Carol Chen"

    def test_name_required(self, roster_service):
        with pytest.raises(ValidationError):
            roster_service.save_roster({"collaboration": [Person(name="  ")]})

    def test_department_key_format(self, roster_service):
        with pytest.raises(ValidationError):
            roster_service.save_roster({"Not A Key": []})

    def test_phone_optional(self, roster_service):
        roster = roster_service.save_roster({"collaboration": [Person(name="Dana", email="dana@example.com")]})
        assert roster["collaboration"][0].phone == ""


class TestAuditService:
    def test_read_filters_by_prefix_and_actor(self, audit):
        audit.record(Actor.ADMIN, AuditAction.ROSTER_SAVED)
        audit.record(Actor.SYSTEM, AuditAction.AUTO_NOTIFY_FRIDAY, targets=[])
        audit.record(Actor.ADMIN, AuditAction.MANUAL_NOTIFY_ENTRY, entry_id="wk")
        assert [r.action for r in audit.read(action_prefix="AUTO_")] == [AuditAction.AUTO_NOTIFY_FRIDAY]
        assert len(audit.read(actor=Actor.ADMIN)) == 2
        assert len(audit.read(limit=1)) == 1

    def test_cron_health_ignores_admin_actions(self, audit, clock):
        audit.record(Actor.ADMIN, AuditAction.MANUAL_NOTIFY_ACTIVE)
        health = audit.cron_health()
        assert health["last_run"] is None
        audit.record(Actor.SYSTEM, AuditAction.AUTO_NOTIFY_MONDAY_BLOCKED_WINDOW)
        health = audit.cron_health()
        assert health["last_run"].action == AuditAction.AUTO_NOTIFY_MONDAY_BLOCKED_WINDOW
        assert health["last_run"].ts == clock.now()

    def test_cron_health_keeps_last_ten(self, audit):
        for _ in range(12):
            audit.record(Actor.SYSTEM, AuditAction.AUTO_NOTIFY_FRIDAY)
        assert audit.cron_health()["count"] == 10

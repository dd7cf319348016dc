# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Driving events.
Everything that mutates state enters here, either as a timer tick or as an
admin command, and is routed to the generator, store, or dispatch engine.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from oncall_rotation.core.logging import get_logger
from oncall_rotation.models.domain import DispatchResult, NotifyMode, Schedule, ScheduleEntry
from oncall_rotation.services.dispatch_service import DispatchService
from oncall_rotation.services.roster_service import RosterService
from oncall_rotation.services.schedule_service import ScheduleService

logger = get_logger(__name__)


# ── Events ──

@dataclass(frozen=True)
class TimeTick:
    dry_run: bool = False


@dataclass(frozen=True)
class GenerateSchedule:
    start_date: Optional[date]
    end_date: Optional[date]
    seed_index: int = 0
    rotation_index: Optional[dict[str, int]] = None
    persist: bool = True


@dataclass(frozen=True)
class SaveSchedule:
    entries: list[ScheduleEntry] = field(default_factory=list)
    timezone: Optional[str] = None


@dataclass(frozen=True)
class RevertSchedule:
    pass


@dataclass(frozen=True)
class RestoreEntry:
    entry_id: str


@dataclass(frozen=True)
class NotifyEntries:
    entry_id: Optional[str] = None
    mode: NotifyMode = NotifyMode.BOTH
    force: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class SaveRoster:
    roster: dict[str, list[Any]] = field(default_factory=dict)


class TriggerService:
    """Routes driving events to the component that handles them."""

    def __init__(
        self,
        schedule_service: ScheduleService,
        roster_service: RosterService,
        dispatch_service: DispatchService,
        default_timezone: str,
    ) -> None:
        self._schedules = schedule_service
        self._roster = roster_service
        self._dispatch = dispatch_service
        self._default_timezone = default_timezone
        self._handlers = {
            GenerateSchedule: self._generate,
            SaveSchedule: self._save,
            RevertSchedule: lambda _: self._schedules.revert(),
            RestoreEntry: lambda cmd: self._schedules.restore_from_history(cmd.entry_id),
            NotifyEntries: self._notify,
            SaveRoster: lambda cmd: self._roster.save_roster(cmd.roster),
        }

    def on_time_tick(self, tick: Optional[TimeTick] = None) -> DispatchResult:
        return self._dispatch.run_tick(dry_run=(tick or TimeTick()).dry_run)

    def on_admin_command(self, command: Any) -> Any:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported admin command: {type(command).__name__}")
        logger.info("Admin command: %s", type(command).__name__)
        return handler(command)

    # ── Handlers ──

    def _generate(self, cmd: GenerateSchedule):
        return self._schedules.generate_and_save(
            self._roster.get_roster(),
            cmd.start_date,
            cmd.end_date,
            seed_index=cmd.seed_index,
            rotation_index=cmd.rotation_index,
            persist=cmd.persist,
        )

    def _save(self, cmd: SaveSchedule) -> Schedule:
        current = self._schedules.find_schedule()
        tz_name = cmd.timezone or (current.timezone if current else self._default_timezone)
        return self._schedules.save(Schedule(timezone=tz_name, entries=list(cmd.entries)))

    def _notify(self, cmd: NotifyEntries) -> DispatchResult:
        return self._dispatch.notify(
            entry_id=cmd.entry_id,
            mode=cmd.mode,
            force=cmd.force,
            dry_run=cmd.dry_run,
        )

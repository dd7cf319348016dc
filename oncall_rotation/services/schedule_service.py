# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Schedule Store — business rules over the schedule projections.
Every write goes archive -> previous -> full -> current.
"""

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from oncall_rotation.core.clock import Clock, get_zone, localize, to_local
from oncall_rotation.core.errors import ConfigurationError, NotFoundError, ValidationError
from oncall_rotation.core.logging import get_logger
from oncall_rotation.metrics.prometheus import (
    ENTRIES_ARCHIVED,
    SCHEDULE_ENTRIES,
    SCHEDULE_SAVES,
)
from oncall_rotation.models.domain import (
    Actor,
    AuditAction,
    CurrentEntry,
    HistorySnapshot,
    Schedule,
    ScheduleEntry,
)
from oncall_rotation.repositories.notify_state_repository import NotifyStateRepository
from oncall_rotation.repositories.schedule_repository import ScheduleRepository
from oncall_rotation.services import rotation
from oncall_rotation.services.audit_service import AuditService

logger = get_logger(__name__)

RESTORE_ACTOR = "admin-restore"


def _local_naive(value, tz_name: str):
    return to_local(value, tz_name) if value.tzinfo is not None else value


class ScheduleService:
    """Owns SCHEDULE, PREVIOUS, CURRENT and HISTORY writes."""

    def __init__(
        self,
        schedule_repo: ScheduleRepository,
        notify_state_repo: NotifyStateRepository,
        audit: AuditService,
        clock: Clock,
    ) -> None:
        self._schedules = schedule_repo
        self._notify_states = notify_state_repo
        self._audit = audit
        self._clock = clock

    # ── Commands ──

    def save(self, schedule: Schedule, updated_by: str = "admin") -> Schedule:
        """Persist a full schedule. Raises ValidationError on bad entries."""
        saved = self._persist(schedule, updated_by, source="save")
        self._audit.record(
            Actor.ADMIN,
            AuditAction.SCHEDULE_SAVED,
            version=saved.version,
            entries=len(saved.entries),
            updated_by=updated_by,
        )
        return saved

    def generate_and_save(
        self,
        roster: Mapping[str, Sequence[Any]],
        start_date: Optional[date],
        end_date: Optional[date],
        seed_index: int = 0,
        rotation_index: Optional[Mapping[str, int]] = None,
        persist: bool = True,
        updated_by: str = "admin",
    ) -> rotation.RotationResult:
        """Generate a rotation; with `persist` it goes through the save path."""
        result = rotation.generate(
            roster,
            start_date,
            end_date,
            seed_index=seed_index,
            tz_name=self._clock.tz_name,
            rotation_index=rotation_index,
        )
        if not persist:
            return result

        result.schedule = self._persist(result.schedule, updated_by, source="generate")
        self._audit.record(
            Actor.ADMIN,
            AuditAction.SCHEDULE_GENERATED,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            seed_index=seed_index,
            entries=len(result.schedule.entries),
            version=result.schedule.version,
        )
        return result

    def revert(self, updated_by: str = "admin") -> Schedule:
        """Single-level undo: PREVIOUS becomes SCHEDULE and is consumed."""
        previous = self._schedules.get_previous()
        if previous is None:
            raise NotFoundError("No previous schedule version to revert to")

        replaced = self._schedules.get_schedule()
        base_version = replaced.version if replaced is not None else previous.version
        now = self._clock.now()
        self._archive_concluded(previous.entries, previous.timezone, updated_by)
        restored = previous.model_copy(
            update={
                "version": base_version + 1,
                "updated_at": now,
                "updated_by": updated_by,
            }
        )
        self._schedules.save_schedule(restored)
        self._schedules.delete_previous()
        self._refresh_current(restored)

        SCHEDULE_SAVES.labels(source="revert").inc()
        SCHEDULE_ENTRIES.set(len(restored.entries))
        self._audit.record(
            Actor.ADMIN,
            AuditAction.SCHEDULE_REVERTED,
            from_version=base_version,
            to_version=restored.version,
        )
        logger.info("Schedule reverted: version=%d", restored.version)
        return restored

    def restore_from_history(self, entry_id: str) -> Schedule:
        """Put an archived entry back into the schedule through the save path."""
        snapshot = self._schedules.get_snapshot(entry_id)
        if snapshot is None:
            raise NotFoundError(f"No history snapshot for entry '{entry_id}'")

        schedule = self._schedules.get_schedule() or Schedule(timezone=snapshot.timezone)
        entry = snapshot.entry
        if snapshot.timezone != schedule.timezone:
            entry = entry.model_copy(
                update={
                    "start": to_local(localize(entry.start, snapshot.timezone), schedule.timezone),
                    "end": to_local(localize(entry.end, snapshot.timezone), schedule.timezone),
                }
            )
        entries = [e for e in schedule.entries if e.id != entry_id] + [entry]
        saved = self._persist(
            schedule.model_copy(update={"entries": entries}),
            RESTORE_ACTOR,
            source="restore",
        )
        self._audit.record(
            Actor.ADMIN,
            AuditAction.SCHEDULE_RESTORED,
            entry_id=entry_id,
            version=saved.version,
        )
        return saved

    def refresh_current(self) -> Optional[CurrentEntry]:
        """Recompute CURRENT from the stored schedule."""
        schedule = self._schedules.get_schedule()
        if schedule is None:
            self._schedules.delete_current()
            return None
        return self._refresh_current(schedule)

    # ── Queries ──

    def get_schedule(self, include_notify_state: bool = False) -> Schedule:
        schedule = self._schedules.get_schedule()
        if schedule is None:
            raise NotFoundError("No schedule has been saved yet")
        if include_notify_state:
            schedule.entries = [
                e.model_copy(update={"notifications": self._notify_states.list_for_entry(e.id)})
                for e in schedule.entries
            ]
        return schedule

    def find_schedule(self) -> Optional[Schedule]:
        return self._schedules.get_schedule()

    def get_current(self) -> Optional[CurrentEntry]:
        """CURRENT, recomputed when the stored projection no longer contains now."""
        current = self._schedules.get_current()
        if current is not None:
            now = to_local(self._clock.now(), current.timezone)
            if current.entry.start <= now < current.entry.end:
                return current
        return self.refresh_current()

    def list_history(self) -> list[HistorySnapshot]:
        snapshots = [
            s for s in (self._schedules.get_snapshot(i) for i in self._schedules.list_snapshot_ids())
            if s is not None
        ]
        snapshots.sort(key=lambda s: s.entry.start, reverse=True)
        return snapshots

    def get_history(self, entry_id: str) -> HistorySnapshot:
        snapshot = self._schedules.get_snapshot(entry_id)
        if snapshot is None:
            raise NotFoundError(f"No history snapshot for entry '{entry_id}'")
        return snapshot

    # ── Internals ──

    def _persist(self, schedule: Schedule, updated_by: str, source: str) -> Schedule:
        tz_name = schedule.timezone or self._clock.tz_name
        try:
            get_zone(tz_name)
        except ConfigurationError as exc:
            raise ValidationError(f"Unknown timezone '{tz_name}'") from exc
        entries = self._validate_entries(schedule.entries, tz_name)

        self._archive_concluded(entries, tz_name, updated_by)

        previous = self._schedules.get_schedule()
        if previous is not None:
            self._schedules.save_previous(previous)

        saved = Schedule(
            version=previous.version + 1 if previous is not None else 1,
            timezone=tz_name,
            updated_at=self._clock.now(),
            updated_by=updated_by,
            entries=entries,
        )
        self._schedules.save_schedule(saved)
        self._refresh_current(saved)

        SCHEDULE_SAVES.labels(source=source).inc()
        SCHEDULE_ENTRIES.set(len(entries))
        logger.info(
            "Schedule saved: version=%d, entries=%d, by=%s",
            saved.version, len(entries), updated_by,
        )
        return saved

    @staticmethod
    def _validate_entries(entries: list[ScheduleEntry], tz_name: str) -> list[ScheduleEntry]:
        """Local naive times, sorted by start, no overlaps, no duplicate ids."""
        normalized = sorted(
            (
                e.model_copy(
                    update={
                        "start": _local_naive(e.start, tz_name),
                        "end": _local_naive(e.end, tz_name),
                        "notifications": None,
                    }
                )
                for e in entries
            ),
            key=lambda e: e.start,
        )
        seen: set[str] = set()
        for i, entry in enumerate(normalized):
            if entry.start >= entry.end:
                raise ValidationError(f"Entry '{entry.id}' must start before it ends")
            if entry.id in seen:
                raise ValidationError(f"Duplicate entry id '{entry.id}'")
            seen.add(entry.id)
            if i and entry.start < normalized[i - 1].end:
                raise ValidationError(
                    f"Entry '{entry.id}' overlaps entry '{normalized[i - 1].id}'"
                )
        return normalized

    def _archive_concluded(
        self, entries: list[ScheduleEntry], tz_name: str, archived_by: str
    ) -> list[str]:
        """Write-once snapshot for every concluded entry not yet archived."""
        now = self._clock.now()
        local_now = to_local(now, tz_name)
        archived = []
        for entry in entries:
            if entry.end > local_now or self._schedules.snapshot_exists(entry.id):
                continue
            self._schedules.save_snapshot(
                HistorySnapshot(
                    entry=entry.model_copy(update={"notifications": None}),
                    timezone=tz_name,
                    archived_at=now,
                    archived_by=archived_by,
                )
            )
            ENTRIES_ARCHIVED.inc()
            archived.append(entry.id)
        if archived:
            logger.info("Archived concluded entries: %s", ", ".join(archived))
        return archived

    def _refresh_current(self, schedule: Schedule) -> Optional[CurrentEntry]:
        now = self._clock.now()
        local_now = to_local(now, schedule.timezone)
        for entry in schedule.entries:
            if entry.start <= local_now < entry.end:
                current = CurrentEntry(
                    entry=entry.model_copy(update={"notifications": None}),
                    timezone=schedule.timezone,
                    computed_at=now,
                )
                self._schedules.save_current(current)
                return current
        self._schedules.delete_current()
        return None

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation logic — pure computation, no side effects.
Builds weekly entries from a roster. Persistence is ScheduleService's job.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import NotFoundError, ValidationError
from oncall_rotation.models.domain import Person, Schedule, ScheduleEntry

ANCHOR_WEEKDAY = 4  # Friday, date.weekday() numbering


@dataclass
class RotationResult:
    schedule: Schedule
    # Per-department counter after the last generated week; pass it back as
    # `rotation_index` to continue the rotation seamlessly.
    rotation_index: dict[str, int] = field(default_factory=dict)


def next_anchor(day: date, anchor_weekday: int = ANCHOR_WEEKDAY) -> date:
    """First `anchor_weekday` on or after `day`."""
    return day + timedelta(days=(anchor_weekday - day.weekday()) % 7)


def _new_entry_id() -> str:
    return uuid.uuid4().hex


def generate(
    roster: Optional[Mapping[str, Sequence[Any]]],
    start_date: Optional[date],
    end_date: Optional[date],
    seed_index: int = 0,
    tz_name: Optional[str] = None,
    rotation_index: Optional[Mapping[str, int]] = None,
    id_factory: Callable[[], str] = _new_entry_id,
) -> RotationResult:
    """
    One entry per anchor weekday in [start_date, end_date]: start at
    ROTATION_START_HOUR on that day, end at ROTATION_END_HOUR seven days
    later. Each department with people advances its own counter by one per
    week, wrapping over its roster length; empty departments are skipped.
    """
    if start_date is None or end_date is None:
        raise ValidationError("start_date and end_date are required")
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    people_by_dept: dict[str, list[Person]] = {
        dept: [Person.model_validate(p) for p in (people or [])]
        for dept, people in (roster or {}).items()
    }
    if not any(people_by_dept.values()):
        raise NotFoundError("No roster available to generate a schedule from")

    counters = {
        dept: (rotation_index or {}).get(dept, seed_index) for dept in people_by_dept
    }
    start_at = time(hour=settings.ROTATION_START_HOUR)
    end_at = time(hour=settings.ROTATION_END_HOUR)

    entries: list[ScheduleEntry] = []
    cursor = next_anchor(start_date)
    while cursor <= end_date:
        departments: dict[str, Person] = {}
        for dept, people in people_by_dept.items():
            if not people:
                continue
            departments[dept] = people[counters[dept] % len(people)].model_copy()
            counters[dept] += 1

        entries.append(
            ScheduleEntry(
                id=id_factory(),
                start=datetime.combine(cursor, start_at),
                end=datetime.combine(cursor + timedelta(days=7), end_at),
                departments=departments,
            )
        )
        cursor += timedelta(days=7)

    schedule = Schedule(timezone=tz_name or settings.TIMEZONE, entries=entries)
    return RotationResult(schedule=schedule, rotation_index=counters)

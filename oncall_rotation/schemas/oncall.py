# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from oncall_rotation.models.domain import (
    AuditRecord,
    HistorySnapshot,
    NotifyMode,
    Person,
    Schedule,
    ScheduleEntry,
)


# ── Roster Schemas ──

class RosterPayload(BaseModel):
    departments: dict[str, list[Person]] = Field(
        ..., description="Department key -> people in rotation order"
    )


class RosterResponse(BaseModel):
    departments: dict[str, list[Person]]
    labels: dict[str, str]


# ── Schedule Schemas ──

class ScheduleSaveRequest(BaseModel):
    entries: list[ScheduleEntry] = Field(default_factory=list)
    timezone: Optional[str] = Field(default=None, description="IANA zone name")


class GenerateRequest(BaseModel):
    start_date: date
    end_date: date
    seed_index: int = Field(default=0, ge=0)
    rotation_index: Optional[dict[str, int]] = Field(
        default=None, description="Per-department counters from a previous run"
    )
    persist: bool = True


class GenerateResponse(BaseModel):
    persisted: bool
    schedule: Schedule
    rotation_index: dict[str, int]


class HistoryListResponse(BaseModel):
    count: int
    snapshots: list[HistorySnapshot]


# ── Notify Schemas ──

class NotifyRequest(BaseModel):
    entry_id: Optional[str] = Field(default=None, min_length=1)
    mode: NotifyMode = NotifyMode.BOTH
    force: bool = False
    dry_run: bool = False


class NotifyStatusResponse(BaseModel):
    entries: dict[str, dict[str, Any]]


# ── Public Schemas ──

class CurrentResponse(BaseModel):
    entry: Optional[ScheduleEntry] = None
    timezone: Optional[str] = None
    computed_at: Optional[datetime] = None


class TodayResponse(BaseModel):
    match: bool
    department: str
    label: str
    person: Optional[Person] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class AuditListResponse(BaseModel):
    count: int
    records: list[AuditRecord]


class CronHealthResponse(BaseModel):
    last_run: Optional[AuditRecord] = None
    runs: list[AuditRecord]
    count: int

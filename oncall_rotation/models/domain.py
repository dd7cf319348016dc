# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
These are also the persisted shapes: every repository stores their JSON.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class NotifyType(str, Enum):
    UPCOMING = "UPCOMING"
    START_TODAY = "START_TODAY"


class NotifyMode(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"

    @property
    def includes_email(self) -> bool:
        return self in (NotifyMode.EMAIL, NotifyMode.BOTH)

    @property
    def includes_sms(self) -> bool:
        return self in (NotifyMode.SMS, NotifyMode.BOTH)


class CronHint(str, Enum):
    MONDAY = "MONDAY"
    FRIDAY = "FRIDAY"
    NONE = "NONE"


class Actor(str, Enum):
    SYSTEM = "system"
    ADMIN = "admin"


class AuditAction(str, Enum):
    SCHEDULE_GENERATED = "SCHEDULE_GENERATED"
    SCHEDULE_SAVED = "SCHEDULE_SAVED"
    SCHEDULE_REVERTED = "SCHEDULE_REVERTED"
    SCHEDULE_RESTORED = "SCHEDULE_RESTORED"
    ROSTER_SAVED = "ROSTER_SAVED"
    AUTO_NOTIFY_MONDAY = "AUTO_NOTIFY_MONDAY"
    AUTO_NOTIFY_FRIDAY = "AUTO_NOTIFY_FRIDAY"
    AUTO_NOTIFY_MONDAY_BLOCKED_WINDOW = "AUTO_NOTIFY_MONDAY_BLOCKED_WINDOW"
    AUTO_NOTIFY_FRIDAY_BLOCKED_WINDOW = "AUTO_NOTIFY_FRIDAY_BLOCKED_WINDOW"
    MANUAL_NOTIFY_ENTRY = "MANUAL_NOTIFY_ENTRY"
    MANUAL_NOTIFY_ACTIVE = "MANUAL_NOTIFY_ACTIVE"


class Person(BaseModel):
    """A single on-call engineer."""
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=32)


class NotifyState(BaseModel):
    """Idempotency ledger row: one completed send per entry/channel/type."""
    entry_id: str
    channel: Channel
    notify_type: NotifyType
    sent_at: datetime
    force: bool = False
    auto: bool = False
    message_id: Optional[str] = None


class ScheduleEntry(BaseModel):
    """One weekly on-call window. `start`/`end` are naive local times."""
    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    start: datetime
    end: datetime
    departments: dict[str, Person] = Field(default_factory=dict)
    notifications: Optional[list[NotifyState]] = None


class Schedule(BaseModel):
    version: int = 1
    timezone: str
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    entries: list[ScheduleEntry] = Field(default_factory=list)


class CurrentEntry(BaseModel):
    """The CURRENT projection: the entry whose window contains `computed_at`."""
    entry: ScheduleEntry
    timezone: str
    computed_at: datetime


class HistorySnapshot(BaseModel):
    """An archived, concluded entry. Written once, never updated."""
    entry: ScheduleEntry
    timezone: str
    archived_at: datetime
    archived_by: str


class AuditRecord(BaseModel):
    ts: datetime
    actor: Actor
    action: AuditAction
    payload: dict[str, Any] = Field(default_factory=dict)


class DispatchTarget(BaseModel):
    """One entry selected for notification, with the recipients per channel."""
    entry_id: str
    notify_type: NotifyType
    start: datetime
    end: datetime
    already_active: bool = False
    email_to: list[str] = Field(default_factory=list)
    email_cc: list[str] = Field(default_factory=list)
    sms_to: list[str] = Field(default_factory=list)


class SkippedSend(BaseModel):
    entry_id: str
    channel: Optional[Channel] = None
    notify_type: Optional[NotifyType] = None
    reason: str


class FailedSend(BaseModel):
    entry_id: str
    channel: Channel
    recipient: Optional[str] = None
    error: str


class DispatchResult(BaseModel):
    trigger: str
    cron_hint: CronHint = CronHint.NONE
    mode: Optional[NotifyMode] = None
    dry_run: bool = False
    force: bool = False
    blocked: bool = False
    ran_at: datetime
    targets: list[DispatchTarget] = Field(default_factory=list)
    emails_sent: int = 0
    sms_sent: int = 0
    skipped: list[SkippedSend] = Field(default_factory=list)
    failed: list[FailedSend] = Field(default_factory=list)

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire store, repositories and services.
"""

from typing import Optional

from fastapi import Header

from oncall_rotation.core.clock import Clock
from oncall_rotation.core.config import settings
from oncall_rotation.core.database import build_engine
from oncall_rotation.repositories.audit_repository import AuditRepository
from oncall_rotation.repositories.kv_store import InMemoryKVStore, KeyValueStore, SqlKVStore
from oncall_rotation.repositories.notify_state_repository import NotifyStateRepository
from oncall_rotation.repositories.roster_repository import RosterRepository
from oncall_rotation.repositories.schedule_repository import ScheduleRepository
from oncall_rotation.services.audit_service import AuditService
from oncall_rotation.services.auth_service import AdminAuthorizer
from oncall_rotation.services.dispatch_service import DispatchService
from oncall_rotation.services.notification_client import NotificationClient
from oncall_rotation.services.roster_service import RosterService
from oncall_rotation.services.schedule_service import ScheduleService
from oncall_rotation.services.triggers import TriggerService


def _build_store() -> KeyValueStore:
    if settings.DATABASE_URL:
        store = SqlKVStore(build_engine(settings.DATABASE_URL))
        store.ensure_schema()
        return store
    return InMemoryKVStore()


# ── Singleton store / repository instances ──
_store = _build_store()
_clock = Clock(settings.TIMEZONE)
_schedule_repo = ScheduleRepository(_store)
_audit_repo = AuditRepository(_store)
_roster_repo = RosterRepository(_store)
_notify_state_repo = NotifyStateRepository(_store)
_notification_client = NotificationClient()
_authorizer = AdminAuthorizer()

# ── Service instances (with injected dependencies) ──
_audit_service = AuditService(audit_repo=_audit_repo, clock=_clock)
_schedule_service = ScheduleService(
    schedule_repo=_schedule_repo,
    notify_state_repo=_notify_state_repo,
    audit=_audit_service,
    clock=_clock,
)
_roster_service = RosterService(roster_repo=_roster_repo, audit=_audit_service)
_dispatch_service = DispatchService(
    schedule_service=_schedule_service,
    notify_state_repo=_notify_state_repo,
    notification_client=_notification_client,
    audit=_audit_service,
    clock=_clock,
)
_trigger_service = TriggerService(
    schedule_service=_schedule_service,
    roster_service=_roster_service,
    dispatch_service=_dispatch_service,
    default_timezone=settings.TIMEZONE,
)


# ── FastAPI dependency functions ──
def get_store() -> KeyValueStore:
    return _store


def get_clock() -> Clock:
    return _clock


def get_notification_client() -> NotificationClient:
    return _notification_client


def get_audit_service() -> AuditService:
    return _audit_service


def get_schedule_service() -> ScheduleService:
    return _schedule_service


def get_roster_service() -> RosterService:
    return _roster_service


def get_dispatch_service() -> DispatchService:
    return _dispatch_service


def get_trigger_service() -> TriggerService:
    return _trigger_service


# ── Guards ──
def require_admin(x_api_key: Optional[str] = Header(default=None)) -> None:
    _authorizer.check_api_key(x_api_key)


def require_cron_secret(x_cron_secret: Optional[str] = Header(default=None)) -> None:
    _authorizer.check_cron_secret(x_cron_secret)

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: a fresh store, a frozen clock, and a recording channel."""

from datetime import datetime
from unittest.mock import patch

import pytest

from oncall_rotation.core import dependencies
from oncall_rotation.core.clock import Clock
from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import ChannelError
from oncall_rotation.models.domain import Person
from oncall_rotation.repositories.audit_repository import AuditRepository
from oncall_rotation.repositories.kv_store import InMemoryKVStore
from oncall_rotation.repositories.notify_state_repository import NotifyStateRepository
from oncall_rotation.repositories.roster_repository import RosterRepository
from oncall_rotation.repositories.schedule_repository import ScheduleRepository
from oncall_rotation.services.audit_service import AuditService
from oncall_rotation.services.dispatch_service import DispatchService
from oncall_rotation.services.notification_client import ChannelResult
from oncall_rotation.services.roster_service import RosterService
from oncall_rotation.services.schedule_service import ScheduleService

API_KEY = "test-admin-key"
CRON_SECRET = "test-cron-secret"
TZ = "America/Chicago"

# 2024-01-01 is a Monday; the first Friday in range is 2024-01-05.
MONDAY = datetime(2024, 1, 1, 8, 0)
FRIDAY = datetime(2024, 1, 5, 8, 0)


def make_roster() -> dict[str, list[Person]]:
    return {
        "enterprise_network": [
            Person(name="Alice Martin", email="alice@example.com", phone="+15550000001"),
            Person(name="Bob Dupont", email="bob@example.com", phone="+15550000002"),
        ],
        "collaboration": [
            Person(name="Carol Chen", email="carol@example.com", phone="+15550000003"),
        ],
    }


class RecordingChannel:
    """Stands in for NotificationClient; records sends, fails on request."""

    def __init__(self) -> None:
        self.emails: list[dict] = []
        self.sms: list[dict] = []
        self.fail_email = False
        self.fail_phones: set[str] = set()

    def ensure_configured(self) -> None:
        pass

    def send_email(self, to, cc, subject, html, reference="oncall") -> ChannelResult:
        if self.fail_email:
            raise ChannelError("email provider down", "email", ", ".join(to))
        self.emails.append(
            {"to": list(to), "cc": list(cc), "subject": subject, "html": html, "reference": reference}
        )
        return ChannelResult(ok=True, id=f"email-{len(self.emails)}")

    def send_sms(self, to, text, reference="oncall") -> ChannelResult:
        if to in self.fail_phones:
            raise ChannelError("sms rejected", "sms", to)
        self.sms.append({"to": to, "text": text, "reference": reference})
        return ChannelResult(ok=True, id=f"sms-{len(self.sms)}")


@pytest.fixture(autouse=True)
def reset_state():
    """Reset the app's in-memory store and clock; pin settings for every test."""
    dependencies.get_store().clear()
    dependencies.get_clock().set(None)
    with patch.object(settings, "API_KEYS", {API_KEY}), \
            patch.object(settings, "CRON_SHARED_SECRET", CRON_SECRET), \
            patch.object(settings, "CRON_DRY_RUN", False), \
            patch.object(settings, "CRON_ENFORCE_WINDOW", False), \
            patch.object(settings, "ADMIN_NOTIFICATION", ["admin@example.com"]), \
            patch.object(settings, "PUBLIC_PORTAL_URL", "https://oncall.example.com"), \
            patch.object(settings, "NOTIFICATION_SERVICE_URL", "http://notify.test"):
        yield
    dependencies.get_clock().set(None)


@pytest.fixture
def store():
    return InMemoryKVStore()


@pytest.fixture
def clock():
    return Clock(TZ, fixed=MONDAY)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def notify_states(store):
    return NotifyStateRepository(store)


@pytest.fixture
def schedule_repo(store):
    return ScheduleRepository(store)


@pytest.fixture
def audit(store, clock):
    return AuditService(AuditRepository(store), clock)


@pytest.fixture
def schedule_service(schedule_repo, notify_states, audit, clock):
    return ScheduleService(schedule_repo, notify_states, audit, clock)


@pytest.fixture
def roster_service(store, audit):
    return RosterService(RosterRepository(store), audit)


@pytest.fixture
def dispatch_service(schedule_service, notify_states, channel, audit, clock):
    return DispatchService(schedule_service, notify_states, channel, audit, clock)

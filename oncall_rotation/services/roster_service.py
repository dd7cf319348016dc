# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster management — per-department rotation order.
"""

import re
from typing import Any, Mapping, Sequence

from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import ValidationError
from oncall_rotation.core.logging import get_logger
from oncall_rotation.models.domain import Actor, AuditAction, Person
from oncall_rotation.repositories.roster_repository import RosterRepository
from oncall_rotation.services.audit_service import AuditService

logger = get_logger(__name__)

PHONE_RE = re.compile(r"^\+\d{7,15}$")
DEPARTMENT_RE = re.compile(r"^[a-z0-9_]{1,64}$")


def normalize_person(raw: Any) -> Person:
    """Trim fields and check contact formats. Raises ValidationError."""
    person = Person.model_validate(raw) if not isinstance(raw, Person) else raw
    name = person.name.strip()
    email = person.email.strip()
    phone = re.sub(r"[\s().-]", "", person.phone)
    if not name:
        raise ValidationError("Every roster member needs a name")
    if email and "@" not in email:
        raise ValidationError(f"Invalid email for {name}: '{email}'")
    if phone and not PHONE_RE.match(phone):
        raise ValidationError(
            f"Invalid phone for {name}: '{person.phone}' (expected + and country code)"
        )
    return Person(name=name, email=email, phone=phone)


class RosterService:

    def __init__(self, roster_repo: RosterRepository, audit: AuditService) -> None:
        self._roster = roster_repo
        self._audit = audit

    def get_roster(self) -> dict[str, list[Person]]:
        """Known departments are always present, possibly empty."""
        roster = {dept: [] for dept in settings.DEPARTMENT_LABELS}
        roster.update(self._roster.get_all())
        return roster

    def save_roster(self, roster: Mapping[str, Sequence[Any]]) -> dict[str, list[Person]]:
        """Replace the whole roster. Departments left out are removed."""
        cleaned: dict[str, list[Person]] = {}
        for dept, people in roster.items():
            if not DEPARTMENT_RE.match(dept):
                raise ValidationError(f"Invalid department key '{dept}'")
            cleaned[dept] = [normalize_person(p) for p in people]

        for dept in self._roster.get_all():
            if dept not in cleaned:
                self._roster.delete_department(dept)
        for dept, people in cleaned.items():
            self._roster.save_department(dept, people)

        self._audit.record(
            Actor.ADMIN,
            AuditAction.ROSTER_SAVED,
            departments={dept: len(people) for dept, people in cleaned.items()},
        )
        logger.info("Roster saved: departments=%d", len(cleaned))
        return self.get_roster()

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Audit log — the shared append point for every component.
"""

from typing import Any, Optional

from oncall_rotation.core.clock import Clock
from oncall_rotation.core.config import settings
from oncall_rotation.core.logging import get_logger
from oncall_rotation.models.domain import Actor, AuditAction, AuditRecord
from oncall_rotation.repositories.audit_repository import AuditRepository

logger = get_logger(__name__)


class AuditService:
    """Records and queries the bounded, newest-first audit log."""

    def __init__(self, audit_repo: AuditRepository, clock: Clock) -> None:
        self._audit = audit_repo
        self._clock = clock

    def record(self, actor: Actor, action: AuditAction, **payload: Any) -> AuditRecord:
        entry = AuditRecord(
            ts=self._clock.now(),
            actor=actor,
            action=action,
            payload=payload,
        )
        self._audit.prepend(entry)
        logger.info("Audit: actor=%s, action=%s", actor.value, action.value)
        return entry

    def read(
        self,
        actor: Optional[Actor] = None,
        action_prefix: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[AuditRecord]:
        """Newest first, optionally filtered by actor and action prefix."""
        records = self._audit.get_all()
        if actor is not None:
            records = [r for r in records if r.actor == actor]
        if action_prefix:
            records = [r for r in records if r.action.value.startswith(action_prefix)]
        return records[: limit or settings.DEFAULT_AUDIT_LIMIT]

    def cron_health(self) -> dict[str, Any]:
        """Most recent automatic runs; `last_run` is None before the first tick."""
        runs = [
            r for r in self._audit.get_all()
            if r.actor == Actor.SYSTEM or r.action.value.startswith("AUTO_")
        ][: settings.CRON_HEALTH_RUNS]
        return {
            "last_run": runs[0] if runs else None,
            "runs": runs,
            "count": len(runs),
        }

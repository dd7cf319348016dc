# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Public on-call lookups.
Read-only; no credential required.
"""

from fastapi import APIRouter, Depends, Query

from oncall_rotation.core.config import settings
from oncall_rotation.core.dependencies import get_audit_service, get_schedule_service
from oncall_rotation.schemas.oncall import (
    CronHealthResponse,
    CurrentResponse,
    TodayResponse,
)
from oncall_rotation.services.audit_service import AuditService
from oncall_rotation.services.messages import department_label
from oncall_rotation.services.schedule_service import ScheduleService

router = APIRouter(prefix="/api/v1/oncall", tags=["On-Call"])


@router.get("/current", response_model=CurrentResponse)
def get_current(service: ScheduleService = Depends(get_schedule_service)):
    """The entry whose window contains now, or an empty body."""
    current = service.get_current()
    if current is None:
        return CurrentResponse()
    return CurrentResponse(
        entry=current.entry,
        timezone=current.timezone,
        computed_at=current.computed_at,
    )


@router.get("/today", response_model=TodayResponse)
def who_is_on_call(
    department: str = Query(..., min_length=1, max_length=64),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Who covers `department` right now."""
    current = service.get_current()
    person = current.entry.departments.get(department) if current else None
    if person is None:
        return TodayResponse(
            match=False, department=department, label=department_label(department)
        )
    return TodayResponse(
        match=True,
        department=department,
        label=department_label(department),
        person=person,
        start=current.entry.start,
        end=current.entry.end,
    )


@router.get("/schedule")
def public_schedule(service: ScheduleService = Depends(get_schedule_service)):
    """Full schedule without notification state."""
    schedule = service.find_schedule()
    if schedule is None:
        return {"timezone": settings.TIMEZONE, "entries": [], "labels": settings.DEPARTMENT_LABELS}
    return {
        "version": schedule.version,
        "timezone": schedule.timezone,
        "updated_at": schedule.updated_at,
        "entries": schedule.entries,
        "labels": settings.DEPARTMENT_LABELS,
    }


@router.get("/cron-health", response_model=CronHealthResponse)
def cron_health(audit: AuditService = Depends(get_audit_service)):
    """Most recent automatic notification runs."""
    return audit.cron_health()

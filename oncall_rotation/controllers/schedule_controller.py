# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Admin schedule endpoints — save, generate, revert, history.
Thin HTTP layer — mutations go through TriggerService, reads through
ScheduleService.
"""

from fastapi import APIRouter, Depends

from oncall_rotation.core.dependencies import (
    get_schedule_service,
    get_trigger_service,
    require_admin,
)
from oncall_rotation.models.domain import HistorySnapshot, Schedule
from oncall_rotation.schemas.oncall import (
    GenerateRequest,
    GenerateResponse,
    HistoryListResponse,
    ScheduleSaveRequest,
)
from oncall_rotation.services.schedule_service import ScheduleService
from oncall_rotation.services.triggers import (
    GenerateSchedule,
    RestoreEntry,
    RevertSchedule,
    SaveSchedule,
    TriggerService,
)

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin: Schedule"],
    dependencies=[Depends(require_admin)],
)


@router.get("/schedule", response_model=Schedule)
def get_schedule(
    include_notify_state: bool = False,
    service: ScheduleService = Depends(get_schedule_service),
):
    """The authoritative schedule, optionally with per-entry notify state."""
    return service.get_schedule(include_notify_state=include_notify_state)


@router.put("/schedule", response_model=Schedule)
def save_schedule(
    payload: ScheduleSaveRequest,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Replace the full entry list."""
    return triggers.on_admin_command(
        SaveSchedule(entries=payload.entries, timezone=payload.timezone)
    )


@router.post("/schedule/generate", response_model=GenerateResponse)
def generate_schedule(
    payload: GenerateRequest,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Build a rotation from the roster; `persist=false` only previews it."""
    result = triggers.on_admin_command(
        GenerateSchedule(
            start_date=payload.start_date,
            end_date=payload.end_date,
            seed_index=payload.seed_index,
            rotation_index=payload.rotation_index,
            persist=payload.persist,
        )
    )
    return GenerateResponse(
        persisted=payload.persist,
        schedule=result.schedule,
        rotation_index=result.rotation_index,
    )


@router.post("/schedule/revert", response_model=Schedule)
def revert_schedule(triggers: TriggerService = Depends(get_trigger_service)):
    """Undo the last save (single level)."""
    return triggers.on_admin_command(RevertSchedule())


@router.get("/history", response_model=HistoryListResponse)
def list_history(service: ScheduleService = Depends(get_schedule_service)):
    """Archived entries, most recent first."""
    snapshots = service.list_history()
    return HistoryListResponse(count=len(snapshots), snapshots=snapshots)


@router.get("/history/{entry_id}", response_model=HistorySnapshot)
def get_history(
    entry_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.get_history(entry_id)


@router.post("/history/{entry_id}/restore", response_model=Schedule)
def restore_history(
    entry_id: str,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Put an archived entry back into the schedule."""
    return triggers.on_admin_command(RestoreEntry(entry_id=entry_id))

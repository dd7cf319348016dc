# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Notification endpoints — manual notify, preview, status, and
the internal timer tick.
"""

from fastapi import APIRouter, Depends

from oncall_rotation.core.dependencies import (
    get_dispatch_service,
    get_trigger_service,
    require_admin,
    require_cron_secret,
)
from oncall_rotation.models.domain import DispatchResult
from oncall_rotation.schemas.oncall import NotifyRequest, NotifyStatusResponse
from oncall_rotation.services.dispatch_service import DispatchService
from oncall_rotation.services.triggers import NotifyEntries, TimeTick, TriggerService

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin: Notify"],
    dependencies=[Depends(require_admin)],
)
internal_router = APIRouter(
    prefix="/api/v1/internal",
    tags=["Internal"],
    dependencies=[Depends(require_cron_secret)],
)


@router.post("/notify", response_model=DispatchResult)
def notify(
    payload: NotifyRequest,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Notify one entry, or the active and next upcoming entries."""
    return triggers.on_admin_command(
        NotifyEntries(
            entry_id=payload.entry_id,
            mode=payload.mode,
            force=payload.force,
            dry_run=payload.dry_run,
        )
    )


@router.get("/notify/preview", response_model=DispatchResult)
def preview(service: DispatchService = Depends(get_dispatch_service)):
    """Dry run of today's automatic trigger."""
    return service.preview()


@router.get("/notify/status", response_model=NotifyStatusResponse)
def notify_status(service: DispatchService = Depends(get_dispatch_service)):
    return NotifyStatusResponse(entries=service.notify_status())


@internal_router.post("/cron/tick", response_model=DispatchResult)
def cron_tick(
    dry_run: bool = False,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Timer entry point; the weekday decides what gets sent."""
    return triggers.on_time_tick(TimeTick(dry_run=dry_run))

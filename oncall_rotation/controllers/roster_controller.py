# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Admin roster endpoints.
"""

from fastapi import APIRouter, Depends

from oncall_rotation.core.config import settings
from oncall_rotation.core.dependencies import (
    get_roster_service,
    get_trigger_service,
    require_admin,
)
from oncall_rotation.schemas.oncall import RosterPayload, RosterResponse
from oncall_rotation.services.roster_service import RosterService
from oncall_rotation.services.triggers import SaveRoster, TriggerService

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin: Roster"],
    dependencies=[Depends(require_admin)],
)


@router.get("/roster", response_model=RosterResponse)
def get_roster(service: RosterService = Depends(get_roster_service)):
    return RosterResponse(
        departments=service.get_roster(), labels=settings.DEPARTMENT_LABELS
    )


@router.put("/roster", response_model=RosterResponse)
def save_roster(
    payload: RosterPayload,
    triggers: TriggerService = Depends(get_trigger_service),
):
    """Replace the roster. List order is rotation order."""
    departments = triggers.on_admin_command(SaveRoster(roster=payload.departments))
    return RosterResponse(departments=departments, labels=settings.DEPARTMENT_LABELS)

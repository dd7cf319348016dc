# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Admin audit log.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from oncall_rotation.core.dependencies import get_audit_service, require_admin
from oncall_rotation.models.domain import Actor
from oncall_rotation.schemas.oncall import AuditListResponse
from oncall_rotation.services.audit_service import AuditService

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin: Audit"],
    dependencies=[Depends(require_admin)],
)


@router.get("/audit", response_model=AuditListResponse)
def read_audit(
    actor: Optional[Actor] = None,
    action: Optional[str] = Query(default=None, max_length=64, description="Action prefix"),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    audit: AuditService = Depends(get_audit_service),
):
    """Newest first."""
    records = audit.read(actor=actor, action_prefix=action, limit=limit)
    return AuditListResponse(count=len(records), records=records)

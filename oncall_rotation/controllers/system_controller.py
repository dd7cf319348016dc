# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from oncall_rotation.core.config import settings
from oncall_rotation.core.dependencies import (
    get_notification_client,
    get_schedule_service,
    get_store,
)
from oncall_rotation.repositories.schedule_repository import SCHEDULE_KEY

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    schedule = get_schedule_service().find_schedule()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "timezone": settings.TIMEZONE,
        "schedule_version": schedule.version if schedule else None,
        "schedule_entries": len(schedule.entries) if schedule else 0,
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe. A store failure surfaces as a 500 via StoreError."""
    get_store().get(SCHEDULE_KEY)
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "schedule_loaded": get_schedule_service().find_schedule() is not None,
        "notifications_configured": bool(get_notification_client().base_url),
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

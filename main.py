# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
On-Call Rotation Service
========================
Generates weekly on-call rotations per department, keeps the schedule with
its CURRENT / HISTORY projections, and sends idempotent weekday reminders.

    Monday  ─► UPCOMING reminder (email)
    Friday  ─► START_TODAY notice (email + SMS)

Port: 8003
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oncall_rotation.controllers import (
    audit_controller,
    notify_controller,
    oncall_controller,
    roster_controller,
    schedule_controller,
    system_controller,
)
from oncall_rotation.core.config import settings
from oncall_rotation.core.dependencies import get_schedule_service
from oncall_rotation.core.errors import OnCallError
from oncall_rotation.core.logging import get_logger
from oncall_rotation.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Refresh CURRENT on startup so public lookups are right immediately."""
    logger.info(
        "On-call rotation service starting: tz=%s, dry_run=%s, enforce_window=%s",
        settings.TIMEZONE, settings.CRON_DRY_RUN, settings.CRON_ENFORCE_WINDOW,
    )
    get_schedule_service().refresh_current()
    yield
    logger.info("On-call rotation service shutting down")


app = FastAPI(
    title="On-Call Rotation Service",
    description="Weekly on-call rotation, schedule history and notification dispatch.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(OnCallError)
async def oncall_error_handler(request: Request, exc: OnCallError):
    req_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s", exc.detail,
            extra={"request_id": req_id, "error_code": exc.code},
        )
    else:
        logger.info(
            "Request rejected: %s", exc.detail,
            extra={"request_id": req_id, "error_code": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail, "request_id": req_id},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(oncall_controller.router)
app.include_router(roster_controller.router)
app.include_router(schedule_controller.router)
app.include_router(notify_controller.router)
app.include_router(notify_controller.internal_router)
app.include_router(audit_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")

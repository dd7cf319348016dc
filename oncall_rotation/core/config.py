# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


def _csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "oncall-rotation")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8003"))

    # Rotation
    TIMEZONE: str = os.getenv("ONCALL_TZ", "America/Chicago")
    ROTATION_START_HOUR: int = int(os.getenv("ROTATION_START_HOUR", "16"))
    ROTATION_END_HOUR: int = int(os.getenv("ROTATION_END_HOUR", "7"))
    UPCOMING_MIN_HOURS: int = int(os.getenv("UPCOMING_MIN_HOURS", "24"))
    DEPARTMENT_LABELS: dict[str, str] = {
        "enterprise_network": "Enterprise Network",
        "collaboration": "Collaboration Systems",
        "system_storage": "System & Storage",
    }

    # Audit
    AUDIT_LOG_MAX: int = int(os.getenv("AUDIT_LOG_MAX", "500"))
    DEFAULT_AUDIT_LIMIT: int = int(os.getenv("DEFAULT_AUDIT_LIMIT", "100"))
    CRON_HEALTH_RUNS: int = int(os.getenv("CRON_HEALTH_RUNS", "10"))

    # Notifications
    NOTIFICATION_SERVICE_URL: str = os.getenv(
        "NOTIFICATION_SERVICE_URL", "http://notification-service:8004"
    )
    NOTIFICATION_TIMEOUT: float = float(os.getenv("NOTIFICATION_TIMEOUT", "5.0"))
    ADMIN_NOTIFICATION: list[str] = _csv(os.getenv("ADMIN_NOTIFICATION", ""))
    PUBLIC_PORTAL_URL: str = os.getenv("PUBLIC_PORTAL_URL", "")
    SMS_SENDER_ID: str = os.getenv("SMS_SENDER_ID", "OnCall")

    # Auth
    API_KEYS: set[str] = set(_csv(os.getenv("API_KEYS", "")))
    CRON_SHARED_SECRET: str = os.getenv("CRON_SHARED_SECRET", "")

    # Cron
    CRON_DRY_RUN: bool = os.getenv("CRON_DRY_RUN", "false").lower() == "true"
    CRON_ENFORCE_WINDOW: bool = (
        os.getenv("CRON_ENFORCE_WINDOW", "false").lower() == "true"
    )
    CRON_MONDAY_WINDOW: tuple[str, str] = (
        os.getenv("CRON_MONDAY_WINDOW_START", "07:00"),
        os.getenv("CRON_MONDAY_WINDOW_END", "10:00"),
    )
    CRON_FRIDAY_WINDOW: tuple[str, str] = (
        os.getenv("CRON_FRIDAY_WINDOW_START", "07:00"),
        os.getenv("CRON_FRIDAY_WINDOW_END", "10:00"),
    )

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()

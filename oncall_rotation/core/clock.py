# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Clock — the single source of "now" for every time-sensitive operation.
Schedules store naive local timestamps; these helpers convert between an
aware instant and the schedule's wall clock.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from oncall_rotation.core.errors import ConfigurationError


def get_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone '{tz_name}'") from exc


def to_local(instant: datetime, tz_name: str) -> datetime:
    """Aware instant -> naive wall-clock time in `tz_name`."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(get_zone(tz_name)).replace(tzinfo=None)


def localize(local: datetime, tz_name: str) -> datetime:
    """Naive wall-clock time in `tz_name` -> aware datetime."""
    return local.replace(tzinfo=get_zone(tz_name))


class Clock:
    """Timezone-aware clock. Tests patch `now` or pass a fixed instant."""

    def __init__(self, tz_name: str, fixed: datetime | None = None) -> None:
        get_zone(tz_name)
        self._tz_name = tz_name
        self._fixed: datetime | None = None
        self.set(fixed)

    @property
    def tz_name(self) -> str:
        return self._tz_name

    def now(self) -> datetime:
        if self._fixed is not None:
            return self._fixed.astimezone(get_zone(self._tz_name))
        return datetime.now(get_zone(self._tz_name))

    def set(self, instant: datetime | None) -> None:
        """Freeze the clock at `instant` (None resumes real time)."""
        if instant is not None and instant.tzinfo is None:
            instant = localize(instant, self._tz_name)
        self._fixed = instant

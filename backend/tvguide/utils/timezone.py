"""
UTC and household-local time helpers. Timestamps are stored and compared in
UTC; weekdays use the schedule's numbering (0 = Sunday ... 6 = Saturday) and
are taken in the household's own timezone.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive values (SQLite returns them naive) or convert aware ones."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso_utc(dt: Optional[datetime]) -> Optional[str]:
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None


def get_zone(name: str) -> ZoneInfo:
    """ZoneInfo for an IANA name such as "America/Los_Angeles". Raises ValueError if unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def get_local_time(tz_name: str = "UTC", dt: Optional[datetime] = None) -> datetime:
    """dt (default: now) as wall-clock time in tz_name. Naive values are taken as UTC."""
    return ensure_utc(dt or utc_now()).astimezone(get_zone(tz_name))


def schedule_weekday(dt: Optional[datetime] = None, tz_name: str = "UTC") -> int:
    """Local weekday of dt in tz_name, mapped from Monday = 0 onto Sunday = 0."""
    return (get_local_time(tz_name, dt).weekday() + 1) % 7

"""Display helpers: timezone conversion and duration formatting."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=16)
def get_zone(name: str | None) -> tzinfo:
    """Resolve an IANA zone name; unknown names fall back to UTC."""
    if not name:
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return UTC


def to_display(ts: datetime, zone: str | None) -> datetime:
    """Convert an aware instant to the display zone."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(get_zone(zone))


def format_display(ts: datetime, zone: str | None) -> str:
    """Format like '10:15:00 AM (06/14) EDT'."""
    local = to_display(ts, zone)
    return f"{local:%I:%M:%S %p (%m/%d)} {local.tzname() or ''}".rstrip()


def format_duration(delta: timedelta | None) -> str:
    """Short countdown text: 'Now', '4m 5s' or '1h 2m 3s'."""
    if delta is None:
        return "-"
    total = int(delta.total_seconds())
    if total <= 0:
        return "Now"
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    return f"{minutes}m {seconds}s"

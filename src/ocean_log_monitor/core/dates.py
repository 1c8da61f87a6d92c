"""Date inference for bare time-of-day log stamps.

Log lines only record a time of day. Files are not rotated at midnight, so a
stamp near midnight is ambiguous by a day; these helpers pick the most
plausible date using the file's modification date and the current time.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo

EARLY_MORNING_END_HOUR = 6  # [00:00, 06:00)
LATE_NIGHT_START_HOUR = 22  # attribution window for disambiguation
ROLLOVER_START_HOUR = 20  # late-night window for ordering across midnight

_ONE_DAY = timedelta(days=1)


def local_tz() -> tzinfo:
    """Return the system local timezone."""
    return datetime.now().astimezone().tzinfo or UTC


def to_log_time(ts: datetime, *, log_tz: tzinfo) -> datetime:
    """Convert an instant to a naive timestamp in the log clock domain."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(log_tz).replace(tzinfo=None)


def to_utc(ts: datetime, *, log_tz: tzinfo) -> datetime:
    """Normalize a log-domain (naive) timestamp to timezone-aware UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=log_tz)
    return ts.astimezone(UTC)


def disambiguate_date(time_of_day: time, file_date: date, now: datetime) -> date:
    """Pick the calendar date for a time of day.

    Rules, first match wins:
      1. early-morning stamp read in the early morning -> today
      2. early-morning stamp, read later in a file touched today -> tomorrow
      3. late-night stamp read after midnight -> yesterday
      4. otherwise the file's modification date
    """
    today = now.date()
    early_stamp = time_of_day.hour < EARLY_MORNING_END_HOUR
    early_now = now.hour < EARLY_MORNING_END_HOUR

    if early_stamp and early_now:
        return today
    if early_stamp and file_date == today:
        return today + _ONE_DAY
    if time_of_day.hour >= LATE_NIGHT_START_HOUR and early_now and file_date <= today:
        return today - _ONE_DAY
    return file_date


def resolve_timestamp(time_of_day: time, file_modified: datetime, now: datetime) -> datetime:
    """Combine a time of day with its inferred date."""
    d = disambiguate_date(time_of_day, file_modified.date(), now)
    return datetime.combine(d, time_of_day)


def is_newer(t1: datetime, t2: datetime, now: datetime) -> bool:
    """Return True if t1 is more recent than t2, aware of the midnight rollover."""
    if abs(t1.toordinal() - t2.toordinal()) > 1:
        return t1 > t2

    today = now.date()
    t1_early_today = t1.hour < EARLY_MORNING_END_HOUR and t1.date() == today
    t2_late_yesterday = t2.hour >= ROLLOVER_START_HOUR and t2.date() == today - _ONE_DAY
    if t1_early_today and t2_late_yesterday:
        return True
    return t1 > t2

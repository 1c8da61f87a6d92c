from __future__ import annotations

from datetime import UTC, datetime, timedelta

from ocean_log_monitor.core.timezones import format_display, format_duration, get_zone


def test_format_duration() -> None:
    assert format_duration(None) == "-"
    assert format_duration(timedelta(seconds=-3)) == "Now"
    assert format_duration(timedelta(minutes=4, seconds=5)) == "4m 5s"
    assert format_duration(timedelta(hours=1, minutes=2, seconds=3)) == "1h 2m 3s"


def test_format_display_eastern_daylight_time() -> None:
    ts = datetime(2025, 6, 14, 14, 15, tzinfo=UTC)
    assert format_display(ts, "America/New_York") == "10:15:00 AM (06/14) EDT"


def test_format_display_eastern_standard_time() -> None:
    ts = datetime(2025, 1, 14, 15, 15, tzinfo=UTC)
    assert format_display(ts, "America/New_York") == "10:15:00 AM (01/14) EST"


def test_unknown_zone_falls_back_to_utc() -> None:
    assert get_zone("Nowhere/Special") is UTC
    assert get_zone(None) is UTC

"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into engine calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ocean_log_monitor.core.engine import MonitorEngine, MonitorStatus
from ocean_log_monitor.core.models import ResolvedEntry, ScheduleConfig
from ocean_log_monitor.core.scheduler import CheckResult
from ocean_log_monitor.core.timezones import format_duration


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def _seconds(delta: timedelta | None) -> float | None:
    return round(delta.total_seconds(), 3) if delta is not None else None


def _entry_to_dict(entry: ResolvedEntry) -> dict[str, Any]:
    """Convert a ResolvedEntry into a JSON-serializable dict."""
    return {
        "timestamp": entry.timestamp.isoformat(),
        "minutes_until_event": entry.minutes_until_event,
        "event_time": entry.event_time.isoformat(),
        "file": entry.source_file.name,
        "line_no": entry.line_no,
        "line": entry.line,
    }


def _result_to_dict(result: CheckResult) -> dict[str, Any]:
    d: dict[str, Any] = {
        "outcome": result.outcome.value,
        "forced": result.forced,
        "checked_at": _iso(result.checked_at),
        "files_scanned": result.files_scanned,
        "match_count": result.match_count,
        "latest": _entry_to_dict(result.latest) if result.latest is not None else None,
        "last_processed": _iso(result.last_processed),
        "is_new": result.is_new,
        "action_fire_at": _iso(result.fire_at),
    }
    if result.deleted:
        d["deleted"] = list(result.deleted)
    return d


def _status_to_dict(status: MonitorStatus) -> dict[str, Any]:
    return {
        "summary": status.summary(),
        "enabled": status.enabled,
        "interval_minutes": status.interval_minutes,
        "source_directory": status.source_directory,
        "pending_action": status.pending_action,
        "action_fire_at": _iso(status.action_fire_at),
        "seconds_until_action": _seconds(status.time_until_action),
        "next_check_in": format_duration(status.time_until_next_check),
        "last_processed_timestamp": _iso(status.last_processed_timestamp),
        "last_processed_file": status.last_processed_file,
        "last_found_entry": status.last_found_entry,
        "next_event_time_utc": _iso(status.next_event_time_utc),
        "next_event_display": status.next_event_display,
        "seconds_until_event": _seconds(status.time_until_event),
        "event_countdown": format_duration(status.time_until_event),
        "pre_event_fired": status.pre_event_fired,
        "notices": status.notices,
    }


def config_to_dict(config: ScheduleConfig) -> dict[str, Any]:
    return config.model_dump()


async def force_check_impl(engine: MonitorEngine) -> dict[str, Any]:
    """Implementation for the `force_check` MCP tool.

    Scans even when monitoring is disabled or an action is pending; never arms
    a second pending action.
    """
    result = await engine.force_check()
    out = _result_to_dict(result)
    out["status"] = _status_to_dict(engine.status())
    return out


def status_impl(engine: MonitorEngine) -> dict[str, Any]:
    """Implementation for the `monitor_status` MCP tool."""
    return _status_to_dict(engine.status())


def reset_impl(engine: MonitorEngine) -> dict[str, Any]:
    """Implementation for the `reset_baseline` MCP tool."""
    engine.reset()
    return _status_to_dict(engine.status())


def configure_impl(
    engine: MonitorEngine,
    *,
    enabled: bool | None = None,
    interval_minutes: int | None = None,
    action_command: str | None = None,
    pre_event_action_command: str | None = None,
    source_directory: str | None = None,
    delete_old_files: bool | None = None,
) -> dict[str, Any]:
    """Implementation for the `configure_monitor` MCP tool.

    Only provided fields change; the interval is clamped to 1..60 minutes.
    """
    if source_directory is not None and not source_directory.strip():
        raise ValueError("source_directory must not be empty")
    cfg = engine.update_config(
        enabled=enabled,
        interval_minutes=interval_minutes,
        action_command=action_command,
        pre_event_action_command=pre_event_action_command,
        source_directory=source_directory,
        delete_old_files=delete_old_files,
    )
    return config_to_dict(cfg)

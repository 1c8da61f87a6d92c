"""Configuration resolution: persisted config plus environment overrides."""

from __future__ import annotations

import logging
import os
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .dates import local_tz
from .models import ScheduleConfig

STATE_FILE_ENV = "OCEAN_MONITOR_STATE_FILE"
LOG_DIR_ENV = "OCEAN_MONITOR_LOG_DIR"
INTERVAL_ENV = "OCEAN_MONITOR_INTERVAL_MINUTES"
LOG_TZ_ENV = "OCEAN_MONITOR_LOG_TIMEZONE"
DISPLAY_TZ_ENV = "OCEAN_MONITOR_DISPLAY_TIMEZONE"
LOG_LEVEL_ENV = "OCEAN_MONITOR_LOG_LEVEL"

DEFAULT_STATE_FILE = "~/.ocean-log-monitor/state.json"

CONFIG_FIELDS = frozenset(ScheduleConfig.model_fields)


def configure_logging() -> None:
    """Configure a reasonable default logging setup on stderr."""
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def state_file_path(path: str | Path | None = None) -> Path:
    """Return the state file location (explicit path, env, then default)."""
    raw = path or os.getenv(STATE_FILE_ENV) or DEFAULT_STATE_FILE
    return Path(raw).expanduser()


def resolve_log_tz(name: str | None = None) -> tzinfo:
    """Timezone of the clock that writes the logs (default: system local)."""
    name = name or os.getenv(LOG_TZ_ENV)
    if not name:
        return local_tz()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"{LOG_TZ_ENV} is not a known timezone: {name!r}") from exc


def update_config(cfg: ScheduleConfig, **changes: Any) -> ScheduleConfig:
    """Return a validated copy with the given fields changed.

    None values are ignored; the interval is clamped to [1, 60].
    """
    unknown = set(changes) - CONFIG_FIELDS
    if unknown:
        raise ValueError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
    data = cfg.model_dump()
    data.update({k: v for k, v in changes.items() if v is not None})
    return ScheduleConfig.model_validate(data)


def resolve_config(cfg: ScheduleConfig | None = None) -> ScheduleConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = ScheduleConfig()

    changes: dict[str, Any] = {}

    log_dir = os.getenv(LOG_DIR_ENV)
    if log_dir:
        changes["source_directory"] = log_dir

    interval = os.getenv(INTERVAL_ENV)
    if interval:
        try:
            changes["interval_minutes"] = int(interval)
        except ValueError as exc:
            raise ValueError(f"{INTERVAL_ENV} must be an integer") from exc

    display_tz = os.getenv(DISPLAY_TZ_ENV)
    if display_tz:
        changes["display_timezone"] = display_tz

    if not changes:
        return cfg
    return update_config(cfg, **changes)

"""Core data models for the log monitor.

Ephemeral scan results are frozen dataclasses; the persisted record
(configuration plus monitor state) is modelled with pydantic so it can be
validated and serialized to JSON by the state store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 60
DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_ACTION_COMMAND = "/echo Ocean trip found!"
DEFAULT_PRE_EVENT_COMMAND = "/echo Boat arriving in 1 minute!"


@dataclass(frozen=True, slots=True)
class LogFile:
    """Read-only snapshot of a log file taken at scan time."""

    path: Path
    last_modified: datetime  # naive, log clock domain

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class MarkerTime:
    """Fields extracted from a single marker line."""

    time_of_day: time
    minutes_until_event: int


@dataclass(frozen=True, slots=True)
class RawMatch:
    """A matching line before its calendar date is known."""

    source_file: LogFile
    line_no: int
    line: str
    time_of_day: time
    minutes_until_event: int


@dataclass(frozen=True, slots=True)
class ResolvedEntry:
    """A marker occurrence with a reconstructed (naive, local) timestamp."""

    source_file: LogFile
    line_no: int
    line: str
    timestamp: datetime
    minutes_until_event: int

    @property
    def event_time(self) -> datetime:
        """Predicted event time in the log clock domain."""
        return self.timestamp + timedelta(minutes=self.minutes_until_event)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of one directory scan."""

    files: list[LogFile]
    best: ResolvedEntry | None
    match_count: int = 0


@dataclass(slots=True)
class PendingAction:
    """The single in-flight delayed action after a new detection."""

    fire_at: datetime  # aware UTC
    task: asyncio.Task | None = None


class ScheduleConfig(BaseModel):
    """User-facing configuration. Interval is clamped rather than rejected."""

    enabled: bool = True
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    action_command: str = DEFAULT_ACTION_COMMAND
    pre_event_action_command: str = DEFAULT_PRE_EVENT_COMMAND
    source_directory: str | None = None
    delete_old_files: bool = False
    file_pattern: str = "*.txt"
    display_timezone: str = "America/New_York"

    @field_validator("interval_minutes", mode="before")
    @classmethod
    def _clamp_interval(cls, v: object) -> int:
        try:
            value = int(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_INTERVAL_MINUTES
        return max(MIN_INTERVAL_MINUTES, min(MAX_INTERVAL_MINUTES, value))


class MonitorState(BaseModel):
    """Persisted monitor state.

    The ``last_*`` fields are written by the poll scheduler only and the
    ``next_event_*`` fields by the countdown only.
    """

    last_processed_timestamp: datetime | None = None  # naive, log clock domain
    last_processed_file: str | None = None
    last_found_entry: str | None = None
    next_event_time_utc: datetime | None = None
    next_event_minutes: int | None = None

    def clear_baseline(self) -> None:
        self.last_processed_timestamp = None
        self.last_found_entry = None
        self.last_processed_file = None


class MonitorRecord(BaseModel):
    """The single JSON document kept by the state store."""

    version: int = 1
    config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    state: MonitorState = Field(default_factory=MonitorState)

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from ocean_log_monitor.core.models import MonitorState, ScheduleConfig
from ocean_log_monitor.core.state_store import MemoryStateStore


def marker(ts: str, minutes: int | str = 15) -> str:
    return f"[{ts} N] [Ocean Trip] Next boat is in {minutes} minutes. Passing the time until then."


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingInvoker:
    """Action invoker that records commands instead of running them."""

    def __init__(self, *, ok: bool = True, error: Exception | None = None) -> None:
        self.ok = ok
        self.error = error
        self.commands: list[str | None] = []

    async def invoke(self, command: str | None) -> bool:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return self.ok


@pytest.fixture
def marker_line() -> Callable[..., str]:
    return marker


@pytest.fixture
def write_log() -> Callable[..., Path]:
    """Write lines to a log file and pin its mtime (naive UTC)."""

    def _write(path: Path, lines: list[str], modified: datetime) -> Path:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        ts = modified.replace(tzinfo=UTC).timestamp()
        os.utime(path, (ts, ts))
        return path

    return _write


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 6, 14, 10, 0, 5, tzinfo=UTC))


@pytest.fixture
def invoker() -> RecordingInvoker:
    return RecordingInvoker()


@pytest.fixture
def make_store(tmp_path: Path) -> Callable[..., MemoryStateStore]:
    def _make(state: MonitorState | None = None, **config: object) -> MemoryStateStore:
        cfg = ScheduleConfig(source_directory=str(tmp_path / "logs"), **config)
        return MemoryStateStore(state=state, config=cfg)

    return _make


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    d = tmp_path / "logs"
    d.mkdir()
    return d

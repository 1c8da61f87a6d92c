from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from ocean_log_monitor.core.engine import MonitorEngine
from ocean_log_monitor.core.models import MonitorState
from ocean_log_monitor.tools.monitor import (
    configure_impl,
    force_check_impl,
    reset_impl,
    status_impl,
)

FILE_TIME = datetime(2025, 6, 14, 10, 0, 1)


def _engine(store, clock, invoker) -> MonitorEngine:
    return MonitorEngine(
        store,
        invoker=invoker,
        clock=clock,
        log_tz=UTC,
        action_delay=timedelta(minutes=1),
        tick_seconds=3600,
    )


@pytest.mark.asyncio
async def test_force_check_reports_new_entry_and_status(
    log_dir: Path, write_log, marker_line, make_store, clock, invoker
) -> None:
    write_log(log_dir / "a.txt", [marker_line("10:00:00.000", 15)], FILE_TIME)
    engine = _engine(make_store(), clock, invoker)

    out = await force_check_impl(engine)

    assert out["outcome"] == "new_entry"
    assert out["is_new"] is True
    assert out["latest"]["file"] == "a.txt"
    assert out["latest"]["timestamp"] == "2025-06-14T10:00:00"
    assert out["latest"]["event_time"] == "2025-06-14T10:15:00"
    assert out["action_fire_at"] == "2025-06-14T10:01:05+00:00"

    status = out["status"]
    assert status["pending_action"] is True
    assert status["seconds_until_action"] == 60.0
    assert status["next_event_time_utc"] == "2025-06-14T10:15:00+00:00"
    assert status["next_event_display"] == "06:15:00 AM (06/14) EDT"
    assert status["event_countdown"] == "14m 55s"
    assert status["summary"].endswith("Checking every 5 minutes.")
    assert "(Command execution pending)" in status["summary"]
    await engine.stop()


@pytest.mark.asyncio
async def test_force_check_missing_directory_raises(make_store, clock, invoker) -> None:
    engine = _engine(make_store(), clock, invoker)
    with pytest.raises(FileNotFoundError):
        await force_check_impl(engine)


def test_status_without_activity(make_store, clock, invoker) -> None:
    engine = _engine(make_store(), clock, invoker)
    out = status_impl(engine)
    assert out["pending_action"] is False
    assert out["last_processed_timestamp"] is None
    assert out["next_event_time_utc"] is None
    assert out["event_countdown"] == "-"
    assert out["next_check_in"] == "-"


def test_reset_clears_last_processed(make_store, clock, invoker) -> None:
    state = MonitorState(
        last_processed_timestamp=datetime(2025, 6, 14, 10, 0),
        last_processed_file="a.txt",
        last_found_entry="line",
    )
    store = make_store(state)
    engine = _engine(store, clock, invoker)

    out = reset_impl(engine)

    assert out["last_processed_timestamp"] is None
    assert out["last_processed_file"] is None
    assert store.load().last_found_entry is None


def test_configure_updates_only_given_fields(make_store, clock, invoker) -> None:
    store = make_store()
    engine = _engine(store, clock, invoker)

    out = configure_impl(engine, interval_minutes=120, enabled=False)

    assert out["interval_minutes"] == 60
    assert out["enabled"] is False
    assert out["action_command"] == "/echo Ocean trip found!"
    assert store.load_config().interval_minutes == 60


def test_configure_rejects_blank_directory(make_store, clock, invoker) -> None:
    engine = _engine(make_store(), clock, invoker)
    with pytest.raises(ValueError):
        configure_impl(engine, source_directory="  ")

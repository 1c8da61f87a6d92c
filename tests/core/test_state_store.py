from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ocean_log_monitor.core import state_store
from ocean_log_monitor.core.models import MonitorState, ScheduleConfig
from ocean_log_monitor.core.state_store import JsonStateStore


def test_missing_file_loads_defaults(tmp_path: Path) -> None:
    store = JsonStateStore(tmp_path / "state.json")
    assert store.load() == MonitorState()
    assert store.load_config() == ScheduleConfig()


def test_state_and_config_persist_independently(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    store = JsonStateStore(path)

    store.save_config(ScheduleConfig(source_directory="/logs", interval_minutes=10))
    state = MonitorState(
        last_processed_timestamp=datetime(2025, 6, 14, 10, 0, 0, 123000),
        last_processed_file="a.txt",
        last_found_entry="[10:00:00.123 N] [Ocean Trip] Next boat is in 15 minutes.",
        next_event_time_utc=datetime(2025, 6, 14, 14, 15, tzinfo=UTC),
        next_event_minutes=15,
    )
    store.save(state)

    reopened = JsonStateStore(path)
    assert reopened.load() == state
    assert reopened.load().last_processed_timestamp.tzinfo is None
    assert reopened.load_config().source_directory == "/logs"
    assert reopened.load_config().interval_minutes == 10
    assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonStateStore(path)
    assert store.load() == MonitorState()


def test_interval_is_clamped_on_load(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text('{"config": {"interval_minutes": 500}}', encoding="utf-8")
    assert JsonStateStore(path).load_config().interval_minutes == 60

    path.write_text('{"config": {"interval_minutes": 0}}', encoding="utf-8")
    assert JsonStateStore(path).load_config().interval_minutes == 1


def test_save_fsyncs_before_replace(tmp_path: Path, monkeypatch) -> None:
    calls: list[str] = []
    real_fsync = state_store.os.fsync
    real_replace = state_store.os.replace

    def fsync(fd: int) -> None:
        calls.append("fsync")
        real_fsync(fd)

    def replace(src: str, dst: Path) -> None:
        calls.append("replace")
        real_replace(src, dst)

    monkeypatch.setattr(state_store.os, "fsync", fsync)
    monkeypatch.setattr(state_store.os, "replace", replace)

    JsonStateStore(tmp_path / "state.json").save(MonitorState(last_processed_file="a.txt"))
    assert calls == ["fsync", "replace"]

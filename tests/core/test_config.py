from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from ocean_log_monitor.core.config import (
    DEFAULT_STATE_FILE,
    resolve_config,
    resolve_log_tz,
    state_file_path,
    update_config,
)
from ocean_log_monitor.core.models import ScheduleConfig


def test_update_config_clamps_and_ignores_none() -> None:
    cfg = update_config(ScheduleConfig(), interval_minutes=90, action_command=None)
    assert cfg.interval_minutes == 60
    assert cfg.action_command == ScheduleConfig().action_command


def test_update_config_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Unknown config field"):
        update_config(ScheduleConfig(), colour="blue")


def test_resolve_config_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCEAN_MONITOR_LOG_DIR", "/var/logs/game")
    monkeypatch.setenv("OCEAN_MONITOR_INTERVAL_MINUTES", "0")
    monkeypatch.setenv("OCEAN_MONITOR_DISPLAY_TIMEZONE", "Europe/London")

    cfg = resolve_config(ScheduleConfig(interval_minutes=7))
    assert cfg.source_directory == "/var/logs/game"
    assert cfg.interval_minutes == 1
    assert cfg.display_timezone == "Europe/London"


def test_resolve_config_invalid_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCEAN_MONITOR_INTERVAL_MINUTES", "soon")
    with pytest.raises(ValueError, match="OCEAN_MONITOR_INTERVAL_MINUTES"):
        resolve_config()


def test_resolve_config_without_env_returns_same(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OCEAN_MONITOR_LOG_DIR",
        "OCEAN_MONITOR_INTERVAL_MINUTES",
        "OCEAN_MONITOR_DISPLAY_TIMEZONE",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = ScheduleConfig(interval_minutes=7)
    assert resolve_config(cfg) is cfg


def test_state_file_path_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("OCEAN_MONITOR_STATE_FILE", raising=False)
    assert state_file_path() == Path(DEFAULT_STATE_FILE).expanduser()

    monkeypatch.setenv("OCEAN_MONITOR_STATE_FILE", str(tmp_path / "env.json"))
    assert state_file_path() == tmp_path / "env.json"
    assert state_file_path(tmp_path / "arg.json") == tmp_path / "arg.json"


def test_resolve_log_tz(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCEAN_MONITOR_LOG_TIMEZONE", "America/New_York")
    assert resolve_log_tz() == ZoneInfo("America/New_York")

    monkeypatch.setenv("OCEAN_MONITOR_LOG_TIMEZONE", "Not/AZone")
    with pytest.raises(ValueError, match="OCEAN_MONITOR_LOG_TIMEZONE"):
        resolve_log_tz()

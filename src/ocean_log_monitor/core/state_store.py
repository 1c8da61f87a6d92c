"""JSON-file persistence for configuration and monitor state."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .models import MonitorRecord, MonitorState, ScheduleConfig

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Narrow persistence interface used by the engine."""

    def load(self) -> MonitorState:
        ...

    def save(self, state: MonitorState) -> None:
        ...

    def load_config(self) -> ScheduleConfig:
        ...

    def save_config(self, config: ScheduleConfig) -> None:
        ...


class JsonStateStore:
    """Keeps one ``MonitorRecord`` document on disk.

    Every save rewrites the whole document through a fsynced temporary file
    and ``os.replace`` so readers never observe a partial write.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> MonitorRecord:
        if not self._path.is_file():
            return MonitorRecord()
        try:
            return MonitorRecord.model_validate_json(self._path.read_bytes())
        except ValidationError as exc:
            logger.error("Ignoring unreadable state file %s: %s", self._path, exc)
            return MonitorRecord()

    def _write(self, record: MonitorRecord) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self) -> MonitorState:
        return self._read().state

    def save(self, state: MonitorState) -> None:
        record = self._read()
        record.state = state
        self._write(record)

    def load_config(self) -> ScheduleConfig:
        return self._read().config

    def save_config(self, config: ScheduleConfig) -> None:
        record = self._read()
        record.config = config
        self._write(record)
        logger.info("Configuration saved to %s", self._path)


class MemoryStateStore:
    """In-process store, used by one-shot CLI checks and tests."""

    def __init__(
        self,
        state: MonitorState | None = None,
        config: ScheduleConfig | None = None,
    ) -> None:
        self._state = state or MonitorState()
        self._config = config or ScheduleConfig()
        self.saves = 0

    def load(self) -> MonitorState:
        return self._state.model_copy()

    def save(self, state: MonitorState) -> None:
        self._state = state.model_copy()
        self.saves += 1

    def load_config(self) -> ScheduleConfig:
        return self._config.model_copy()

    def save_config(self, config: ScheduleConfig) -> None:
        self._config = config.model_copy()

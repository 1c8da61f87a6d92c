"""Monitor engine.

Owns the single ``MonitorState`` instance and hands it to the poll scheduler
and the countdown, which write disjoint fields of it. Outer surfaces (MCP
tools, CLI) talk to the engine only.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any

from .actions import ActionInvoker, DefaultActionInvoker
from .config import resolve_config, resolve_log_tz, state_file_path, update_config
from .countdown import TICK_SECONDS, Clock, EventCountdown, utc_now
from .models import MonitorState, ScheduleConfig
from .scheduler import ACTION_DELAY, CheckResult, PollScheduler
from .state_store import JsonStateStore, StateStore
from .timezones import format_display

logger = logging.getLogger(__name__)

NOTICE_LIMIT = 50


@dataclass(frozen=True, slots=True)
class MonitorStatus:
    """Read-only snapshot for status displays. May be slightly stale."""

    enabled: bool
    interval_minutes: int
    source_directory: str | None
    pending_action: bool
    action_fire_at: datetime | None
    time_until_action: timedelta | None
    time_until_next_check: timedelta | None
    last_processed_timestamp: datetime | None
    last_processed_file: str | None
    last_found_entry: str | None
    next_event_time_utc: datetime | None
    next_event_display: str | None
    time_until_event: timedelta | None
    pre_event_fired: bool
    notices: list[str]

    def summary(self) -> str:
        """One-line human summary."""
        status = "enabled" if self.enabled else "disabled"
        pending = " (Command execution pending)" if self.pending_action else ""
        return (
            f"Ocean Log Monitor is {status}{pending}. "
            f"Checking every {self.interval_minutes} minutes."
        )


class MonitorEngine:
    """Wires the store, the invoker and both schedulers together."""

    def __init__(
        self,
        store: StateStore,
        *,
        config: ScheduleConfig | None = None,
        invoker: ActionInvoker | None = None,
        clock: Clock = utc_now,
        log_tz: tzinfo | None = None,
        action_delay: timedelta = ACTION_DELAY,
        tick_seconds: float = TICK_SECONDS,
    ) -> None:
        self._store = store
        self._config = config or store.load_config()
        self._state = store.load()
        self._clock = clock
        self._notices: deque[str] = deque(maxlen=NOTICE_LIMIT)
        log_tz = log_tz or resolve_log_tz()

        invoker = invoker or DefaultActionInvoker(notifier=self.notify)
        self.countdown = EventCountdown(
            state=self._state,
            store=store,
            invoker=invoker,
            config=lambda: self._config,
            clock=clock,
            tick_seconds=tick_seconds,
        )
        self.scheduler = PollScheduler(
            state=self._state,
            store=store,
            invoker=invoker,
            countdown=self.countdown,
            config=lambda: self._config,
            notifier=self.notify,
            clock=clock,
            log_tz=log_tz,
            action_delay=action_delay,
        )

    @property
    def config(self) -> ScheduleConfig:
        return self._config

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def notices(self) -> list[str]:
        return list(self._notices)

    def notify(self, message: str) -> None:
        """Record a user-facing notice."""
        logger.info("%s", message)
        self._notices.append(message)

    async def start(self) -> None:
        self.countdown.restore()
        await self.countdown.start()
        await self.scheduler.start()
        logger.info("Ocean Log Monitor started (log directory: %s)", self._config.source_directory)

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.countdown.stop()
        logger.info("Ocean Log Monitor stopped")

    async def __aenter__(self) -> MonitorEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def force_check(self) -> CheckResult:
        logger.info("Manual log check triggered")
        return await self.scheduler.poll(forced=True)

    def reset(self) -> None:
        self.scheduler.reset()

    def update_config(self, **changes: Any) -> ScheduleConfig:
        self._config = update_config(self._config, **changes)
        self._store.save_config(self._config)
        self.scheduler.interval_changed()
        return self._config

    def status(self, now: datetime | None = None) -> MonitorStatus:
        now = now or self._clock()
        pending = self.scheduler.pending
        target = self.countdown.target
        return MonitorStatus(
            enabled=self._config.enabled,
            interval_minutes=self._config.interval_minutes,
            source_directory=self._config.source_directory,
            pending_action=pending is not None,
            action_fire_at=pending.fire_at if pending else None,
            time_until_action=self.scheduler.time_until_action(now),
            time_until_next_check=self.scheduler.time_until_next_check(now),
            last_processed_timestamp=self._state.last_processed_timestamp,
            last_processed_file=self._state.last_processed_file,
            last_found_entry=self._state.last_found_entry,
            next_event_time_utc=target,
            next_event_display=(
                format_display(target, self._config.display_timezone) if target else None
            ),
            time_until_event=self.countdown.remaining(now),
            pre_event_fired=self.countdown.pre_event_fired,
            notices=self.notices,
        )


def build_engine(state_file: str | Path | None = None, **kwargs: Any) -> MonitorEngine:
    """Create an engine backed by the JSON state file with env overrides."""
    store = JsonStateStore(state_file_path(state_file))
    config = resolve_config(store.load_config())
    return MonitorEngine(store, config=config, **kwargs)


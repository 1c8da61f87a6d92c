"""Countdown to the predicted event time.

Runs a 1-second tick while a target exists and sleeps on an event otherwise.
The pre-event action fires at most once per target and never after the
target has passed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from .actions import ActionInvoker
from .models import MonitorState, ScheduleConfig
from .state_store import StateStore

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0
PRE_EVENT_THRESHOLD = timedelta(minutes=1)
RETARGET_THRESHOLD = timedelta(minutes=1)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class EventCountdown:
    """Tracks ``MonitorState.next_event_*`` and fires the pre-event action."""

    def __init__(
        self,
        *,
        state: MonitorState,
        store: StateStore,
        invoker: ActionInvoker,
        config: Callable[[], ScheduleConfig],
        clock: Clock = utc_now,
        tick_seconds: float = TICK_SECONDS,
        pre_event_threshold: timedelta = PRE_EVENT_THRESHOLD,
        retarget_threshold: timedelta = RETARGET_THRESHOLD,
    ) -> None:
        self._state = state
        self._store = store
        self._invoker = invoker
        self._config = config
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._pre_event_threshold = pre_event_threshold
        self._retarget_threshold = retarget_threshold

        self._target: datetime | None = None
        self._pre_event_fired = False
        self._armed = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def target(self) -> datetime | None:
        return self._target

    @property
    def pre_event_fired(self) -> bool:
        return self._pre_event_fired

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def remaining(self, now: datetime | None = None) -> timedelta | None:
        if self._target is None:
            return None
        return self._target - (now or self._clock())

    def restore(self, now: datetime | None = None, *, persist: bool = True) -> bool:
        """Adopt a persisted target that is still in the future.

        A stale target is cleared, and removed from the store only when
        ``persist`` is set.
        """
        target = self._state.next_event_time_utc
        if target is None:
            return False
        if target.tzinfo is None:
            target = target.replace(tzinfo=UTC)
        if target <= (now or self._clock()):
            self._clear(persist=persist)
            return False
        self._target = target
        self._pre_event_fired = False
        self._armed.set()
        logger.info("Restored event countdown target %s", target.isoformat())
        return True

    def retarget(self, candidate: datetime, minutes: int | None = None) -> bool:
        """Replace the target unless the candidate is within the threshold.

        Returns True when the target was replaced.
        """
        if candidate.tzinfo is None:
            raise ValueError("countdown targets must be timezone-aware")
        candidate = candidate.astimezone(UTC)

        current = self._target
        if current is not None and abs(candidate - current) <= self._retarget_threshold:
            logger.debug(
                "Keeping event target %s (candidate %s within threshold)",
                current.isoformat(),
                candidate.isoformat(),
            )
            return False

        self._target = candidate
        self._pre_event_fired = False
        self._state.next_event_time_utc = candidate
        self._state.next_event_minutes = minutes
        self._store.save(self._state)
        self._armed.set()
        logger.info("Next event expected at %s", candidate.isoformat())
        return True

    def _clear(self, *, persist: bool = True) -> None:
        self._target = None
        self._pre_event_fired = False
        self._armed.clear()
        if not persist:
            return
        if self._state.next_event_time_utc is not None or self._state.next_event_minutes is not None:
            self._state.next_event_time_utc = None
            self._state.next_event_minutes = None
            self._store.save(self._state)

    async def tick(self, now: datetime | None = None) -> None:
        """Advance the countdown once."""
        if self._target is None:
            return
        now = now or self._clock()
        remaining = self._target - now

        if now > self._target:
            logger.info("Event time %s has passed; clearing countdown", self._target.isoformat())
            self._clear()
            return

        if timedelta(0) < remaining <= self._pre_event_threshold and not self._pre_event_fired:
            self._pre_event_fired = True
            command = self._config().pre_event_action_command
            logger.info("Event in %ss, running pre-event action", int(remaining.total_seconds()))
            if not await self._invoker.invoke(command):
                logger.error("Pre-event action failed: %s", command)

    async def _run(self) -> None:
        while True:
            if self._target is None:
                self._armed.clear()
                await self._armed.wait()
                continue
            try:
                await self.tick()
            except Exception:
                logger.exception("Countdown tick failed")
            await asyncio.sleep(self._tick_seconds)

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="event-countdown")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

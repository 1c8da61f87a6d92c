"""Periodic log polling and the delayed action it arms.

The scheduler is Idle or ActionPending. While a pending action exists,
periodic ticks are skipped entirely; forced checks still scan and report
but never arm a second action or touch the processed baseline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from enum import Enum

from .actions import ActionInvoker, Notifier, log_notifier
from .countdown import Clock, EventCountdown, utc_now
from .dates import to_log_time, to_utc
from .marker import MarkerParser
from .models import LogFile, MonitorState, PendingAction, ResolvedEntry, ScheduleConfig
from .resolver import LogDirectoryNotFoundError, is_new_entry, list_log_files, resolve_latest
from .state_store import StateStore

logger = logging.getLogger(__name__)

ACTION_DELAY = timedelta(minutes=1)
SECONDS_PER_MINUTE = 60


class CheckOutcome(str, Enum):
    """What a single poll concluded."""

    DISABLED = "disabled"
    SKIPPED_PENDING = "skipped_pending"
    NO_FILES = "no_files"
    NO_CANDIDATE = "no_candidate"
    NOT_NEW = "not_new"
    NEW_ENTRY = "new_entry"
    NEW_WHILE_PENDING = "new_while_pending"


@dataclass(frozen=True, slots=True)
class CheckResult:
    outcome: CheckOutcome
    forced: bool
    checked_at: datetime
    files_scanned: int = 0
    match_count: int = 0
    latest: ResolvedEntry | None = None
    last_processed: datetime | None = None
    is_new: bool = False
    fire_at: datetime | None = None
    deleted: list[str] = field(default_factory=list)


class PollScheduler:
    """Runs the directory scan on the configured interval."""

    def __init__(
        self,
        *,
        state: MonitorState,
        store: StateStore,
        invoker: ActionInvoker,
        countdown: EventCountdown,
        config: Callable[[], ScheduleConfig],
        notifier: Notifier | None = None,
        clock: Clock = utc_now,
        log_tz: tzinfo = UTC,
        action_delay: timedelta = ACTION_DELAY,
        parser: MarkerParser | None = None,
    ) -> None:
        self._state = state
        self._store = store
        self._invoker = invoker
        self._countdown = countdown
        self._config = config
        self._notify = notifier or log_notifier
        self._clock = clock
        self._log_tz = log_tz
        self._action_delay = action_delay
        self._parser = parser

        self._pending: PendingAction | None = None
        self._scan_lock = asyncio.Lock()
        self._last_check: datetime | None = None
        self._task: asyncio.Task | None = None
        self._wake = asyncio.Event()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    @property
    def has_pending_action(self) -> bool:
        return self._pending is not None

    @property
    def last_check(self) -> datetime | None:
        return self._last_check

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def time_until_action(self, now: datetime | None = None) -> timedelta | None:
        if self._pending is None:
            return None
        return self._pending.fire_at - (now or self._clock())

    def time_until_next_check(self, now: datetime | None = None) -> timedelta | None:
        if self._last_check is None:
            return None
        interval = timedelta(minutes=self._config().interval_minutes)
        return self._last_check + interval - (now or self._clock())

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def poll(self, *, forced: bool = False) -> CheckResult:
        """Run one check.

        Raises LogDirectoryNotFoundError when the source directory is missing;
        no state is touched in that case.
        """
        cfg = self._config()
        if not forced:
            if not cfg.enabled:
                return CheckResult(CheckOutcome.DISABLED, forced, self._clock())
            if self._pending is not None:
                logger.info("Skipping check due to pending command execution")
                return CheckResult(CheckOutcome.SKIPPED_PENDING, forced, self._clock())

        async with self._scan_lock:
            return await self._check(cfg, forced=forced)

    async def _check(self, cfg: ScheduleConfig, *, forced: bool) -> CheckResult:
        now_utc = self._clock()
        self._last_check = now_utc
        now = to_log_time(now_utc, log_tz=self._log_tz)

        if not cfg.source_directory:
            raise LogDirectoryNotFoundError("No log directory configured")

        try:
            files = list_log_files(cfg.source_directory, pattern=cfg.file_pattern, log_tz=self._log_tz)
        except LogDirectoryNotFoundError as exc:
            self._notify(str(exc))
            raise

        if not files:
            logger.warning("No log files found in directory: %s", cfg.source_directory)
            self._notify(f"No log files found in directory: {cfg.source_directory}")
            return CheckResult(CheckOutcome.NO_FILES, forced, now_utc)

        logger.info("Checking %d log files from %s", len(files), cfg.source_directory)
        resolution = await resolve_latest(
            files,
            now=now,
            last_processed_file=self._state.last_processed_file,
            parser=self._parser,
        )
        best = resolution.best
        last_processed = self._state.last_processed_timestamp

        fire_at: datetime | None = None
        is_new = False
        if best is None:
            outcome = CheckOutcome.NO_CANDIDATE
        else:
            is_new = is_new_entry(best, self._state, now=now)
            if not is_new:
                outcome = CheckOutcome.NOT_NEW
                logger.info(
                    "Found entry time (%s) not newer than last processed time (%s)",
                    best.timestamp,
                    last_processed,
                )
            elif self._pending is not None:
                outcome = CheckOutcome.NEW_WHILE_PENDING
                logger.info("New entry %s seen while an action is pending", best.timestamp)
            else:
                outcome = CheckOutcome.NEW_ENTRY
                fire_at = self._accept(best, now_utc)

        if forced:
            self._report(best, last_processed, is_new)

        deleted: list[str] = []
        if cfg.delete_old_files:
            deleted = self._cleanup(resolution.files)

        return CheckResult(
            outcome=outcome,
            forced=forced,
            checked_at=now_utc,
            files_scanned=len(resolution.files),
            match_count=resolution.match_count,
            latest=best,
            last_processed=last_processed,
            is_new=is_new,
            fire_at=fire_at,
            deleted=deleted,
        )

    def _accept(self, entry: ResolvedEntry, now_utc: datetime) -> datetime:
        """Record a new entry, arm the delayed action and retarget the countdown."""
        event_utc = to_utc(entry.event_time, log_tz=self._log_tz)
        logger.info("New ocean trip detected: %s", entry.line)
        self._state.last_processed_timestamp = entry.timestamp
        self._state.last_found_entry = entry.line
        self._state.last_processed_file = entry.source_file.name
        self._store.save(self._state)

        pending = self._arm(now_utc)
        self._notify(
            f"New ocean trip detected, command will be executed in "
            f"{_format_delay(self._action_delay)}."
        )

        self._countdown.retarget(event_utc, entry.minutes_until_event)
        return pending.fire_at

    def _report(self, best: ResolvedEntry | None, last_processed: datetime | None, is_new: bool) -> None:
        if best is None:
            self._notify("No ocean trip entries found in logs.")
            return
        self._notify(f"Latest ocean trip found: {best.line}")
        self._notify(f"Entry time: {best.timestamp}, Last processed: {last_processed}")
        self._notify(f"Is new: {is_new}")

    def _cleanup(self, files: list[LogFile]) -> list[str]:
        """Delete scanned files other than the current reference file."""
        keep = self._state.last_processed_file
        if keep is None:
            logger.info("No reference log file recorded; skipping cleanup")
            return []

        deleted: list[str] = []
        for f in files:
            if f.name == keep:
                continue
            try:
                f.path.unlink()
            except OSError as exc:
                logger.error("Failed to delete old log file %s: %s", f.path, exc)
                continue
            deleted.append(f.name)
            logger.info("Deleted old log file %s", f.path)
        return deleted

    def reset(self) -> None:
        """Forget the processed baseline. Pending work is left alone."""
        self._state.clear_baseline()
        self._store.save(self._state)
        logger.info("Processed baseline cleared")

    # ------------------------------------------------------------------
    # Pending action
    # ------------------------------------------------------------------

    def _arm(self, now_utc: datetime) -> PendingAction:
        pending = PendingAction(fire_at=now_utc + self._action_delay)
        pending.task = asyncio.create_task(self._run_pending(pending), name="pending-action")
        self._pending = pending
        return pending

    async def _run_pending(self, pending: PendingAction) -> None:
        try:
            await asyncio.sleep(self._action_delay.total_seconds())
            command = self._config().action_command
            if not await self._invoker.invoke(command):
                logger.error("Action failed: %s", command)
        except asyncio.CancelledError:
            logger.info("Pending action cancelled")
            raise
        except Exception as exc:
            logger.exception("Error during command execution")
            self._notify(f"Error executing command: {exc}")
        finally:
            if self._pending is pending:
                self._pending = None
            logger.info("Command execution completed, resuming monitoring")

    async def wait_pending(self) -> None:
        """Wait for the outstanding pending action, if any."""
        pending = self._pending
        if pending is not None and pending.task is not None:
            await asyncio.gather(pending.task, return_exceptions=True)

    async def cancel_pending(self) -> None:
        pending = self._pending
        if pending is None or pending.task is None:
            return
        pending.task.cancel()
        await asyncio.gather(pending.task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll()
            except LogDirectoryNotFoundError as exc:
                logger.error("Error checking logs: %s", exc)
            except Exception:
                logger.exception("Error processing logs")
            await self._sleep_interval()

    async def _sleep_interval(self) -> None:
        """Sleep one interval, re-reading it whenever the config changes."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        while True:
            interval = self._config().interval_minutes * SECONDS_PER_MINUTE
            remaining = interval - (loop.time() - started)
            if remaining <= 0:
                return
            self._wake.clear()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=remaining)
            except TimeoutError:
                return

    def interval_changed(self) -> None:
        """Wake the loop so a new interval applies to the current wait."""
        self._wake.set()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop(), name="poll-scheduler")

    async def stop(self) -> None:
        """Stop the loop and cancel any pending action."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.cancel_pending()


def _format_delay(delay: timedelta) -> str:
    seconds = int(delay.total_seconds())
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"

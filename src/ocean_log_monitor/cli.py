from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from ocean_log_monitor.core.config import configure_logging, resolve_log_tz
from ocean_log_monitor.core.countdown import utc_now
from ocean_log_monitor.core.dates import to_log_time
from ocean_log_monitor.core.engine import MonitorEngine, build_engine
from ocean_log_monitor.core.resolver import is_new_entry, scan_directory
from ocean_log_monitor.core.timezones import format_duration


def _build(args: argparse.Namespace) -> MonitorEngine:
    engine = build_engine(args.state_file)
    if args.dir:
        engine.update_config(source_directory=str(args.dir))
    return engine


async def _check(args: argparse.Namespace) -> int:
    """Scan once without arming anything or touching the state file.

    ``--dir`` only applies to this scan and is not saved.
    """
    engine = build_engine(args.state_file)
    cfg = engine.config
    directory = str(args.dir) if args.dir else cfg.source_directory
    if not directory:
        print("No log directory configured (use --dir).", file=sys.stderr)
        return 2

    log_tz = resolve_log_tz()
    now = to_log_time(utc_now(), log_tz=log_tz)
    resolution = await scan_directory(
        directory,
        now=now,
        last_processed_file=engine.state.last_processed_file,
        pattern=cfg.file_pattern,
        log_tz=log_tz,
    )

    print(f"Checked {len(resolution.files)} log files, {resolution.match_count} matching lines.")
    best = resolution.best
    if best is None:
        print("No ocean trip entries found in logs.")
        return 0

    print(f"Latest ocean trip found: {best.line}")
    print(f"Entry time: {best.timestamp}, Last processed: {engine.state.last_processed_timestamp}")
    print(f"Next boat: {best.event_time} ({best.source_file.name}:{best.line_no})")
    print(f"Is new: {is_new_entry(best, engine.state, now=now)}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    engine = _build(args)
    async with engine:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            pass
    return 0


def _status(args: argparse.Namespace) -> int:
    engine = _build(args)
    engine.countdown.restore(persist=False)
    status = engine.status()
    print(status.summary())
    print(f"Log directory: {status.source_directory or '-'}")
    last = status.last_processed_timestamp
    if last is not None:
        print(f"Last processed: {last.isoformat(sep=' ', timespec='milliseconds')}")
    else:
        print("Last processed: Never")
    if status.last_found_entry:
        print(f"Last entry: {status.last_found_entry}")
    if status.next_event_display:
        print(f"Boat: {status.next_event_display}  ({format_duration(status.time_until_event)})")
    else:
        print("Next boat: Unknown")
    return 0


def _reset(args: argparse.Namespace) -> int:
    engine = _build(args)
    engine.reset()
    print("Processed baseline cleared.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Watch game logs for ocean trip announcements.")
    p.add_argument("--state-file", type=Path, default=None, help="JSON state file")
    p.add_argument(
        "--dir", type=Path, default=None, help="Log directory (saved to config, except by check)"
    )

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("check", help="Scan once and print the latest entry")
    sub.add_parser("run", help="Run the monitor until interrupted")
    sub.add_parser("status", help="Print monitor status")
    sub.add_parser("reset", help="Forget the last processed entry")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        if args.command == "check":
            code = asyncio.run(_check(args))
        elif args.command == "run":
            code = asyncio.run(_run(args))
        elif args.command == "status":
            code = _status(args)
        else:
            code = _reset(args)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    except KeyboardInterrupt:
        code = 0

    raise SystemExit(code)


if __name__ == "__main__":
    main()

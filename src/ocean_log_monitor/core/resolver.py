"""Directory scanning and latest-entry resolution.

This module is the main integration point that reads log files and turns
marker lines into resolved, date-disambiguated entries.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from datetime import UTC, datetime, tzinfo
from pathlib import Path

import aiofiles

from .dates import is_newer, resolve_timestamp
from .marker import MarkerParser, default_marker_parser
from .models import LogFile, MonitorState, RawMatch, Resolution, ResolvedEntry

logger = logging.getLogger(__name__)


class LogDirectoryNotFoundError(FileNotFoundError):
    """The configured log directory does not exist."""


def list_log_files(
    directory: str | Path,
    *,
    pattern: str = "*.txt",
    log_tz: tzinfo = UTC,
) -> list[LogFile]:
    """Return matching files, most recently modified first."""
    path = Path(directory)
    if not path.is_dir():
        raise LogDirectoryNotFoundError(f"Log directory not found: {path}")

    files: list[LogFile] = []
    for p in path.glob(pattern):
        try:
            if not p.is_file():
                continue
            mtime = p.stat().st_mtime
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", p, exc)
            continue
        modified = datetime.fromtimestamp(mtime, tz=UTC).astimezone(log_tz).replace(tzinfo=None)
        files.append(LogFile(path=p, last_modified=modified))

    files.sort(key=lambda f: f.last_modified, reverse=True)
    return files


async def iter_matches(
    log_file: LogFile,
    *,
    parser: MarkerParser | None = None,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> AsyncIterator[RawMatch]:
    """Yield every marker line of one file."""
    parser = parser or default_marker_parser()
    async with aiofiles.open(log_file.path, encoding=encoding, errors=decode_errors) as f:
        line_no = 0
        async for line in f:
            line_no += 1
            line = line.rstrip("\r\n")
            found = parser.parse(line)
            if found is None:
                continue
            yield RawMatch(
                source_file=log_file,
                line_no=line_no,
                line=line,
                time_of_day=found.time_of_day,
                minutes_until_event=found.minutes_until_event,
            )


def resolve_match(match: RawMatch, *, now: datetime) -> ResolvedEntry:
    """Attach the inferred calendar date to a raw match."""
    return ResolvedEntry(
        source_file=match.source_file,
        line_no=match.line_no,
        line=match.line,
        timestamp=resolve_timestamp(match.time_of_day, match.source_file.last_modified, now),
        minutes_until_event=match.minutes_until_event,
    )


def supersedes(
    candidate: ResolvedEntry,
    best: ResolvedEntry | None,
    *,
    now: datetime,
    last_processed_file: str | None,
) -> bool:
    """Total order used to pick the single best entry of a scan.

    Equal timestamps prefer any file other than the last processed one, so
    the last scanned such file wins among remaining ties.
    """
    if best is None:
        return True
    if is_newer(candidate.timestamp, best.timestamp, now):
        return True
    return (
        candidate.timestamp == best.timestamp
        and candidate.source_file.name != last_processed_file
    )


async def resolve_latest(
    files: Sequence[LogFile],
    *,
    now: datetime,
    last_processed_file: str | None = None,
    parser: MarkerParser | None = None,
) -> Resolution:
    """Scan files (already sorted newest first) and select the best entry.

    Unreadable files are logged and skipped.
    """
    parser = parser or default_marker_parser()
    best: ResolvedEntry | None = None
    count = 0

    for log_file in files:
        logger.debug("Examining log file %s (modified %s)", log_file.path, log_file.last_modified)
        try:
            async for match in iter_matches(log_file, parser=parser):
                count += 1
                entry = resolve_match(match, now=now)
                if supersedes(entry, best, now=now, last_processed_file=last_processed_file):
                    best = entry
        except OSError as exc:
            logger.error("Error reading log file %s: %s", log_file.path, exc)
            continue

    if best is not None:
        logger.debug("Latest entry %s from %s", best.timestamp, best.source_file.name)
    return Resolution(files=list(files), best=best, match_count=count)


async def scan_directory(
    directory: str | Path,
    *,
    now: datetime,
    last_processed_file: str | None = None,
    pattern: str = "*.txt",
    log_tz: tzinfo = UTC,
    parser: MarkerParser | None = None,
) -> Resolution:
    """List and resolve a directory in one call."""
    files = list_log_files(directory, pattern=pattern, log_tz=log_tz)
    return await resolve_latest(
        files, now=now, last_processed_file=last_processed_file, parser=parser
    )


def is_new_entry(entry: ResolvedEntry, state: MonitorState, *, now: datetime) -> bool:
    """Decide whether an entry is new relative to the processed baseline.

    A timestamp tie is new only when it comes from another file and is not
    the line already processed, so duplicated lines never fire twice.
    """
    last = state.last_processed_timestamp or datetime.min
    if is_newer(entry.timestamp, last, now):
        return True
    return (
        entry.timestamp == last
        and entry.source_file.name != state.last_processed_file
        and entry.line != state.last_found_entry
    )

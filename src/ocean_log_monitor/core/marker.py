"""Marker line parser.

Recognizes lines of the form::

    [10:00:00.000 N] [Ocean Trip] Next boat is in 15 minutes. Passing the time until then.

The grammar is fixed, so this is a small token scan rather than a regex.
Literals are compared case-insensitively and the marker may appear anywhere
in the line.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from .models import MarkerTime

DEFAULT_MINUTES_UNTIL_EVENT = 60
MAX_MINUTES_UNTIL_EVENT = 24 * 60


def parse_time_of_day(s: str) -> time | None:
    """Parse ``HH:MM:SS[.fff]``. Returns None on any deviation."""
    clock, dot, frac = s.partition(".")
    parts = clock.split(":")
    if len(parts) != 3 or any(len(p) != 2 or not p.isdigit() for p in parts):
        return None
    if dot and (not frac or not frac.isdigit()):
        return None

    hour, minute, second = (int(p) for p in parts)
    if hour > 23 or minute > 59 or second > 59:
        return None

    # Fractions are right-padded / truncated to microseconds.
    micro = int(frac[:6].ljust(6, "0")) if frac else 0
    return time(hour, minute, second, micro)


@dataclass(frozen=True, slots=True)
class MarkerParser:
    """Parse '[<time> <tag>] [<category>] <phrase> in <N> minutes...' lines."""

    category: str = "Ocean Trip"
    phrase: str = "Next boat is"
    default_minutes: int = DEFAULT_MINUTES_UNTIL_EVENT

    def _parse_header(self, header: str) -> time | None:
        """Parse the '<time> <tag>' part found between the first brackets."""
        ts, sep, tag = header.rpartition(" ")
        if not sep or len(tag) != 1 or not tag.isalpha():
            return None
        return parse_time_of_day(ts)

    def _parse_minutes(self, token: str) -> int:
        try:
            value = int(token)
        except ValueError:
            return self.default_minutes
        if value < 0 or value > MAX_MINUTES_UNTIL_EVENT:
            return self.default_minutes
        return value

    def _parse_body(self, body: str) -> int | None:
        """Match ' [<category>] <phrase> in <N> minutes' and return N."""
        prefix = f" [{self.category}] {self.phrase} in "
        if body[: len(prefix)].casefold() != prefix.casefold():
            return None

        rest = body[len(prefix) :]
        token, sep, tail = rest.partition(" ")
        if not token or not sep or not tail[:7].casefold() == "minutes":
            return None
        return self._parse_minutes(token)

    def _parse_at(self, line: str, start: int) -> MarkerTime | None:
        close = line.find("]", start)
        if close == -1:
            return None

        tod = self._parse_header(line[start + 1 : close])
        if tod is None:
            return None

        minutes = self._parse_body(line[close + 1 :])
        if minutes is None:
            return None
        return MarkerTime(time_of_day=tod, minutes_until_event=minutes)

    def parse(self, line: str) -> MarkerTime | None:
        """Return the marker fields if the line matches, else None."""
        start = line.find("[")
        while start != -1:
            out = self._parse_at(line, start)
            if out is not None:
                return out
            start = line.find("[", start + 1)
        return None


def default_marker_parser() -> MarkerParser:
    return MarkerParser()

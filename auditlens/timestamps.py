#!python3
"""
Timestamp normalization for AuditLens.

Audit exports carry dates in whatever format the exporting locale produced.
Parsing happens in two phases:

1. Direct generic parsing with ``dateutil``.
2. An ordered table of explicit grammars, each confirming the shape of the
   candidate and building the instant from its captured groups.

Either way the resulting instant must fall inside a plausibility window of
calendar years, which rejects numeric misreads that would otherwise corrupt
time range aggregation.
"""

import logging
import re
import warnings
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser

from .config import TimestampConfig


# Default date used by direct parsing: components missing from the candidate
# come from here, which lands them outside any sensible plausibility window.
_DIRECT_PARSE_DEFAULT = datetime(1900, 1, 1)


def _fraction_to_microseconds(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    return int(fraction[:6].ljust(6, "0"))


def _build_ymd(m: re.Match) -> datetime:
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    return datetime(year, month, day, hour, minute, second, _fraction_to_microseconds(m.group(7)))


def _to_24h(hour: int, meridiem: Optional[str]) -> int:
    if not meridiem:
        return hour
    if hour > 12:
        raise ValueError(f"hour {hour} is not a 12-hour clock value")
    return hour % 12 + (12 if meridiem.upper() == "PM" else 0)


def _build_mdy(m: re.Match) -> datetime:
    month, day, year, hour, minute, second = (int(g) for g in m.groups()[:6])
    return datetime(year, month, day, _to_24h(hour, m.group(7)), minute, second)


def _build_dmy(m: re.Match) -> datetime:
    day, month, year, hour, minute, second = (int(g) for g in m.groups()[:6])
    return datetime(year, month, day, hour, minute, second)


def _build_iso(m: re.Match) -> datetime:
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    value = datetime(year, month, day, hour, minute, second, _fraction_to_microseconds(m.group(7)))
    offset = m.group(8)
    if offset and offset.upper() != "Z":
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        value = value - sign * delta
    return value


# Ordered grammar table: (compiled regex, name, builder).
# Patterns are unanchored at the end so they serve both full-string parsing
# (fullmatch) and prefix consumption in heuristic extraction (match).
TIMESTAMP_GRAMMARS: List[Tuple[re.Pattern, str, Callable[[re.Match], datetime]]] = [
    (re.compile(
        r'(\d{4})-(\d{2})-(\d{2})\s+(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d{1,6}))?'
    ), "YYYY-MM-DD HH:MM:SS", _build_ymd),
    (re.compile(
        r'(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2}):(\d{2})(?:\s*([AaPp][Mm])\b)?'
    ), "M/D/YYYY H:MM:SS AM/PM", _build_mdy),
    # A trailing meridiem belongs to the M/D grammar, never to D/M
    (re.compile(
        r'(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2}):(\d{2})(?!\s*[AaPp][Mm]\b)'
    ), "D/M/YYYY H:MM:SS", _build_dmy),
    (re.compile(
        r'(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:?\d{2})?'
    ), "ISO 8601", _build_iso),
]


def _naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC so every timestamp compares."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TimestampNormalizer:
    """
    Parse timestamp candidates into validated naive datetimes.

    Usage:
        normalizer = TimestampNormalizer()
        normalizer.parse("6/3/2025 3:54:15 PM")   # datetime(2025, 6, 3, 15, 54, 15)
        normalizer.parse("1/1/1999 10:00:00")     # None (outside window)
    """

    def __init__(
        self,
        config: Optional[TimestampConfig] = None,
        *,
        logger: Optional[logging.Logger] = None
    ):
        cfg = config or TimestampConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.year_min = cfg.year_min
        self.year_max = cfg.year_max

    def in_window(self, value: Optional[datetime]) -> bool:
        """Check that a datetime falls inside the plausibility window."""
        return value is not None and self.year_min <= value.year <= self.year_max

    def parse(self, candidate) -> Optional[datetime]:
        """Return the instant denoted by candidate, or None."""
        if not isinstance(candidate, str):
            return None
        text = candidate.strip()
        if not text:
            return None

        direct = self._parse_direct(text)
        if direct is not None:
            return direct

        for pattern, name, builder in TIMESTAMP_GRAMMARS:
            match = pattern.fullmatch(text)
            if not match:
                continue
            value = self._build(match, builder, name)
            if value is not None:
                return value

        return None

    def match_prefix(self, text: str) -> Optional[Tuple[datetime, int]]:
        """
        Consume a timestamp anchored at the start of text.

        Returns:
            (datetime, end index of the matched prefix) or None
        """
        if not text:
            return None
        for pattern, name, builder in TIMESTAMP_GRAMMARS:
            match = pattern.match(text)
            if not match:
                continue
            value = self._build(match, builder, name)
            if value is not None:
                return value, match.end()
        return None

    def _parse_direct(self, text: str) -> Optional[datetime]:
        try:
            with warnings.catch_warnings():
                # Unknown zone names such as "PMM" parse as naive times, silently
                warnings.simplefilter("ignore", date_parser.UnknownTimezoneWarning)
                value = _naive_utc(date_parser.parse(text, default=_DIRECT_PARSE_DEFAULT))
        except (ValueError, OverflowError):
            # Offsets of a day or more are rejected by astimezone()
            return None
        if self.in_window(value):
            return value
        return None

    def _build(self, match: re.Match, builder, name: str) -> Optional[datetime]:
        try:
            value = builder(match)
        except (ValueError, OverflowError) as e:
            self.logger.debug(f"Timestamp shape '{name}' matched {match.group(0)!r} but is invalid: {e}")
            return None
        if self.in_window(value):
            return value
        return None


_default_normalizer = TimestampNormalizer()


def parse_timestamp(candidate) -> Optional[datetime]:
    """Parse a candidate with the default plausibility window (2020-2030)."""
    return _default_normalizer.parse(candidate)

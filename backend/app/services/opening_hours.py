"""
Plateful Backend — Opening Hours Evaluation
=============================================

What:  Decides whether a restaurant is open at a given moment.
Why:   "Open now" depends on the wall clock of the city the restaurants are
       in, not on the server's timezone, and must be recomputed per request.
How:   A Clock supplies the current instant; reference_point() converts it to
       (time-of-day, weekday key) in the configured zone; is_open_now()
       compares that against the day's "HH:MM-HH:MM" span.

Span rules:
    "09:00-17:00"  same-day   → open iff 09:00 <= t <= 17:00
    "22:00-02:00"  overnight  → open iff t >= 22:00 or t <= 02:00
    missing / blank / malformed → closed (bad data never raises)
"""

import re
from datetime import datetime, time
from typing import List, Mapping, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

from app.config import settings
from app.models.restaurant import Restaurant

WEEKDAY_KEYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_CLOCK_PATTERN = re.compile(r"^([0-9]{2}):([0-9]{2})$")


class Clock(Protocol):
    """Source of the current instant (timezone-aware)."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Reads the real time in `tz` (defaults to the configured zone)."""

    def __init__(self, tz: Optional[str] = None):
        self.tz = ZoneInfo(tz or settings.open_now_timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Always returns the same instant. Used by tests and replay tooling."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def reference_point(clock: Clock, tz: Optional[str] = None) -> Tuple[time, str]:
    """
    Current (time-of-day, weekday key) in the designated timezone.

    Seconds are kept: a span ending at 17:00 covers 17:00:00 exactly, so
    17:00:45 is already past closing.
    """
    zone = ZoneInfo(tz or settings.open_now_timezone)
    instant = clock.now()
    local = instant.astimezone(zone) if instant.tzinfo is not None else instant
    return local.time(), WEEKDAY_KEYS[local.weekday()]


def _parse_clock(value: str) -> Optional[time]:
    match = _CLOCK_PATTERN.match(value.strip())
    if match is None:
        return None
    try:
        return time(int(match.group(1)), int(match.group(2)))
    except ValueError:
        return None


def parse_span(span: Optional[str]) -> Optional[Tuple[time, time]]:
    """Parses "HH:MM-HH:MM" into (start, end); None when blank or malformed."""
    if not isinstance(span, str) or not span.strip():
        return None
    parts = span.split("-")
    if len(parts) != 2:
        return None
    start = _parse_clock(parts[0])
    end = _parse_clock(parts[1])
    if start is None or end is None:
        return None
    return start, end


def is_open_now(
    hours: Optional[Mapping[str, Optional[str]]],
    reference_time: time,
    reference_weekday: str,
) -> bool:
    """
    True when `reference_time` falls inside the span for `reference_weekday`.

    Both span ends are inclusive. An overnight span (end earlier than start)
    wraps past midnight.
    """
    if not hours or not isinstance(hours, Mapping):
        return False
    parsed = parse_span(hours.get(reference_weekday))
    if parsed is None:
        return False
    start, end = parsed
    if end >= start:
        return start <= reference_time <= end
    return reference_time >= start or reference_time <= end


def filter_open_now(
    candidates: List[Restaurant],
    clock: Optional[Clock] = None,
    tz: Optional[str] = None,
) -> List[Restaurant]:
    """
    Keep only restaurants open at the clock's current instant.

    One reference point is taken for the whole list so every candidate is
    judged against the same minute.
    """
    current_time, weekday = reference_point(clock or SystemClock(tz), tz)
    return [r for r in candidates if is_open_now(r.hours, current_time, weekday)]

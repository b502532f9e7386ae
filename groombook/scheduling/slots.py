"""Slot generation for the booking day.

Two granularities are in play:

* client slots, every 30 minutes, shown to the person booking;
* backend ticks, every 10 minutes, the unit staff availability is stored in.

Everything here is a pure function of its arguments.
"""

from __future__ import annotations

from datetime import date
from typing import List

from groombook.config import DEFAULT_HOURS, BusinessHours

BACKEND_INTERVAL_MINUTES = 10
CLIENT_INTERVAL_MINUTES = 30

# Ticks that would start at or after closing time are cut from a service's
# tick list instead of extending past the window or rejecting the slot.
TRUNCATE_AT_CLOSE = "truncate-at-close"


def parse_minutes(value: str) -> int:
    """Return minutes since midnight for ``HH:MM`` or ``HH:MM:SS``."""

    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time value: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 24 and 0 <= minute < 60) or (hour == 24 and minute > 0):
        raise ValueError(f"Invalid time value: {value!r}")
    return hour * 60 + minute


def format_minutes(total_minutes: int, *, with_seconds: bool = True) -> str:
    """Render minutes since midnight as ``HH:MM:SS`` (or ``HH:MM``)."""

    hour, minute = divmod(total_minutes, 60)
    if with_seconds:
        return f"{hour:02d}:{minute:02d}:00"
    return f"{hour:02d}:{minute:02d}"


def to_hhmm(value: str) -> str:
    """Trim ``HH:MM:SS`` to ``HH:MM``."""

    if not value:
        return ""
    return value[:5]


def to_hhmmss(value: str) -> str:
    """Pad ``HH:MM`` to the backend's ``HH:MM:SS``."""

    if not value:
        return ""
    return f"{value}:00" if len(value) == 5 else value


def is_saturday(day: date) -> bool:
    return day.weekday() == 5


def is_sunday(day: date) -> bool:
    return day.weekday() == 6


def generate_backend_slots(
    start_hour: int,
    end_hour: int,
    interval: int = BACKEND_INTERVAL_MINUTES,
) -> List[str]:
    """Every ``interval`` minutes in ``[start_hour, end_hour)`` as ``HH:MM:00``.

    A trailing partial interval is dropped, so no emitted slot is ever at or
    past ``end_hour``.
    """

    if interval <= 0:
        raise ValueError("interval must be positive")
    start = start_hour * 60
    end = end_hour * 60
    return [format_minutes(minute) for minute in range(start, end, interval)]


def generate_client_slots(
    is_saturday: bool,
    hours: BusinessHours = DEFAULT_HOURS,
) -> List[str]:
    """Client-facing 30 minute slots as ``HH:MM`` for a weekday or Saturday."""

    start = hours.start_hour * 60
    end = hours.end_hour(is_saturday) * 60
    return [
        format_minutes(minute, with_seconds=False)
        for minute in range(start, end, hours.client_interval_minutes)
    ]


def get_required_backend_slots(
    start_time: str,
    duration_minutes: int,
    end_hour: int,
    interval: int = BACKEND_INTERVAL_MINUTES,
) -> List[str]:
    """Backend ticks a service of ``duration_minutes`` occupies from ``start_time``.

    One tick per ``interval`` minutes of duration. A tick whose hour is at or
    past ``end_hour`` ends the list (``TRUNCATE_AT_CLOSE``), so a service that
    does not fit before closing yields a shortened list.
    """

    start = parse_minutes(start_time)
    ticks: List[str] = []
    for offset in range(0, max(duration_minutes, 0), interval):
        minute = start + offset
        if minute // 60 >= end_hour:
            break
        ticks.append(format_minutes(minute))
    return ticks

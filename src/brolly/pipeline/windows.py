"""
Named time windows and their resolution against the current instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, Tuple

from ..util.time import ensure_aware


class TimeWindow(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    TODAY = "today"

    @classmethod
    def parse(cls, value: "TimeWindow | str") -> "TimeWindow":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown time window '{value}'; expected one of: {choices}") from exc


# (first hour, last hour) inclusive; TODAY's first hour is the caller's current hour.
_FIXED_HOURS: Dict[TimeWindow, Tuple[int, int]] = {
    TimeWindow.MORNING: (6, 11),
    TimeWindow.AFTERNOON: (12, 17),
    TimeWindow.EVENING: (18, 23),
}

_LABELS: Dict[TimeWindow, str] = {
    TimeWindow.MORNING: "Morning (6:00 - 12:00)",
    TimeWindow.AFTERNOON: "Afternoon (12:00 - 18:00)",
    TimeWindow.EVENING: "Evening (18:00 - 24:00)",
    TimeWindow.TODAY: "Rest of the day",
}


@dataclass(frozen=True)
class ResolvedWindow:
    """
    A time window pinned to a calendar day.

    Attributes:
        window: The requested window.
        start_hour: First hour included.
        end_hour: Last hour included (the window runs to the end of this hour).
        date_offset: 0 for the current day, 1 when the window already ended today.
        day: The calendar day the window refers to.
        start: First instant inside the window.
        end: Last instant inside the window (``end_hour``:59:59.999).
    """
    window: TimeWindow
    start_hour: int
    end_hour: int
    date_offset: int
    day: date
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def hour_range(window: TimeWindow, current_hour: int) -> Tuple[int, int]:
    if window is TimeWindow.TODAY:
        return current_hour, 23
    return _FIXED_HOURS[window]


def resolve_window(window: TimeWindow | str, now: datetime) -> ResolvedWindow:
    """
    Pin ``window`` to a calendar day relative to ``now``.

    Fixed windows whose last hour is already behind ``now`` move to the next day;
    ``today`` never moves. Naive ``now`` values are treated as UTC.
    """
    window = TimeWindow.parse(window)
    now = ensure_aware(now)
    start_hour, end_hour = hour_range(window, now.hour)

    date_offset = 0
    if window is not TimeWindow.TODAY and now.hour > end_hour:
        date_offset = 1

    day = now.date() + timedelta(days=date_offset)
    start = datetime.combine(day, time(start_hour, 0, 0, 0), tzinfo=now.tzinfo)
    end = datetime.combine(day, time(end_hour, 59, 59, 999000), tzinfo=now.tzinfo)
    return ResolvedWindow(
        window=window,
        start_hour=start_hour,
        end_hour=end_hour,
        date_offset=date_offset,
        day=day,
        start=start,
        end=end,
    )


def window_label(window: TimeWindow | str) -> str:
    return _LABELS[TimeWindow.parse(window)]


def describe_date(now: datetime, window: TimeWindow | str, date_offset: int = 0) -> str:
    """Return the display line for a window, e.g. ``"Sunday, 18 October 2026 · Morning (6:00 - 12:00)"``."""
    day = ensure_aware(now).date() + timedelta(days=date_offset)
    return f"{day.strftime('%A')}, {day.day} {day.strftime('%B %Y')} · {window_label(window)}"

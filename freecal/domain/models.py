"""
Domain models for interval and free slot calculations.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import List

import pendulum
from pendulum import DateTime

from .timeutils import weekday_label


@dataclass(frozen=True)
class Interval:
    """
    Immutable half-open time range ``[start, end)``.

    Intervals with ``end <= start`` are allowed but considered empty; the
    calculations skip them instead of raising.
    """
    start: DateTime
    end: DateTime

    def is_empty(self) -> bool:
        """Return True if the interval covers no time."""
        return self.end <= self.start

    def duration(self) -> timedelta:
        """Return the length of the interval (zero for empty intervals)."""
        if self.is_empty():
            return timedelta(0)
        return self.end - self.start

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int(self.duration().total_seconds() // 60)

    def intersect(self, other: "Interval") -> "Interval | None":
        """Return the common part of both intervals, or None."""
        return overlap(self, other)

    def format_clock(self) -> str:
        """Format as ``HH:MM~HH:MM`` in local wall-clock time."""
        return (
            f"{self.start.hour:02d}:{self.start.minute:02d}"
            f"~{self.end.hour:02d}:{self.end.minute:02d}"
        )

    def __str__(self) -> str:
        return f"{self.start:%Y-%m-%d %H:%M} - {self.end:%H:%M}"


def overlap(a: Interval, b: Interval) -> Interval | None:
    """
    Calculate the intersection of two intervals.

    Touching intervals (``a.end == b.start``) do not overlap.
    """
    start = max(a.start, b.start)
    end = min(a.end, b.end)

    if end > start:
        return Interval(start=start, end=end)
    return None


@dataclass
class WorkingHours:
    """
    Configuration for the daily work window.
    """
    start_time: time
    end_time: time
    exclude_weekdays: List[int] = field(default_factory=lambda: [5, 6])  # 0=Monday, 6=Sunday
    timezone: str = "Asia/Tokyo"

    def is_working_day(self, day: date) -> bool:
        """Check if a given date falls on a working day."""
        return day.weekday() not in self.exclude_weekdays

    def get_window_for_day(self, day: date) -> Interval | None:
        """
        Get the work window for a specific day.
        Returns None if it's not a working day.
        """
        if not self.is_working_day(day):
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            self.start_time.hour, self.start_time.minute,
            tz=self.timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            self.end_time.hour, self.end_time.minute,
            tz=self.timezone,
        )

        return Interval(start=start, end=end)


@dataclass
class DaySlots:
    """
    Free slots found on a single day, already formatted as ``HH:MM~HH:MM``.
    """
    day: date
    slots: List[str]

    def format_line(self) -> str:
        """
        Format the day as a Markdown list item.
        Format: - YYYY-MM-DD（曜） HH:MM~HH:MM, HH:MM~HH:MM
        """
        return f"- {self.day.isoformat()}（{weekday_label(self.day)}） {', '.join(self.slots)}"

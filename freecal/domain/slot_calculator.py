"""
Core business logic for calculating free time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from datetime import date, timedelta
from typing import Iterable, List

import pendulum

from .models import DaySlots, Interval, WorkingHours, overlap


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Merge overlapping or adjacent intervals.

    Unlike ``overlap``, touching intervals are coalesced here.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    sorted_intervals = sorted(intervals, key=lambda i: i.start)
    if not sorted_intervals:
        return []

    merged: List[Interval] = [sorted_intervals[0]]

    for current in sorted_intervals[1:]:
        last = merged[-1]

        if current.start > last.end:
            merged.append(current)
        elif current.end > last.end:
            merged[-1] = Interval(start=last.start, end=current.end)

    return merged


def free_intervals(
    day_window: Interval,
    busy_all: Iterable[Interval],
    min_duration: timedelta,
) -> List[Interval]:
    """
    Subtract busy intervals from a day window, yielding free intervals.

    Example:
    Window: 09:00 - 17:00
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]

    Only gaps of at least ``min_duration`` are returned. An inverted window
    produces no gaps.
    """
    clipped = []
    for busy in busy_all:
        inter = overlap(busy, day_window)
        if inter is not None:
            clipped.append(inter)

    free: List[Interval] = []
    cursor = day_window.start

    for busy in merge_intervals(clipped):
        if busy.start > cursor:
            free.append(Interval(start=cursor, end=busy.start))
        cursor = max(cursor, busy.end)

    if cursor < day_window.end:
        free.append(Interval(start=cursor, end=day_window.end))

    min_seconds = min_duration.total_seconds()
    return [f for f in free if (f.end - f.start).total_seconds() >= min_seconds]


def find_free_slots(
    day_window: Interval,
    busy_all: Iterable[Interval],
    min_duration: timedelta,
) -> List[str]:
    """Return the free slots of a day window formatted as ``HH:MM~HH:MM``."""
    return [f.format_clock() for f in free_intervals(day_window, busy_all, min_duration)]


class SlotCalculator:
    """
    Calculates free slots per working day from busy intervals.

    Algorithm, per day in the range:
    1. Build the work window (skipped for excluded weekdays)
    2. Clip busy intervals to the window and merge them
    3. Sweep the merged intervals to find gaps
    4. Filter gaps by minimum duration and format them
    """

    def __init__(self, working_hours: WorkingHours):
        self.working_hours = working_hours

    def find_available_slots(
        self,
        start_date: date,
        end_date: date,
        busy_intervals: List[Interval],
        min_duration_minutes: int = 60
    ) -> List[DaySlots]:
        """
        Find free slots for every working day between the two dates.

        Args:
            start_date: First day of the search period
            end_date: Last day of the search period (inclusive)
            busy_intervals: Busy intervals already in the working-hours timezone
            min_duration_minutes: Minimum duration for a slot to be reported

        Returns:
            List of DaySlots, one per day that has at least one slot
        """
        min_duration = timedelta(minutes=min_duration_minutes)
        results: List[DaySlots] = []

        for day in self._iter_days(start_date, end_date):
            window = self.working_hours.get_window_for_day(day)
            if window is None:
                continue

            slots = find_free_slots(window, busy_intervals, min_duration)
            if slots:
                results.append(DaySlots(day=day, slots=slots))

        return results

    @staticmethod
    def _iter_days(start_date: date, end_date: date) -> Iterable[date]:
        """Yield each calendar date from start to end, inclusive."""
        current = pendulum.date(start_date.year, start_date.month, start_date.day)
        last = pendulum.date(end_date.year, end_date.month, end_date.day)

        while current <= last:
            yield current
            current = current.add(days=1)

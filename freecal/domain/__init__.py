"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import DaySlots, Interval, WorkingHours, overlap
from .slot_calculator import SlotCalculator, find_free_slots, free_intervals, merge_intervals
from .timeutils import parse_clock, weekday_label

__all__ = [
    "DaySlots",
    "Interval",
    "WorkingHours",
    "overlap",
    "SlotCalculator",
    "find_free_slots",
    "free_intervals",
    "merge_intervals",
    "parse_clock",
    "weekday_label",
]

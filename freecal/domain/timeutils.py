"""
Clock parsing and label formatting helpers.
"""

import re
from datetime import date
from typing import Tuple

from .exceptions import ClockFormatError

_CLOCK_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")

SUNDAY_LABEL = "日"

# Keyed by date.weekday(): 0=Monday, 6=Sunday
WEEKDAY_LABELS = {
    0: "月",
    1: "火",
    2: "水",
    3: "木",
    4: "金",
    5: "土",
    6: SUNDAY_LABEL,
}


def parse_clock(value: str) -> Tuple[int, int]:
    """
    Parse a 24-hour ``HH:MM`` clock string.

    Args:
        value: Clock string such as ``"09:00"`` or ``"17:30"``

    Returns:
        Tuple of (hour, minute)

    Raises:
        ClockFormatError: If the string is not a valid 24-hour clock time
    """
    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ClockFormatError(f"invalid time {value!r} (want HH:MM)")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ClockFormatError(f"invalid time {value!r} (want HH:MM)")

    return hour, minute


def weekday_label(day: date) -> str:
    """Return the single-character Japanese weekday label for a date."""
    return WEEKDAY_LABELS.get(day.weekday(), SUNDAY_LABEL)

"""
Conversion of Google Calendar event resources into busy intervals.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple

import pendulum
from pendulum import DateTime

from ..domain.models import Interval

logger = logging.getLogger(__name__)

CANCELLED_STATUSES = {"cancelled", "canceled"}


def is_blocking(event: Dict[str, Any]) -> bool:
    """Return False for cancelled events and events marked as free time."""
    if str(event.get("status", "")).lower() in CANCELLED_STATUSES:
        return False
    if str(event.get("transparency", "")).lower() == "transparent":
        return False
    return True


def parse_event_time(event: Dict[str, Any], timezone: str) -> Tuple[DateTime, DateTime] | None:
    """
    Resolve the start and end of an event in the given timezone.

    Timed events carry ``dateTime`` values; all-day events carry ``date``
    values and span ``[start 00:00, end 00:00)`` in the calendar timezone.

    Returns:
        (start, end) tuple, or None if the event has no usable times
    """
    start = event.get("start") or {}
    end = event.get("end") or {}

    try:
        if start.get("dateTime") and end.get("dateTime"):
            parsed_start = pendulum.parse(start["dateTime"])
            parsed_end = pendulum.parse(end["dateTime"])
            if not isinstance(parsed_start, DateTime) or not isinstance(parsed_end, DateTime):
                raise ValueError(f"not a datetime: {start['dateTime']} / {end['dateTime']}")
            return parsed_start.in_timezone(timezone), parsed_end.in_timezone(timezone)

        if start.get("date") and end.get("date"):
            return (
                pendulum.from_format(start["date"], "YYYY-MM-DD", tz=timezone),
                pendulum.from_format(end["date"], "YYYY-MM-DD", tz=timezone),
            )
    except (TypeError, ValueError) as exc:
        logger.warning("Could not parse times of event %s: %s", event.get("id", "?"), exc)
        return None

    return None


def events_to_intervals(events: Iterable[Dict[str, Any]], timezone: str) -> List[Interval]:
    """
    Convert calendar events into busy intervals.

    Cancelled, transparent, unparseable and zero-length events are skipped.
    """
    busy: List[Interval] = []

    for event in events:
        if not is_blocking(event):
            logger.debug("Skipping non-blocking event %s", event.get("id", "?"))
            continue

        times = parse_event_time(event, timezone)
        if times is None:
            continue

        interval = Interval(start=times[0], end=times[1])
        if interval.is_empty():
            logger.debug("Skipping empty event %s", event.get("id", "?"))
            continue

        busy.append(interval)

    return busy

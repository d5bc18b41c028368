"""
Application services for finding free calendar slots.

The service coordinates fetching busy intervals via a calendar client adapter
and delegates the actual slot calculation to the domain-level
``SlotCalculator``. This keeps the CLI thin and allows the calendar
dependency to be replaced via a simple protocol.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Protocol

from ..domain.models import DaySlots, Interval
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def get_busy_intervals(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Interval]:
        """Return busy intervals of the calendar in the given timezone."""


class FreeSlotFinderService:
    """
    Orchestrates busy-interval retrieval and slot calculation.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        slot_calculator: SlotCalculator,
    ) -> None:
        self._calendar_client = calendar_client
        self._slot_calculator = slot_calculator

    def find_slots(
        self,
        *,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
        min_duration_minutes: int,
    ) -> List[DaySlots]:
        """
        Retrieve busy data and compute free slots per working day.
        """
        busy_intervals = self.fetch_busy_intervals(
            calendar_id=calendar_id,
            start_date=start_date,
            end_date=end_date,
            timezone=timezone,
        )

        return self.calculate_slots(
            start_date=start_date,
            end_date=end_date,
            busy_intervals=busy_intervals,
            min_duration_minutes=min_duration_minutes,
        )

    def fetch_busy_intervals(
        self,
        *,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Interval]:
        """Fetch busy intervals for the requested calendar."""
        busy_intervals = self._calendar_client.get_busy_intervals(
            calendar_id=calendar_id,
            start_date=start_date,
            end_date=end_date,
            timezone=timezone,
        )
        logger.info("Loaded %d busy interval(s) from %s", len(busy_intervals), calendar_id)
        return list(busy_intervals)

    def calculate_slots(
        self,
        *,
        start_date: date,
        end_date: date,
        busy_intervals: List[Interval],
        min_duration_minutes: int,
    ) -> List[DaySlots]:
        """Calculate free slots from busy data."""
        return self._slot_calculator.find_available_slots(
            start_date=start_date,
            end_date=end_date,
            busy_intervals=busy_intervals,
            min_duration_minutes=min_duration_minutes,
        )

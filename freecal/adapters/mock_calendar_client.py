"""
Mock Google Calendar client for testing without OAuth.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

from ..domain.models import Interval
from .google_events import events_to_intervals, parse_event_time


class MockCalendarClient:
    """
    Mock client that simulates Google Calendar API responses.

    Events are loaded from mock_calendar_data.json (Google event resources
    with an extra ``calendarId`` key), so no authentication or network access
    is required.
    """

    def __init__(self, access_token: str = "mock_token", data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            access_token: Dummy token (not used, but kept for interface compatibility)
            data_file: Optional JSON file with events (defaults to the bundled data)
        """
        self.access_token = access_token
        self.data_file = data_file or Path(__file__).parent / "mock_calendar_data.json"
        self._load_calendar_data()

    def _load_calendar_data(self) -> None:
        """Load mock calendar data from JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                self.calendar_events: List[Dict[str, Any]] = json.load(f)
        else:
            self.calendar_events = []

    def list_events(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """Return the mock events of a calendar that touch the date range."""
        events = []

        for event in self.calendar_events:
            if event.get("calendarId", "primary") != calendar_id:
                continue

            times = parse_event_time(event, timezone)
            if times is None:
                # Keep it; conversion decides what to do with it
                events.append(event)
                continue

            event_start, event_end = times
            if event_start.date() <= end_date and event_end.date() >= start_date:
                events.append(event)

        return events

    def get_busy_intervals(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Interval]:
        """Load busy intervals from mock calendar data."""
        events = self.list_events(calendar_id, start_date, end_date, timezone)
        return events_to_intervals(events, timezone)

    def test_connection(self, calendar_id: str = "primary") -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock calendar metadata
        """
        return {
            "id": calendar_id,
            "summary": "Mock Calendar",
            "timeZone": "Asia/Tokyo",
        }

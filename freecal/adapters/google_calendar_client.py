"""
Google Calendar API client for fetching calendar events.
"""

import logging
from datetime import date
from typing import Any, Dict, List
from urllib.parse import quote

import pendulum
import requests

from ..domain.exceptions import CalendarAPIError
from ..domain.models import Interval
from .google_events import events_to_intervals

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar API v3 event listing.

    Uses the /calendars/{calendarId}/events endpoint with recurring events
    expanded into single instances.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, session: requests.Session | None = None):
        """
        Initialize the Calendar API client.

        Args:
            access_token: Valid Google OAuth access token
            session: Optional requests session (for connection reuse or tests)
        """
        self.access_token = access_token
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    def _calendar_url(self, calendar_id: str) -> str:
        return f"{self.CALENDAR_API_ENDPOINT}/calendars/{quote(calendar_id, safe='')}"

    def _get(
        self,
        url: str,
        action: str,
        params: Dict[str, Any] | None = None,
        timeout: int = 30,
    ) -> Dict[str, Any]:
        try:
            response = self.session.get(url, headers=self.headers, params=params, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"{action} error: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Invalid JSON from Google Calendar: {e}") from e

    def list_events(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Dict[str, Any]]:
        """
        List all events between two dates, following pagination.

        The window runs from 00:00 on ``start_date`` to 23:59:59 on
        ``end_date`` in the given timezone.

        Raises:
            CalendarAPIError: If an API call fails
        """
        time_min = pendulum.datetime(start_date.year, start_date.month, start_date.day, tz=timezone)
        time_max = pendulum.datetime(end_date.year, end_date.month, end_date.day, 23, 59, 59, tz=timezone)

        params: Dict[str, Any] = {
            "timeMin": time_min.to_rfc3339_string(),
            "timeMax": time_max.to_rfc3339_string(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "showDeleted": "false",
        }
        url = f"{self._calendar_url(calendar_id)}/events"

        events: List[Dict[str, Any]] = []
        page = 0
        while True:
            data = self._get(url, "events list", params=params)
            page += 1
            events.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token

        logger.debug("Fetched %d events in %d page(s) from %s", len(events), page, calendar_id)
        return events

    def get_busy_intervals(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[Interval]:
        """
        Get busy intervals for a calendar.

        Returns:
            Busy intervals in the given timezone
        """
        events = self.list_events(calendar_id, start_date, end_date, timezone)
        return events_to_intervals(events, timezone)

    def test_connection(self, calendar_id: str = "primary") -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching calendar metadata.

        Raises:
            CalendarAPIError: If connection test fails
        """
        return self._get(self._calendar_url(calendar_id), "calendar metadata", timeout=10)

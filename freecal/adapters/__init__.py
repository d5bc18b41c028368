"""
Adapters layer - External integrations (Google Calendar API).
"""

from .google_authenticator import GoogleAuthenticator
from .google_calendar_client import GoogleCalendarClient
from .google_events import events_to_intervals
from .mock_calendar_client import MockCalendarClient

__all__ = ["GoogleAuthenticator", "GoogleCalendarClient", "MockCalendarClient", "events_to_intervals"]

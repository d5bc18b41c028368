"""
Domain-specific exception hierarchy for the free slot finder.
"""


class FreecalError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(FreecalError, ValueError):
    """Raised when user supplied configuration is invalid."""


class ClockFormatError(ConfigurationError):
    """Raised when a clock string is not in HH:MM 24-hour format."""


class CalendarAPIError(FreecalError):
    """Raised when calendar data cannot be fetched or parsed."""


class AuthenticationError(FreecalError):
    """Raised when authentication or token handling fails."""

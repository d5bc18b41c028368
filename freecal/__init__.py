"""
freecal - find free working-hour slots in a Google Calendar.
"""

__version__ = "0.1.0"

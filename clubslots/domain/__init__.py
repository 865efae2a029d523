"""
Domain layer - Pure business logic without external dependencies.
"""

from .business_hours import BusinessHours, DayWindow
from .busy_extractor import BusyExtractor
from .chat_formatter import ChatFormatOptions, format_for_chat
from .events import AllDayEvent, Attendee, CalendarEvent, TimedEvent, parse_event
from .models import CoachIdentity, FreeSlot, TimeRange
from .slot_enumerator import SlotEnumerator

__all__ = [
    "AllDayEvent",
    "Attendee",
    "BusinessHours",
    "BusyExtractor",
    "CalendarEvent",
    "ChatFormatOptions",
    "CoachIdentity",
    "DayWindow",
    "FreeSlot",
    "SlotEnumerator",
    "TimeRange",
    "TimedEvent",
    "format_for_chat",
    "parse_event",
]

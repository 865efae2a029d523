"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityResult, AvailabilityService
from .booking import BookingResult, BookingService
from .protocols import CalendarClientProtocol, EventsPage
from .request_models import AvailabilityRequest, BookingRequest

__all__ = [
    "AvailabilityRequest",
    "AvailabilityResult",
    "AvailabilityService",
    "BookingRequest",
    "BookingResult",
    "BookingService",
    "CalendarClientProtocol",
    "EventsPage",
]

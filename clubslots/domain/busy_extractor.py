"""
Turns calendar events into busy intervals for one coach.
"""

import logging
from typing import Iterable, List

from .events import CalendarEvent
from .models import CoachIdentity, TimeRange

logger = logging.getLogger(__name__)


class BusyExtractor:
    """
    Decides which events occupy a coach and normalises them to time ranges.

    Rules, applied in order:
    1. Cancelled events are ignored
    2. Transparent ("available") events are ignored
    3. On the coach's personal calendar every remaining event is busy
    4. On a shared calendar an event is busy when the coach organizes it,
       attends it without having declined, or is named in its title or
       description (fallback text)
    """

    def __init__(self, timezone: str):
        self.timezone = timezone

    def extract_busy(
        self,
        events: Iterable[CalendarEvent],
        identity: CoachIdentity,
        source_calendar_is_personal: bool = False,
    ) -> List[TimeRange]:
        busy: List[TimeRange] = []

        for event in events:
            if not self.occupies(event, identity, source_calendar_is_personal):
                continue

            try:
                busy.append(event.to_time_range(self.timezone))
            except ValueError as exc:
                logger.debug("Skipping event %s with empty interval: %s", event.event_id, exc)

        return busy

    def occupies(
        self,
        event: CalendarEvent,
        identity: CoachIdentity,
        source_calendar_is_personal: bool = False,
    ) -> bool:
        """Return True when the event makes the coach unavailable."""
        if event.cancelled or event.transparent:
            return False

        if source_calendar_is_personal:
            return True

        # Organizer match wins even over a declined attendee entry.
        if identity.matches_email(event.organizer_email):
            return True

        attendee = event.find_attendee(identity.email)
        if attendee is not None and not attendee.declined:
            return True

        return identity.matches_text(event.summary, event.description)

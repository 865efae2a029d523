"""
Calendar events as seen by the availability engine.

Provider payloads come in two shapes: timed events carry ``dateTime``
boundaries, all-day events carry bare ``date`` values with an exclusive end.
They are parsed once into ``TimedEvent`` or ``AllDayEvent`` so the rest of
the code never has to look at raw dictionaries.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import pendulum
from pendulum import Date, DateTime

from .models import TimeRange

STATUS_CANCELLED = "cancelled"
TRANSPARENCY_OPAQUE = "opaque"
TRANSPARENCY_TRANSPARENT = "transparent"
RESPONSE_DECLINED = "declined"


@dataclass(frozen=True)
class Attendee:
    email: str
    response_status: str = "needsAction"

    @property
    def declined(self) -> bool:
        return self.response_status == RESPONSE_DECLINED


@dataclass(frozen=True)
class _EventBase:
    event_id: str = ""
    status: str = "confirmed"
    transparency: str = TRANSPARENCY_OPAQUE
    organizer_email: Optional[str] = None
    attendees: List[Attendee] = field(default_factory=list)
    summary: str = ""
    description: str = ""

    @property
    def cancelled(self) -> bool:
        return self.status == STATUS_CANCELLED

    @property
    def transparent(self) -> bool:
        return self.transparency == TRANSPARENCY_TRANSPARENT

    def find_attendee(self, email: str) -> Optional[Attendee]:
        wanted = email.strip().lower()
        for attendee in self.attendees:
            if attendee.email.strip().lower() == wanted:
                return attendee
        return None


@dataclass(frozen=True)
class TimedEvent(_EventBase):
    start: Optional[DateTime] = None
    end: Optional[DateTime] = None

    def to_time_range(self, timezone: str) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)


@dataclass(frozen=True)
class AllDayEvent(_EventBase):
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None  # exclusive

    def to_time_range(self, timezone: str) -> TimeRange:
        """
        Anchor the dates to local midnight in the operating timezone.

        The exclusive end date's midnight is the end of the last covered day.
        """
        start = pendulum.datetime(
            self.start_date.year, self.start_date.month, self.start_date.day, tz=timezone
        )
        end = pendulum.datetime(
            self.end_date.year, self.end_date.month, self.end_date.day, tz=timezone
        )
        return TimeRange(start=start, end=end)


CalendarEvent = Union[TimedEvent, AllDayEvent]


def _parse_boundary(boundary: Dict[str, Any], name: str) -> Union[DateTime, Date]:
    if boundary.get("dateTime"):
        parsed = pendulum.parse(boundary["dateTime"], tz=boundary.get("timeZone") or "UTC")
        if not isinstance(parsed, DateTime):
            raise ValueError(f"Event {name} is not a datetime: {boundary['dateTime']}")
        return parsed
    if boundary.get("date"):
        parsed = pendulum.parse(boundary["date"], exact=True)
        if not isinstance(parsed, Date) or isinstance(parsed, DateTime):
            raise ValueError(f"Event {name} is not a date: {boundary['date']}")
        return parsed
    raise ValueError(f"Event has no {name} time")


def parse_event(raw: Dict[str, Any]) -> CalendarEvent:
    """
    Parse a raw provider event into a TimedEvent or AllDayEvent.

    Raises:
        ValueError: If the start or end boundary is missing or malformed
    """
    start = _parse_boundary(raw.get("start") or {}, "start")
    end = _parse_boundary(raw.get("end") or {}, "end")

    common = dict(
        event_id=raw.get("id", ""),
        status=raw.get("status") or "confirmed",
        transparency=raw.get("transparency") or TRANSPARENCY_OPAQUE,
        organizer_email=(raw.get("organizer") or {}).get("email"),
        attendees=[
            Attendee(
                email=item.get("email") or "",
                response_status=item.get("responseStatus") or "needsAction",
            )
            for item in raw.get("attendees") or []
        ],
        summary=raw.get("summary") or "",
        description=raw.get("description") or "",
    )

    if isinstance(start, DateTime) and isinstance(end, DateTime):
        return TimedEvent(start=start, end=end, **common)
    if not isinstance(start, DateTime) and not isinstance(end, DateTime):
        return AllDayEvent(start_date=start, end_date=end, **common)
    raise ValueError("Event mixes a timed boundary with an all-day boundary")

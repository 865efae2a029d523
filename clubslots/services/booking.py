"""
Application service for booking, updating and cancelling classes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain.exceptions import OutOfBusinessHoursError, ValidationError
from .protocols import CalendarClientProtocol
from .request_models import BookingRequest, parse_instant, require_positive, resolve_start

logger = logging.getLogger(__name__)

EXTERNAL_ID_PREFIX = "cs-"


@dataclass
class BookingResult:
    event: Dict[str, Any]
    idempotent: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event, "idempotent": self.idempotent}


class BookingService:
    """
    Validates booking requests and writes them to the calendar provider.

    Every booking must fall inside club hours. Writes carry a private
    ``externalId`` property so a retried request with the same id returns
    the already created event instead of a duplicate.
    """

    def __init__(self, calendar_client: CalendarClientProtocol, config: AppConfig) -> None:
        self._calendar_client = calendar_client
        self._config = config
        self._business_hours = config.build_business_hours()

    async def book(
        self,
        request: BookingRequest,
        *,
        now: DateTime | None = None,
    ) -> BookingResult:
        """
        Create a class booking.

        Raises:
            ValidationError: If start/end are missing, malformed or inverted
            OutOfBusinessHoursError: If the interval is outside club hours
            ProviderError: If the calendar provider call fails
        """
        tz = self._config.timezone
        now = now or pendulum.now(tz)
        require_positive(request.duration_minutes, "duration_minutes")

        start = resolve_start(
            request.start,
            request.month_day,
            request.time_hint,
            request.year,
            now=now,
            timezone=tz,
        )

        if request.end:
            end = parse_instant(request.end, tz, "end")
        else:
            duration = request.duration_minutes or self._config.defaults.booking_duration_minutes
            end = start.add(minutes=duration)

        if end <= start:
            raise ValidationError("end must be after start")

        if not self._business_hours.is_within_business_window(start, end, tz):
            raise OutOfBusinessHoursError(
                f"The club is open {self._business_hours.describe()}. "
                f"Choose a time inside that window."
            )

        coach = self._config.find_coach_by_name(request.coach) if request.coach else None
        calendar_id = self._config.calendar_for(coach)
        external_id = request.external_id or f"{EXTERNAL_ID_PREFIX}{uuid.uuid4()}"

        if request.external_id:
            existing = await self.find_event_by_external_id(calendar_id, request.external_id)
            if existing is not None:
                logger.info("Booking %s already exists as event %s", external_id, existing.get("id"))
                return BookingResult(event=existing, idempotent=True)

        event_tz = request.timezone or tz
        body: Dict[str, Any] = {
            "summary": request.summary or self._config.defaults.booking_summary,
            "start": {"dateTime": start.to_iso8601_string(), "timeZone": event_tz},
            "end": {"dateTime": end.to_iso8601_string(), "timeZone": event_tz},
            "attendees": request.attendees,
            "extendedProperties": {"private": {"externalId": external_id}},
        }
        if request.description:
            body["description"] = request.description

        event = await self._calendar_client.insert_event(
            calendar_id=calendar_id,
            body=body,
            send_updates=request.send_updates or self._config.defaults.send_updates,
        )
        logger.info("Booked event %s on %s (%s)", event.get("id"), calendar_id, external_id)
        return BookingResult(event=event)

    async def find_event_by_external_id(
        self,
        calendar_id: str,
        external_id: str,
    ) -> Optional[Dict[str, Any]]:
        page = await self._calendar_client.list_events(
            calendar_id=calendar_id,
            private_extended_property=f"externalId={external_id}",
        )
        for item in page.items:
            if item.get("status") != "cancelled":
                return item
        return None

    async def update_event(
        self,
        event_id: str,
        changes: Dict[str, Any],
        *,
        calendar_id: Optional[str] = None,
        etag: Optional[str] = None,
        send_updates: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Patch an event; with ``etag`` the update only applies to that revision."""
        if not event_id:
            raise ValidationError("event_id is required")
        if not changes:
            raise ValidationError("No changes to apply")

        return await self._calendar_client.patch_event(
            calendar_id=calendar_id or self._config.calendar_id,
            event_id=event_id,
            body=changes,
            send_updates=send_updates or self._config.defaults.send_updates,
            etag=etag,
        )

    async def cancel_event(
        self,
        event_id: str,
        *,
        calendar_id: Optional[str] = None,
        etag: Optional[str] = None,
        send_updates: Optional[str] = None,
    ) -> None:
        if not event_id:
            raise ValidationError("event_id is required")

        await self._calendar_client.delete_event(
            calendar_id=calendar_id or self._config.calendar_id,
            event_id=event_id,
            send_updates=send_updates or self._config.defaults.send_updates,
            etag=etag,
        )
        logger.info("Deleted event %s", event_id)

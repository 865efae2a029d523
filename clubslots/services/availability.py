"""
Application service for availability queries.

The service coordinates fetching events via a calendar client adapter and
delegates busy-time attribution and slot enumeration to the domain layer.
All input validation happens before the first provider call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..config import AppConfig, Coach
from ..domain.busy_extractor import BusyExtractor
from ..domain.chat_formatter import ChatFormatOptions, format_for_chat
from ..domain.events import CalendarEvent, parse_event
from ..domain.exceptions import ValidationError
from ..domain.models import CoachIdentity, FreeSlot, TimeRange
from ..domain.slot_enumerator import SlotEnumerator
from .protocols import CalendarClientProtocol
from .request_models import AvailabilityRequest, parse_instant, require_positive, resolve_start

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    busy: List[TimeRange]
    free_slots: List[FreeSlot]
    timezone: str
    chat: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "busy": [interval.to_dict() for interval in self.busy],
            "freeSlots": [slot.to_dict() for slot in self.free_slots],
            "timeZone": self.timezone,
        }
        if self.chat is not None:
            payload["pretty"] = {"chat": self.chat}
        return payload


class AvailabilityService:
    """
    Orchestrates event retrieval, busy extraction and slot enumeration.

    Dependency inversion toward a protocol makes it easy to plug in the real
    Google Calendar adapter or the mock implementation in tests.
    """

    def __init__(self, calendar_client: CalendarClientProtocol, config: AppConfig) -> None:
        self._calendar_client = calendar_client
        self._config = config
        self._business_hours = config.build_business_hours()
        self._enumerator = SlotEnumerator(business_hours=self._business_hours)
        self._extractor = BusyExtractor(timezone=config.timezone)

    async def check_availability(
        self,
        request: AvailabilityRequest,
        *,
        now: DateTime | None = None,
    ) -> AvailabilityResult:
        """
        Validate the request, gather busy time and compute free slots.

        Raises:
            ValidationError: If the request is incomplete or inconsistent
            ProviderError: If the calendar provider call fails
        """
        now = now or pendulum.now(self._config.timezone)
        window_start, window_end = self.resolve_window(request, now=now)

        granularity = request.granularity_minutes or self._config.defaults.granularity_minutes
        require_positive(granularity, "granularity_minutes")

        busy = await self.fetch_busy(request.coach, window_start, window_end)

        # A duration only widens the checked span when explicit start times were asked for.
        if request.duration_minutes and request.mode == "starts":
            required_span = request.duration_minutes
        else:
            required_span = granularity

        free_slots = self._enumerator.enumerate_free_slots(
            window_start=window_start,
            window_end=window_end,
            granularity_minutes=granularity,
            busy=busy,
            required_span_minutes=required_span,
            timezone=self._config.timezone,
        )
        logger.info(
            "Found %d free slot(s) between %s and %s (%d busy range(s))",
            len(free_slots),
            window_start.to_iso8601_string(),
            window_end.to_iso8601_string(),
            len(busy),
        )

        chat = None
        if request.pretty:
            chat = format_for_chat(
                free_slots,
                ChatFormatOptions(
                    display_name=request.coach or "Coach",
                    timezone=self._config.timezone,
                    mode="ranges" if request.mode == "ranges" else "starts",
                    granularity_minutes=granularity,
                    markdown_emphasis=request.markdown,
                    max_days_shown=request.max_days or self._config.defaults.max_days_shown,
                ),
            )

        return AvailabilityResult(
            busy=busy,
            free_slots=free_slots,
            timezone=self._config.timezone,
            chat=chat,
        )

    def resolve_window(
        self,
        request: AvailabilityRequest,
        *,
        now: DateTime,
    ) -> Tuple[DateTime, DateTime]:
        """
        Resolve the queried horizon.

        Without an explicit end the window spans the configured lookahead, but
        only when a duration was supplied; asking for neither is an error.
        """
        tz = self._config.timezone
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
        elif request.duration_minutes is not None:
            end = start.add(hours=self._config.defaults.lookahead_hours)
        else:
            raise ValidationError("end or duration_minutes is required")

        if end <= start:
            raise ValidationError("end must be after start")

        return start, end

    async def fetch_busy(
        self,
        coach_alias: Optional[str],
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[TimeRange]:
        """
        Busy ranges for a coach, or for the whole club calendar.

        A known coach alias switches from the coarse free/busy query to event
        listing with per-coach attribution.
        """
        coach = self._config.find_coach_by_name(coach_alias) if coach_alias else None

        if coach is None:
            if coach_alias:
                logger.warning("Unknown coach alias '%s', using club free/busy", coach_alias)
            return await self._calendar_client.query_free_busy(
                calendar_id=self._config.calendar_id,
                time_min=window_start,
                time_max=window_end,
                timezone=self._config.timezone,
            )

        calendar_id = self._config.calendar_for(coach)
        events = await self.fetch_events(calendar_id, window_start, window_end)
        identity = self._identity_for(coach, coach_alias)

        return self._extractor.extract_busy(
            events,
            identity,
            source_calendar_is_personal=calendar_id.lower() == coach.email.lower(),
        )

    async def fetch_events(
        self,
        calendar_id: str,
        window_start: DateTime,
        window_end: DateTime,
    ) -> List[CalendarEvent]:
        """Drain every page of events for the window and parse them."""
        raw_items: List[Dict[str, Any]] = []
        page_token: Optional[str] = None

        while True:
            page = await self._calendar_client.list_events(
                calendar_id=calendar_id,
                time_min=window_start,
                time_max=window_end,
                page_token=page_token,
            )
            raw_items.extend(page.items)
            page_token = page.next_page_token
            if not page_token:
                break

        logger.debug("Analyzing %d event(s) from calendar %s", len(raw_items), calendar_id)

        events: List[CalendarEvent] = []
        for raw in raw_items:
            try:
                events.append(parse_event(raw))
            except ValueError as exc:
                logger.warning("Could not parse event %s: %s", raw.get("id", "?"), exc)
        return events

    @staticmethod
    def _identity_for(coach: Coach, alias: str) -> CoachIdentity:
        return CoachIdentity(
            email=coach.email,
            display_alias=coach.display_name(),
            fallback_text=alias.strip() or None,
        )

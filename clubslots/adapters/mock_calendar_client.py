"""
Mock Google Calendar client for running without Google credentials.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import DateTime

from ..domain.events import parse_event
from ..domain.exceptions import ProviderError, ProviderEtagMismatchError
from ..domain.models import TimeRange
from ..services.protocols import EventsPage

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that simulates Google Calendar API responses.

    Events are held in memory in the provider's own JSON shape, each tagged
    with a ``calendarId``. They are loaded from mock_calendar_data.json
    unless passed in directly.
    """

    def __init__(
        self,
        events: Optional[List[Dict[str, Any]]] = None,
        data_file: Optional[Path] = None,
        timezone: str = "America/Mexico_City",
        page_size: int = 250,
    ):
        self.timezone = timezone
        self.page_size = page_size
        self._next_id = 1
        if events is not None:
            self.calendar_events = copy.deepcopy(events)
        else:
            self.calendar_events = self._load_calendar_data(data_file or DEFAULT_DATA_FILE)

    @staticmethod
    def _load_calendar_data(data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            return []
        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _overlaps(self, event: Dict[str, Any], time_min: Optional[DateTime], time_max: Optional[DateTime]) -> bool:
        try:
            interval = parse_event(event).to_time_range(self.timezone)
        except ValueError:
            return False
        if time_max is not None and interval.start >= time_max:
            return False
        if time_min is not None and interval.end <= time_min:
            return False
        return True

    @staticmethod
    def _has_private_property(event: Dict[str, Any], private_extended_property: str) -> bool:
        key, _, value = private_extended_property.partition("=")
        private = (event.get("extendedProperties") or {}).get("private") or {}
        return private.get(key) == value

    def _find(self, calendar_id: str, event_id: str) -> Dict[str, Any]:
        for event in self.calendar_events:
            if event.get("calendarId") == calendar_id and event.get("id") == event_id:
                return event
        raise ProviderError(f"Event {event_id} not found", status=404)

    async def list_events(
        self,
        calendar_id: str,
        time_min: Optional[DateTime] = None,
        time_max: Optional[DateTime] = None,
        page_token: Optional[str] = None,
        private_extended_property: Optional[str] = None,
    ) -> EventsPage:
        matching = [
            event for event in self.calendar_events
            if event.get("calendarId") == calendar_id
            and self._overlaps(event, time_min, time_max)
            and (
                not private_extended_property
                or self._has_private_property(event, private_extended_property)
            )
        ]

        offset = int(page_token) if page_token else 0
        items = matching[offset:offset + self.page_size]
        next_offset = offset + self.page_size
        return EventsPage(
            items=copy.deepcopy(items),
            next_page_token=str(next_offset) if next_offset < len(matching) else None,
        )

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        busy: List[TimeRange] = []
        for event in self.calendar_events:
            if event.get("calendarId") != calendar_id or not self._overlaps(event, time_min, time_max):
                continue
            parsed = parse_event(event)
            if parsed.cancelled or parsed.transparent:
                continue
            busy.append(parsed.to_time_range(timezone))
        return busy

    async def insert_event(
        self,
        calendar_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
    ) -> Dict[str, Any]:
        event = copy.deepcopy(body)
        event.update(
            {
                "id": f"mock-{self._next_id}",
                "etag": f'"{self._next_id}"',
                "status": "confirmed",
                "calendarId": calendar_id,
            }
        )
        self._next_id += 1
        self.calendar_events.append(event)
        logger.debug("Mock insert %s on %s (sendUpdates=%s)", event["id"], calendar_id, send_updates)
        return copy.deepcopy(event)

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> Dict[str, Any]:
        event = self._find(calendar_id, event_id)
        if etag and event.get("etag") != etag:
            raise ProviderEtagMismatchError("Etag mismatch (412).", status=412)

        event.update(copy.deepcopy(body))
        event["etag"] = f'"{self._next_id}"'
        self._next_id += 1
        return copy.deepcopy(event)

    async def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> None:
        event = self._find(calendar_id, event_id)
        if etag and event.get("etag") != etag:
            raise ProviderEtagMismatchError("Etag mismatch (412).", status=412)
        self.calendar_events.remove(event)

    async def get_calendar(self, calendar_id: str) -> Dict[str, Any]:
        return {"id": calendar_id, "summary": "Mock calendar", "timeZone": self.timezone}

    async def list_calendars(self) -> List[Dict[str, Any]]:
        calendar_ids = sorted({event.get("calendarId") for event in self.calendar_events if event.get("calendarId")})
        return [
            {"id": calendar_id, "summary": calendar_id, "primary": False, "timeZone": self.timezone}
            for calendar_id in calendar_ids
        ]

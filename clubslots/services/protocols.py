"""
Calendar provider interface needed by the services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from pendulum import DateTime

from ..domain.models import TimeRange


@dataclass
class EventsPage:
    """One page of raw events plus the token for the next page, if any."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the services."""

    async def list_events(
        self,
        calendar_id: str,
        time_min: Optional[DateTime] = None,
        time_max: Optional[DateTime] = None,
        page_token: Optional[str] = None,
        private_extended_property: Optional[str] = None,
    ) -> EventsPage:
        """Return one page of single (expanded) events ordered by start time."""

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """Return the provider's own busy ranges for a calendar."""

    async def insert_event(
        self,
        calendar_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
    ) -> Dict[str, Any]:
        """Create an event and return the provider resource."""

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Partially update an event, conditionally on ``etag`` when given."""

    async def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> None:
        """Delete an event, conditionally on ``etag`` when given."""

    async def get_calendar(self, calendar_id: str) -> Dict[str, Any]:
        """Return calendar metadata."""

    async def list_calendars(self) -> List[Dict[str, Any]]:
        """Return the calendars visible to the authenticated identity."""

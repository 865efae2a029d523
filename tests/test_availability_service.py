"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pendulum
import pytest

from clubslots.adapters.mock_calendar_client import MockCalendarClient
from clubslots.config import AppConfig, Coach
from clubslots.domain.exceptions import ValidationError
from clubslots.domain.models import TimeRange
from clubslots.services.availability import AvailabilityService
from clubslots.services.protocols import EventsPage
from clubslots.services.request_models import AvailabilityRequest

TZ = "America/Mexico_City"
NOW = pendulum.datetime(2025, 10, 1, 12, 0, tz=TZ)


class StubCalendarClient:
    """Minimal stub matching CalendarClientProtocol for the read paths."""

    def __init__(
        self,
        pages: Optional[List[EventsPage]] = None,
        free_busy: Optional[List[TimeRange]] = None,
    ):
        self._pages = pages or [EventsPage()]
        self._free_busy = free_busy or []
        self.calls: List[Dict[str, Any]] = []

    async def list_events(self, calendar_id, time_min=None, time_max=None, page_token=None,
                          private_extended_property=None):
        self.calls.append(
            {"op": "list_events", "calendar_id": calendar_id, "page_token": page_token,
             "time_min": time_min, "time_max": time_max}
        )
        index = int(page_token) if page_token else 0
        return self._pages[index]

    async def query_free_busy(self, calendar_id, time_min, time_max, timezone):
        self.calls.append(
            {"op": "query_free_busy", "calendar_id": calendar_id, "time_min": time_min,
             "time_max": time_max, "timezone": timezone}
        )
        return self._free_busy


def _config(**overrides: Any) -> AppConfig:
    data: Dict[str, Any] = {
        "calendar_id": "club@example.com",
        "timezone": TZ,
        "coaches": [
            {"name": "Enzo", "email": "enzo@example.com"},
            {"name": "Wil", "email": "wil@example.com"},
        ],
    }
    data.update(overrides)
    return AppConfig(**data)


def _check(service: AvailabilityService, **fields: Any):
    return asyncio.run(service.check_availability(AvailabilityRequest(**fields), now=NOW))


def _local_starts(slots):
    return [slot.start.in_timezone(TZ).format("HH:mm") for slot in slots]


class TestWithMockCalendar:
    """End-to-end runs against the bundled mock calendar data."""

    def setup_method(self):
        self.service = AvailabilityService(calendar_client=MockCalendarClient(timezone=TZ), config=_config())

    def test_coach_with_class_as_attendee(self):
        result = _check(self.service, start="2025-10-07T07:00", end="2025-10-07T23:00", coach="Enzo")

        assert [(b.start.in_timezone(TZ).hour, b.end.in_timezone(TZ).hour) for b in result.busy] == [(9, 10)]
        starts = _local_starts(result.free_slots)
        assert len(starts) == 29
        assert "09:00" not in starts and "09:30" not in starts
        assert starts[-1] == "22:00"

    def test_coach_as_organizer(self):
        result = _check(self.service, start="2025-10-07T07:00", end="2025-10-07T23:00", coach="Wil")

        assert len(result.busy) == 1
        assert result.busy[0].start.in_timezone(TZ).hour == 18
        assert "18:00" not in _local_starts(result.free_slots)

    def test_declined_cancelled_and_transparent_events_do_not_block(self):
        result = _check(self.service, start="2025-10-08T07:00", end="2025-10-08T23:00", coach="enzo")

        assert result.busy == []
        assert len(result.free_slots) == 31

    def test_accepted_attendee_blocks_other_coach(self):
        result = _check(self.service, start="2025-10-08T07:00", end="2025-10-08T23:00", coach="Wil")

        assert [b.duration_minutes() for b in result.busy] == [90]

    def test_personal_calendar_blocks_every_event(self):
        service = AvailabilityService(
            calendar_client=MockCalendarClient(timezone=TZ),
            config=_config(
                coaches=[{"name": "Enzo", "email": "enzo@example.com", "calendar_id": "enzo@example.com"}]
            ),
        )

        result = _check(service, start="2025-10-09T07:00", end="2025-10-09T12:00", coach="Enzo")

        assert len(result.busy) == 1
        assert _local_starts(result.free_slots)[:3] == ["07:00", "07:30", "09:30"]

    def test_without_coach_uses_club_free_busy(self):
        result = _check(self.service, start="2025-10-07T07:00", end="2025-10-07T23:00")

        assert len(result.busy) == 2
        assert len(result.free_slots) == 25

    def test_all_day_event_blocks_whole_weekend_day(self):
        result = _check(self.service, start="2025-10-11T00:00", end="2025-10-12T00:00")

        assert result.free_slots == []

    def test_pagination_is_drained(self):
        service = AvailabilityService(
            calendar_client=MockCalendarClient(timezone=TZ, page_size=1),
            config=_config(),
        )

        result = _check(service, start="2025-10-08T07:00", end="2025-10-08T23:00", coach="Wil")

        assert len(result.busy) == 1

    def test_pretty_chat_in_ranges_mode(self):
        result = _check(
            self.service,
            start="2025-10-07T07:00",
            end="2025-10-07T23:00",
            coach="Enzo",
            mode="ranges",
            pretty=True,
        )

        assert result.chat.splitlines() == [
            "🗓 Disponibilidad de Enzo:",
            "• Martes 07/10 — 7:00–9:00, 10:00–22:30",
        ]
        assert result.to_dict()["pretty"] == {"chat": result.chat}

    def test_to_dict_shape(self):
        result = _check(self.service, start="2025-10-07T07:00", end="2025-10-07T08:00", coach="Enzo")

        payload = result.to_dict()
        assert set(payload) == {"busy", "freeSlots", "timeZone"}
        assert payload["timeZone"] == TZ
        assert payload["freeSlots"][0] == {
            "start": "2025-10-07T07:00:00-06:00",
            "end": "2025-10-07T07:30:00-06:00",
        }


class TestWindowAndValidation:
    """Validation happens before any provider call."""

    def test_missing_end_and_duration(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        with pytest.raises(ValidationError, match="end or duration_minutes is required"):
            _check(service, start="2025-10-07T07:00")
        assert client.calls == []

    def test_end_not_after_start(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        with pytest.raises(ValidationError, match="end must be after start"):
            _check(service, start="2025-10-07T10:00", end="2025-10-07T10:00")
        assert client.calls == []

    def test_missing_start(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        with pytest.raises(ValidationError, match="start is required"):
            _check(service, end="2025-10-07T10:00")
        assert client.calls == []

    def test_invalid_start(self):
        service = AvailabilityService(calendar_client=StubCalendarClient(), config=_config())

        with pytest.raises(ValidationError, match="Invalid start"):
            _check(service, start="next tuesday", end="2025-10-07T10:00")

    def test_negative_granularity(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        with pytest.raises(ValidationError, match="granularity_minutes"):
            _check(service, start="2025-10-07T07:00", end="2025-10-07T10:00", granularity_minutes=-15)
        assert client.calls == []

    def test_duration_without_end_uses_lookahead(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        _check(service, start="2025-10-07T07:00", duration_minutes=60)

        call = client.calls[0]
        assert call["op"] == "query_free_busy"
        assert call["time_max"] == pendulum.datetime(2025, 10, 10, 7, 0, tz=TZ)

    def test_naive_start_is_read_in_club_timezone(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        _check(service, start="2025-10-07T07:00", end="2025-10-07T08:00")

        assert client.calls[0]["time_min"] == pendulum.datetime(2025, 10, 7, 13, 0, tz="UTC")

    def test_date_fragments(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        result = _check(service, month_day="10/7", time_hint="7", duration_minutes=60, mode="starts")

        assert client.calls[0]["time_min"] == pendulum.datetime(2025, 10, 7, 7, 0, tz=TZ)
        assert _local_starts(result.free_slots)[0] == "07:00"


class TestRequiredSpan:
    def _service(self) -> AvailabilityService:
        busy = [
            TimeRange(
                start=pendulum.datetime(2025, 10, 7, 9, 0, tz=TZ),
                end=pendulum.datetime(2025, 10, 7, 10, 0, tz=TZ),
            )
        ]
        return AvailabilityService(calendar_client=StubCalendarClient(free_busy=busy), config=_config())

    def test_duration_widens_check_in_starts_mode(self):
        result = _check(
            self._service(),
            start="2025-10-07T07:00",
            end="2025-10-07T12:00",
            duration_minutes=90,
            mode="starts",
        )

        assert _local_starts(result.free_slots) == ["07:00", "07:30", "10:00", "10:30"]

    def test_duration_ignored_in_ranges_mode(self):
        result = _check(
            self._service(),
            start="2025-10-07T07:00",
            end="2025-10-07T12:00",
            duration_minutes=90,
            mode="ranges",
        )

        assert _local_starts(result.free_slots) == [
            "07:00", "07:30", "08:00", "08:30", "10:00", "10:30", "11:00", "11:30",
        ]


class TestEventListing:
    def test_all_pages_are_requested(self):
        page_one = EventsPage(
            items=[
                {
                    "id": "a",
                    "organizer": {"email": "enzo@example.com"},
                    "start": {"dateTime": "2025-10-07T08:00:00-06:00"},
                    "end": {"dateTime": "2025-10-07T09:00:00-06:00"},
                }
            ],
            next_page_token="1",
        )
        page_two = EventsPage(
            items=[
                {"id": "broken", "start": {}, "end": {}},
                {
                    "id": "b",
                    "summary": "Clase Enzo",
                    "start": {"dateTime": "2025-10-07T11:00:00-06:00"},
                    "end": {"dateTime": "2025-10-07T12:00:00-06:00"},
                },
            ]
        )
        client = StubCalendarClient(pages=[page_one, page_two])
        service = AvailabilityService(calendar_client=client, config=_config())

        result = _check(service, start="2025-10-07T07:00", end="2025-10-07T13:00", coach="Enzo")

        assert [call["page_token"] for call in client.calls] == [None, "1"]
        assert all(call["calendar_id"] == "club@example.com" for call in client.calls)
        assert len(result.busy) == 2

    def test_unknown_coach_falls_back_to_free_busy(self):
        client = StubCalendarClient()
        service = AvailabilityService(calendar_client=client, config=_config())

        _check(service, start="2025-10-07T07:00", end="2025-10-07T08:00", coach="Nadie")

        assert [call["op"] for call in client.calls] == ["query_free_busy"]

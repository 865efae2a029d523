"""
Tests for per-coach busy extraction.
"""

from typing import Any, Dict, List, Optional

import pendulum

from clubslots.domain.busy_extractor import BusyExtractor
from clubslots.domain.events import parse_event
from clubslots.domain.models import CoachIdentity

TZ = "America/Mexico_City"
ENZO = CoachIdentity(email="enzo@example.com", display_alias="Enzo", fallback_text="Enzo")


def _event(
    summary: str = "Clase",
    organizer: str = "club@example.com",
    attendees: Optional[List[Dict[str, str]]] = None,
    start: str = "2025-10-07T09:00:00-06:00",
    end: str = "2025-10-07T10:00:00-06:00",
    **extra: Any,
):
    raw = {
        "id": "evt",
        "summary": summary,
        "organizer": {"email": organizer},
        "attendees": attendees or [],
        "start": {"dateTime": start},
        "end": {"dateTime": end},
    }
    raw.update(extra)
    return parse_event(raw)


class TestBusyExtractor:
    """Tests for BusyExtractor.occupies and extract_busy."""

    def setup_method(self):
        self.extractor = BusyExtractor(timezone=TZ)

    def test_cancelled_event_is_ignored(self):
        event = _event(summary="Clase Enzo", organizer="enzo@example.com", status="cancelled")

        assert not self.extractor.occupies(event, ENZO)
        assert not self.extractor.occupies(event, ENZO, source_calendar_is_personal=True)

    def test_transparent_event_is_ignored(self):
        event = _event(organizer="enzo@example.com", transparency="transparent")

        assert not self.extractor.occupies(event, ENZO)

    def test_personal_calendar_blocks_everything(self):
        event = _event(summary="Dentista", organizer="someone@example.com")

        assert not self.extractor.occupies(event, ENZO)
        assert self.extractor.occupies(event, ENZO, source_calendar_is_personal=True)

    def test_organizer_is_busy(self):
        assert self.extractor.occupies(_event(organizer="ENZO@example.com"), ENZO)

    def test_organizer_wins_over_declined_attendee(self):
        event = _event(
            organizer="enzo@example.com",
            attendees=[{"email": "enzo@example.com", "responseStatus": "declined"}],
        )

        assert self.extractor.occupies(event, ENZO)

    def test_accepted_and_tentative_attendees_are_busy(self):
        accepted = _event(attendees=[{"email": "enzo@example.com", "responseStatus": "accepted"}])
        tentative = _event(attendees=[{"email": "enzo@example.com", "responseStatus": "tentative"}])

        assert self.extractor.occupies(accepted, ENZO)
        assert self.extractor.occupies(tentative, ENZO)

    def test_declined_attendee_is_free(self):
        event = _event(attendees=[{"email": "enzo@example.com", "responseStatus": "declined"}])

        assert not self.extractor.occupies(event, ENZO)

    def test_fallback_text_in_summary_or_description(self):
        assert self.extractor.occupies(_event(summary="clase ENZO avanzados"), ENZO)
        assert self.extractor.occupies(_event(summary="Clase", description="Profesor: Enzo"), ENZO)
        assert not self.extractor.occupies(_event(summary="Torneo interno"), ENZO)

    def test_extract_busy_keeps_only_occupying_events(self):
        events = [
            _event(summary="Clase Enzo"),
            _event(
                summary="Torneo",
                organizer="wil@example.com",
                start="2025-10-07T18:00:00-06:00",
                end="2025-10-07T20:00:00-06:00",
            ),
            _event(
                summary="Privada",
                organizer="enzo@example.com",
                start="2025-10-07T12:00:00-06:00",
                end="2025-10-07T13:00:00-06:00",
            ),
        ]

        busy = self.extractor.extract_busy(events, ENZO)

        assert [(b.start.hour, b.end.hour) for b in (r.in_timezone(TZ) for r in busy)] == [(9, 10), (12, 13)]

    def test_extract_busy_normalises_all_day_events(self):
        event = parse_event(
            {
                "summary": "Vacaciones Enzo",
                "start": {"date": "2025-10-11"},
                "end": {"date": "2025-10-13"},
            }
        )

        busy = self.extractor.extract_busy([event], ENZO)

        assert len(busy) == 1
        assert busy[0].start == pendulum.datetime(2025, 10, 11, tz=TZ)
        assert busy[0].end == pendulum.datetime(2025, 10, 13, tz=TZ)

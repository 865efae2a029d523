"""
Domain models for time ranges, free slots and coach identities.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def in_timezone(self, timezone: str) -> "TimeRange":
        """Return the same instants expressed in another timezone."""
        return type(self)(
            start=self.start.in_timezone(timezone),
            end=self.end.in_timezone(timezone),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
        }

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class FreeSlot(TimeRange):
    """
    A bookable start position, exactly one granularity unit wide.

    The span that was verified as free may have been longer than the slot
    itself when a minimum duration was requested.
    """


@dataclass(frozen=True)
class CoachIdentity:
    """
    Resolves which calendar events belong to a coach.

    ``fallback_text`` is matched against event titles on shared calendars
    where the coach was never added as an attendee.
    """
    email: str
    display_alias: str = ""
    fallback_text: Optional[str] = None

    def matches_email(self, email: Optional[str]) -> bool:
        return bool(email) and email.strip().lower() == self.email.strip().lower()

    def matches_text(self, *texts: Optional[str]) -> bool:
        if not self.fallback_text:
            return False
        needle = self.fallback_text.lower()
        return any(needle in (text or "").lower() for text in texts)

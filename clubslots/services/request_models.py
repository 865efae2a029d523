"""
Request models and the shared start/end resolution used by the services.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, Field

from ..domain.date_fragments import coerce_start_from_fragments
from ..domain.exceptions import ValidationError


class AvailabilityRequest(BaseModel):
    """Query for a coach's (or the club calendar's) free slots."""
    start: Optional[str] = None
    end: Optional[str] = None
    duration_minutes: Optional[int] = None
    month_day: Optional[str] = None
    time_hint: Optional[str] = None
    year: Optional[int] = None
    granularity_minutes: Optional[int] = None
    mode: Optional[Literal["starts", "ranges"]] = None
    coach: Optional[str] = None
    pretty: bool = False
    markdown: bool = False
    max_days: Optional[int] = None


class BookingRequest(BaseModel):
    """Booking of a class on the club calendar."""
    start: Optional[str] = None
    end: Optional[str] = None
    duration_minutes: Optional[int] = None
    month_day: Optional[str] = None
    time_hint: Optional[str] = None
    year: Optional[int] = None
    timezone: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    attendees: List[Dict[str, str]] = Field(default_factory=list)
    send_updates: Optional[Literal["all", "externalOnly", "none"]] = None
    external_id: Optional[str] = None
    coach: Optional[str] = None


def parse_instant(value: str, timezone: str, field_name: str) -> DateTime:
    """
    Parse an ISO 8601 string; values without an offset are read in ``timezone``.

    Raises:
        ValidationError: If the value is not a date/time
    """
    try:
        parsed = pendulum.parse(value, tz=timezone)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field_name} '{value}': expected ISO 8601") from exc

    if not isinstance(parsed, DateTime):
        raise ValidationError(f"Invalid {field_name} '{value}': expected a date and time")
    return parsed


def resolve_start(
    start: Optional[str],
    month_day: Optional[str],
    time_hint: Optional[str],
    year: Optional[int],
    *,
    now: DateTime,
    timezone: str,
) -> DateTime:
    """Use the explicit start if given, otherwise build it from date fragments."""
    if start:
        return parse_instant(start, timezone, "start")

    coerced = coerce_start_from_fragments(month_day, time_hint, year, now=now, timezone=timezone)
    if coerced is None:
        raise ValidationError("start is required (or month_day and time_hint)")
    return coerced


def require_positive(value: Optional[int], field_name: str) -> None:
    if value is not None and value <= 0:
        raise ValidationError(f"{field_name} must be greater than zero, got {value}")

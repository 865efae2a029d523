"""
Builds a start instant from loose chat-style fragments.

Chat front-ends often send ``month_day="10/7"`` and ``time_hint="9:30"``
instead of an ISO timestamp. ``now`` is always passed in so the inferred year
stays deterministic under test.
"""

import re
from typing import Optional, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import ValidationError

_MONTH_DAY_RE = re.compile(r"(\d{1,2})\D(\d{1,2})")
_TIME_HINT_RE = re.compile(r"^(\d{1,2})(?::?(\d{1,2}))?$")


def parse_month_day(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse ``10-7``, ``10/07`` or ``10.7`` into (month, day)."""
    if not value:
        return None
    match = _MONTH_DAY_RE.search(str(value))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_time_hint(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse ``9``, ``09``, ``9:5`` or ``0905`` into (hour, minute)."""
    if not value:
        return None
    match = _TIME_HINT_RE.match(str(value).strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2) or 0)


def coerce_start_from_fragments(
    month_day: Optional[str],
    time_hint: Optional[str],
    year: Optional[int | str],
    *,
    now: DateTime,
    timezone: str,
) -> Optional[DateTime]:
    """
    Combine date fragments into a local instant in ``timezone``.

    Returns:
        The start instant, or None when either fragment is missing or unparseable

    Raises:
        ValidationError: If the fragments parse but name an impossible date/time
    """
    month_day_parts = parse_month_day(month_day)
    time_parts = parse_time_hint(time_hint)
    if not month_day_parts or not time_parts:
        return None

    month, day = month_day_parts
    hour, minute = time_parts

    if year in (None, ""):
        resolved_year = now.in_timezone(timezone).year
    else:
        try:
            resolved_year = int(year)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid year '{year}'") from exc

    try:
        return pendulum.datetime(resolved_year, month, day, hour, minute, tz=timezone)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid date fragments: month/day '{month_day}', time '{time_hint}'"
        ) from exc

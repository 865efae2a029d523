"""
Core business logic for enumerating bookable slots.

Pure domain logic without any external dependencies (no API calls, no I/O).
"""

from typing import List, Sequence

from pendulum import DateTime

from .business_hours import BusinessHours
from .models import FreeSlot, TimeRange


class SlotEnumerator:
    """
    Walks a time window on a fixed grid and emits the free start positions.

    Algorithm:
    1. Place a cursor at the window start
    2. Check the span ``[cursor, cursor + required_span)``
    3. Reject it if it leaves business hours or overlaps a busy range
    4. Otherwise emit ``[cursor, cursor + granularity)``
    5. Advance the cursor by one granularity step and repeat

    The checked span may be longer than the emitted slot, which lets callers
    ask for "90 free minutes from here" and still get 30-minute start times.
    """

    def __init__(self, business_hours: BusinessHours):
        self.business_hours = business_hours

    def enumerate_free_slots(
        self,
        window_start: DateTime,
        window_end: DateTime,
        granularity_minutes: int,
        busy: Sequence[TimeRange],
        required_span_minutes: int | None = None,
        timezone: str | None = None,
    ) -> List[FreeSlot]:
        """
        Find every free slot start inside the window.

        Args:
            window_start: First candidate start
            window_end: Horizon; no slot or checked span may run past it
            granularity_minutes: Step between candidate starts and slot width
            busy: Busy ranges, in any order
            required_span_minutes: Minutes that must be free from each start,
                defaults to the granularity
            timezone: Civil timezone for the business-hours check, defaults to
                the club timezone

        Returns:
            Slots ordered by start time

        Raises:
            ValueError: If granularity or required span is not positive
        """
        if granularity_minutes <= 0:
            raise ValueError(f"granularity_minutes must be positive, got {granularity_minutes}")

        span_minutes = granularity_minutes if required_span_minutes is None else required_span_minutes
        if span_minutes <= 0:
            raise ValueError(f"required_span_minutes must be positive, got {span_minutes}")

        tz = timezone or self.business_hours.timezone
        slots: List[FreeSlot] = []
        cursor = window_start

        while cursor.add(minutes=granularity_minutes) <= window_end:
            check_end = cursor.add(minutes=span_minutes)
            if check_end > window_end:
                break

            if self._is_bookable(cursor, check_end, busy, tz):
                slots.append(FreeSlot(start=cursor, end=cursor.add(minutes=granularity_minutes)))

            cursor = cursor.add(minutes=granularity_minutes)

        return slots

    def _is_bookable(
        self,
        start: DateTime,
        end: DateTime,
        busy: Sequence[TimeRange],
        timezone: str,
    ) -> bool:
        if not self.business_hours.is_within_business_window(start, end, timezone):
            return False

        return not any(start < interval.end and end > interval.start for interval in busy)

"""
Club operating hours.

The club keeps one window for weekdays and one for weekends. A slot is only
offered when it lies completely inside the window of its own local day.
"""

from dataclasses import dataclass, field
from datetime import time

import pendulum
from pendulum import DateTime

WEEKEND_DAYS = (pendulum.SATURDAY, pendulum.SUNDAY)


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:MM`` string into a time object."""
    try:
        hour_str, minute_str = str(value).strip().split(":")
        return time(hour=int(hour_str), minute=int(minute_str))
    except ValueError as exc:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM") from exc


@dataclass(frozen=True)
class DayWindow:
    """Opening and closing local time for one class of days."""
    open_time: time
    close_time: time

    def __post_init__(self):
        if self.open_time >= self.close_time:
            raise ValueError(
                f"Opening time {self.open_time} must be before closing time {self.close_time}"
            )

    def bounds_for(self, local_day: DateTime) -> tuple:
        """Return the opening and closing instants on the given local day."""
        opening = local_day.set(
            hour=self.open_time.hour,
            minute=self.open_time.minute,
            second=0,
            microsecond=0,
        )
        closing = local_day.set(
            hour=self.close_time.hour,
            minute=self.close_time.minute,
            second=0,
            microsecond=0,
        )
        return opening, closing

    def __str__(self) -> str:
        return f"{self.open_time.strftime('%H:%M')}–{self.close_time.strftime('%H:%M')}"


def _default_weekday() -> DayWindow:
    return DayWindow(open_time=time(7, 0), close_time=time(22, 30))


def _default_weekend() -> DayWindow:
    return DayWindow(open_time=time(8, 0), close_time=time(14, 0))


@dataclass(frozen=True)
class BusinessHours:
    """
    Configuration for club operating hours.

    Defaults: Monday-Friday 07:00-22:30, Saturday-Sunday 08:00-14:00.
    """
    weekday: DayWindow = field(default_factory=_default_weekday)
    weekend: DayWindow = field(default_factory=_default_weekend)
    timezone: str = "America/Mexico_City"

    def window_for_day(self, local_day: DateTime) -> DayWindow:
        if local_day.day_of_week in WEEKEND_DAYS:
            return self.weekend
        return self.weekday

    def is_within_business_window(
        self,
        start: DateTime,
        end: DateTime,
        timezone: str | None = None,
    ) -> bool:
        """
        Check that ``[start, end)`` lies inside the operating window.

        Both endpoints must fall on the same local date in ``timezone``;
        an interval crossing local midnight is never accepted. The interval
        may start exactly at opening and end exactly at closing.
        """
        tz = timezone or self.timezone
        start_local = start.in_timezone(tz)
        end_local = end.in_timezone(tz)

        if start_local.date() != end_local.date():
            return False

        window = self.window_for_day(start_local)
        opening, closing = window.bounds_for(start_local)

        return start_local >= opening and end_local <= closing

    def describe(self) -> str:
        return f"Mon–Fri {self.weekday}, Sat–Sun {self.weekend} ({self.timezone})"

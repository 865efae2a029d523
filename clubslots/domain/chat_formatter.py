"""
Renders free slots as a short chat message, one line per day.

Example (mode="ranges"):

    🗓 Disponibilidad de Enzo:
    • Martes 07/10 — 7:00–9:00, 10:00–22:30
    • Miércoles 08/10 — 7:00–12:00
"""

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Sequence

import pendulum
from pendulum import Date

from .models import TimeRange

DisplayMode = Literal["starts", "ranges"]


@dataclass
class ChatFormatOptions:
    """Display settings for the chat summary."""
    display_name: str = "Coach"
    locale: str = "es"
    timezone: str = "America/Mexico_City"
    mode: DisplayMode = "starts"
    granularity_minutes: int = 30
    max_days_shown: int = 7
    markdown_emphasis: bool = False
    empty_label: str = "sin horarios disponibles"
    header_emoji: str = "🗓"
    day_label_format: str = "dddd DD/MM"
    time_label_format: str = "H:mm"


@dataclass
class FormattedDay:
    local_date: Date
    display_pieces: List[str] = field(default_factory=list)


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def _merge_contiguous(slots: Sequence[TimeRange], granularity_minutes: int) -> List[TimeRange]:
    """
    Merge slots that touch or are exactly one granularity step apart.

    Example: [09:00-09:30, 09:30-10:00] -> [09:00-10:00]
    """
    merged: List[TimeRange] = []

    for slot in slots:
        if not merged:
            merged.append(slot)
            continue

        last = merged[-1]
        gap_minutes = (slot.start - last.end).total_seconds() / 60
        if gap_minutes == 0 or gap_minutes == granularity_minutes:
            merged[-1] = TimeRange(start=last.start, end=slot.end)
        else:
            merged.append(slot)

    return merged


def group_by_day(slots: Sequence[TimeRange], options: ChatFormatOptions) -> List[FormattedDay]:
    """Group slots by local date and build the display pieces of each day."""
    by_day: Dict[Date, List[TimeRange]] = {}
    for slot in slots:
        local = slot.in_timezone(options.timezone)
        by_day.setdefault(local.start.date(), []).append(local)

    days: List[FormattedDay] = []
    for local_date in sorted(by_day)[: max(options.max_days_shown, 0)]:
        ordered = sorted(by_day[local_date], key=lambda r: r.start)

        if options.mode == "ranges":
            pieces = [
                f"{r.start.format(options.time_label_format, locale=options.locale)}"
                f"–{r.end.format(options.time_label_format, locale=options.locale)}"
                for r in _merge_contiguous(ordered, options.granularity_minutes)
            ]
        else:
            pieces = [
                r.start.format(options.time_label_format, locale=options.locale)
                for r in ordered
            ]

        days.append(FormattedDay(local_date=local_date, display_pieces=pieces))

    return days


def format_for_chat(slots: Sequence[TimeRange], options: ChatFormatOptions | None = None) -> str:
    """
    Render free slots as a multi-line chat message.

    Days beyond ``max_days_shown`` are dropped silently.
    """
    options = options or ChatFormatOptions()

    title = f"{options.header_emoji} Disponibilidad de {options.display_name}:"
    if options.markdown_emphasis:
        title = f"**{title}**"

    if not slots:
        return f"{title}\n• {options.empty_label}"

    lines = [title]
    for day in group_by_day(slots, options):
        label = pendulum.datetime(
            day.local_date.year, day.local_date.month, day.local_date.day, tz=options.timezone
        ).format(options.day_label_format, locale=options.locale)
        body = ", ".join(day.display_pieces) if day.display_pieces else options.empty_label
        lines.append(f"• {_capitalize(label)} — {body}")

    return "\n".join(lines)

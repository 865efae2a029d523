"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.google_authenticator import GoogleAuthenticator
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ClubSlotsError, InternalError
from ..services.availability import AvailabilityResult, AvailabilityService
from ..services.booking import BookingService
from ..services.request_models import AvailabilityRequest, BookingRequest

app = typer.Typer(
    name="clubslots",
    help="Coach availability and class booking on Google Calendar",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data and skip Google authentication.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    return AppConfig.load_from_yaml(config_file or get_default_config_path())


def _build_client(config: AppConfig, mock: bool):
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled calendar data[/yellow]\n")
        return MockCalendarClient(timezone=config.timezone)

    authenticator = GoogleAuthenticator(config.auth)
    return GoogleCalendarClient(access_token=authenticator.get_access_token())


def _run(coroutine: Coroutine) -> Any:
    """Run a service coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coroutine)
    except ClubSlotsError as exc:
        console.print(f"[bold red]{exc.code}:[/bold red] {exc.message}")
        raise typer.Exit(1)
    except Exception as exc:
        logger.exception("Unexpected failure")
        error = InternalError(f"Unexpected error: {exc}")
        console.print(f"[bold red]{error.code}:[/bold red] {error.message}")
        raise typer.Exit(1) from exc


def _render_slots(result: AvailabilityResult) -> None:
    if not result.free_slots:
        console.print(
            "[yellow]⚠ No free slots found.[/yellow]\n"
            "Try a longer window or a shorter duration."
        )
        return

    table = Table(
        title=f"Free slots ({result.timezone})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Start")
    table.add_column("End", style="dim")

    for slot in result.free_slots:
        local = slot.in_timezone(result.timezone)
        table.add_row(local.start.format("ddd DD.MM.YYYY"), local.start.format("HH:mm"), local.end.format("HH:mm"))

    console.print(table)
    console.print(f"\n[bold green]✓ {len(result.free_slots)} free slot(s), {len(result.busy)} busy range(s)[/bold green]")


@app.command()
def availability(
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Window start (ISO 8601, local time if no offset)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Window end (ISO 8601)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Minutes that must be free from each start")] = None,
    month_day: Annotated[Optional[str], typer.Option("--month-day", help="Month/day hint, e.g. 10/7")] = None,
    time_hint: Annotated[Optional[str], typer.Option("--time", help="Time hint, e.g. 9:30")] = None,
    year: Annotated[Optional[int], typer.Option("--year", help="Year for the month/day hint")] = None,
    granularity: Annotated[Optional[int], typer.Option("--granularity", "-g", help="Slot size in minutes")] = None,
    mode: Annotated[Optional[str], typer.Option("--mode", help="'starts' or 'ranges'")] = None,
    coach: Annotated[Optional[str], typer.Option("--coach", help="Coach alias from the config")] = None,
    pretty: Annotated[bool, typer.Option("--pretty", help="Print the chat summary")] = False,
    markdown: Annotated[bool, typer.Option("--md", help="Bold chat title")] = False,
    max_days: Annotated[Optional[int], typer.Option("--max-days", help="Days shown in the chat summary")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw response as JSON")] = False,
    mock: MockOption = False,
):
    """
    Show free slots for a coach or for the club calendar.

    Examples:

        clubslots availability --start 2025-10-07T07:00 --end 2025-10-07T23:00 --coach Enzo

        clubslots availability --month-day 10/7 --time 7 --duration 90 --mode starts --pretty
    """
    try:
        config = _load_config(config_file)
        request = AvailabilityRequest(
            start=start,
            end=end,
            duration_minutes=duration,
            month_day=month_day,
            time_hint=time_hint,
            year=year,
            granularity_minutes=granularity,
            mode=mode,
            coach=coach,
            pretty=pretty,
            markdown=markdown,
            max_days=max_days,
        )
        client = _build_client(config, mock)
    except (ClubSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    service = AvailabilityService(calendar_client=client, config=config)
    result = _run(service.check_availability(request, now=pendulum.now(config.timezone)))

    if as_json:
        console.print_json(data=result.to_dict())
    elif result.chat is not None:
        console.print(result.chat, markup=False, highlight=False)
    else:
        _render_slots(result)


@app.command()
def book(
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Class start (ISO 8601)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Class end (ISO 8601)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Class length in minutes")] = None,
    month_day: Annotated[Optional[str], typer.Option("--month-day", help="Month/day hint, e.g. 10/7")] = None,
    time_hint: Annotated[Optional[str], typer.Option("--time", help="Time hint, e.g. 9:30")] = None,
    year: Annotated[Optional[int], typer.Option("--year", help="Year for the month/day hint")] = None,
    summary: Annotated[Optional[str], typer.Option("--summary", help="Event title")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="Event description")] = None,
    attendees: Annotated[Optional[List[str]], typer.Option("--attendee", help="Attendee email (repeatable)")] = None,
    external_id: Annotated[Optional[str], typer.Option("--external-id", help="Idempotency key")] = None,
    coach: Annotated[Optional[str], typer.Option("--coach", help="Coach alias from the config")] = None,
    send_updates: Annotated[Optional[str], typer.Option("--send-updates", help="all | externalOnly | none")] = None,
    mock: MockOption = False,
):
    """
    Book a class inside club hours.
    """
    try:
        config = _load_config(config_file)
        request = BookingRequest(
            start=start,
            end=end,
            duration_minutes=duration,
            month_day=month_day,
            time_hint=time_hint,
            year=year,
            summary=summary,
            description=description,
            attendees=[{"email": email} for email in attendees or []],
            external_id=external_id,
            coach=coach,
            send_updates=send_updates,
        )
        client = _build_client(config, mock)
    except (ClubSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    service = BookingService(calendar_client=client, config=config)
    result = _run(service.book(request, now=pendulum.now(config.timezone)))

    event = result.event
    status = "already booked" if result.idempotent else "booked"
    console.print(Panel.fit(
        f"[bold green]✓ Class {status}[/bold green]\n\n"
        f"[bold]Event:[/bold] {event.get('id', 'N/A')}\n"
        f"[bold]Title:[/bold] {event.get('summary', 'N/A')}\n"
        f"[bold]Start:[/bold] {event.get('start', {}).get('dateTime', 'N/A')}\n"
        f"[bold]End:[/bold] {event.get('end', {}).get('dateTime', 'N/A')}",
        title="Booking",
    ))


@app.command()
def update(
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    config_file: ConfigOption = None,
    calendar_id: Annotated[Optional[str], typer.Option("--calendar-id", help="Defaults to the club calendar")] = None,
    summary: Annotated[Optional[str], typer.Option("--summary", help="New title")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="New description")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="New start (ISO 8601 with offset)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="New end (ISO 8601 with offset)")] = None,
    etag: Annotated[Optional[str], typer.Option("--etag", help="Only update this revision")] = None,
    send_updates: Annotated[Optional[str], typer.Option("--send-updates", help="all | externalOnly | none")] = None,
    mock: MockOption = False,
):
    """
    Patch an existing event.
    """
    changes: Dict[str, Any] = {}
    if summary is not None:
        changes["summary"] = summary
    if description is not None:
        changes["description"] = description
    if start is not None:
        changes["start"] = {"dateTime": start}
    if end is not None:
        changes["end"] = {"dateTime": end}

    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
    except ClubSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    service = BookingService(calendar_client=client, config=config)
    event = _run(service.update_event(
        event_id,
        changes,
        calendar_id=calendar_id,
        etag=etag,
        send_updates=send_updates,
    ))
    console.print(f"\n[green]✓ Event {event.get('id', event_id)} updated.[/green]\n")


@app.command()
def cancel(
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    config_file: ConfigOption = None,
    calendar_id: Annotated[Optional[str], typer.Option("--calendar-id", help="Defaults to the club calendar")] = None,
    etag: Annotated[Optional[str], typer.Option("--etag", help="Only delete this revision")] = None,
    send_updates: Annotated[Optional[str], typer.Option("--send-updates", help="all | externalOnly | none")] = None,
    mock: MockOption = False,
):
    """
    Delete an event.
    """
    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
    except ClubSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    service = BookingService(calendar_client=client, config=config)
    _run(service.cancel_event(event_id, calendar_id=calendar_id, etag=etag, send_updates=send_updates))
    console.print(f"\n[green]✓ Event {event_id} deleted.[/green]\n")


@app.command()
def coaches(config_file: ConfigOption = None):
    """
    List all configured coaches.
    """
    try:
        config = _load_config(config_file)
    except ClubSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.coaches:
        console.print("[yellow]No coaches defined in the config file.[/yellow]")
        return

    table = Table(title="Configured coaches", show_header=True, header_style="bold cyan")
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("E-mail", style="dim")
    table.add_column("Calendar")

    for coach in config.coaches:
        table.add_row(coach.name, coach.email, config.calendar_for(coach))

    console.print()
    console.print(table)
    console.print(f"\n[dim]Business hours: {config.build_business_hours().describe()}[/dim]\n")


@app.command()
def calendars(config_file: ConfigOption = None, mock: MockOption = False):
    """
    List calendars visible to the configured Google identity.
    """
    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
    except ClubSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    items = _run(client.list_calendars())

    table = Table(title="Calendars", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Summary")
    table.add_column("Primary")
    table.add_column("Time zone", style="dim")
    for item in items:
        table.add_row(item["id"], item.get("summary") or "", "✓" if item.get("primary") else "", item.get("timeZone") or "")
    console.print(table)


@app.command()
def health(config_file: ConfigOption = None, mock: MockOption = False):
    """
    Check credentials and access to the club calendar.
    """
    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
    except ClubSlotsError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    data = _run(client.get_calendar(config.calendar_id))
    console.print(Panel.fit(
        f"[bold green]✓ Calendar reachable[/bold green]\n\n"
        f"[bold]Calendar:[/bold] {config.calendar_id}\n"
        f"[bold]Summary:[/bold] {data.get('summary', 'N/A')}\n"
        f"[bold]Time zone:[/bold] {data.get('timeZone', 'N/A')}",
        title="✓ Health check",
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clubslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

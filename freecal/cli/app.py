"""
Main CLI application using Typer.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..adapters.google_authenticator import GoogleAuthenticator
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, load_config
from ..domain.exceptions import FreecalError
from ..domain.slot_calculator import SlotCalculator
from ..services.free_slot_finder import CalendarClientProtocol, FreeSlotFinderService

app = typer.Typer(
    name="freecal",
    help="Find free working-hour slots in a Google Calendar",
    add_completion=False
)

# Results go to stdout as Markdown; everything else goes to stderr
console = Console(stderr=True)

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml if present."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Find free working-hour slots in a Google Calendar.
    """
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        force=True,
    )


def _parse_date(value: str, tz: str, label: str) -> date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]invalid {label}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _determine_date_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
) -> Tuple[date, date]:
    """
    Resolve the desired date range based on shortcut flags or explicit dates.
    Returns (start_date, end_date), both inclusive.
    """
    if this_week and next_week:
        console.print("[red]Error: --this-week and --next-week cannot be combined.[/red]")
        raise typer.Exit(1)

    today = pendulum.today(tz).date()

    if this_week:
        return today, today.end_of("week")

    if next_week:
        next_monday = today.next(pendulum.MONDAY)
        return next_monday, next_monday.add(days=6)

    start_date = _parse_date(start_option, tz, "--start") if start_option else today

    if end_option:
        end_date = _parse_date(end_option, tz, "--end")
    else:
        end_date = pendulum.date(start_date.year, start_date.month, start_date.day).add(days=7)

    if end_date < start_date:
        console.print("[red]Error: --end is before --start[/red]")
        raise typer.Exit(1)

    return start_date, end_date


def _build_authenticator(config: AppConfig) -> GoogleAuthenticator:
    return GoogleAuthenticator(
        credentials_path=config.credentials_path,
        token_path=config.token_path,
        use_keyring=config.use_keyring,
    )


def _build_calendar_client(config: AppConfig, mock: bool) -> CalendarClientProtocol:
    """Authenticate (unless mocked) and return a calendar client."""
    console.print("[bold]Step 1/3:[/bold] Authentication...")
    if mock:
        console.print("[yellow]⊘ Skipped (mock mode)[/yellow]")
        return MockCalendarClient()

    authenticator = _build_authenticator(config)
    access_token = authenticator.get_access_token(force_refresh=False)
    if authenticator.insecure_storage_warning:
        console.print(f"[yellow]⚠ {authenticator.insecure_storage_warning}[/yellow]")
    console.print("[green]✓ Authenticated[/green]")
    return GoogleCalendarClient(access_token=access_token)


@app.command()
def find(
    config_file: ConfigOption = None,
    credentials: Annotated[Optional[Path], typer.Option("--credentials", help="Path to OAuth client credentials (credentials.json)")] = None,
    token: Annotated[Optional[Path], typer.Option("--token", help="Path to save/load OAuth token")] = None,
    calendar: Annotated[Optional[str], typer.Option("--calendar", help="Calendar ID (e.g., primary or somebody@example.com)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    workstart: Annotated[Optional[str], typer.Option("--workstart", help="Workday start (HH:MM)")] = None,
    workend: Annotated[Optional[str], typer.Option("--workend", help="Workday end (HH:MM)")] = None,
    min_minutes: Annotated[Optional[int], typer.Option("--min", help="Minimum free slot length in minutes")] = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="IANA timezone (e.g., Asia/Tokyo)")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Search from today until the end of this week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Search next week (Monday-Sunday).")] = False,
    mock: Annotated[bool, typer.Option("--mock", help="Use bundled mock events and skip authentication.")] = False,
):
    """
    Print free slots per working day as a Markdown list.

    Examples:

        freecal find --start 2025-08-11 --end 2025-08-14

        freecal find --next-week --min 30 --workstart 10:00

        freecal find --mock --start 2025-01-13 --end 2025-01-17
    """
    try:
        config = load_config(config_file).with_overrides(
            credentials_path=credentials,
            token_path=token,
            calendar_id=calendar,
            timezone=tz,
            workstart=workstart,
            workend=workend,
            min_minutes=min_minutes,
        )

        start_date, end_date = _determine_date_range(
            tz=config.timezone,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )

        if mock:
            console.print("[yellow]⚠  MOCK MODE: using bundled test data[/yellow]\n")

        console.print("[bold cyan]📊 Summary:[/bold cyan]")
        console.print(f"   Calendar: {config.calendar_id}")
        console.print(f"   Range: {start_date.isoformat()} - {end_date.isoformat()} ({config.timezone})")
        console.print(f"   Working hours: {config.workday.start} - {config.workday.end}")
        console.print(f"   Minimum length: {config.workday.min_minutes} minutes")
        console.print()

        client = _build_calendar_client(config, mock)

        console.print("\n[bold]Step 2/3:[/bold] Fetching calendar events...")
        service = FreeSlotFinderService(
            calendar_client=client,
            slot_calculator=SlotCalculator(working_hours=config.get_working_hours()),
        )
        busy_intervals = service.fetch_busy_intervals(
            calendar_id=config.calendar_id,
            start_date=start_date,
            end_date=end_date,
            timezone=config.timezone,
        )
        console.print(f"[green]✓ {len(busy_intervals)} busy interval(s) loaded[/green]")

        console.print("\n[bold]Step 3/3:[/bold] Calculating free slots...")
        day_slots = service.calculate_slots(
            start_date=start_date,
            end_date=end_date,
            busy_intervals=busy_intervals,
            min_duration_minutes=config.workday.min_minutes,
        )

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    except (FreecalError, ValueError) as e:
        logger.debug("find failed", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print()
    if not day_slots:
        console.print(
            "[yellow]⚠ No free slots found.[/yellow]\n"
            "Try a longer date range or a shorter minimum length."
        )
        return

    for slot in day_slots:
        typer.echo(slot.format_line())


@app.command()
def test_auth(
    config_file: ConfigOption = None,
    force: bool = typer.Option(
        False,
        "--force",
        help="Force re-authentication"
    ),
    mock: bool = typer.Option(
        False,
        "--mock",
        help="Check the bundled mock calendar instead of Google."
    ),
):
    """
    Test Google Calendar authentication.
    """
    try:
        config = load_config(config_file)

        console.print("\n[bold]Testing Google Calendar authentication...[/bold]\n")

        if mock:
            client = MockCalendarClient()
            storage = "none (mock mode)"
        else:
            authenticator = _build_authenticator(config)
            access_token = authenticator.get_access_token(force_refresh=force)
            client = GoogleCalendarClient(access_token=access_token)
            storage = authenticator.cache_backend

        calendar_info = client.test_connection(config.calendar_id)

        console.print(Panel.fit(
            f"[bold green]✓ Authentication successful![/bold green]\n\n"
            f"[bold]Calendar:[/bold] {escape(str(calendar_info.get('summary', 'N/A')))}\n"
            f"[bold]Time zone:[/bold] {calendar_info.get('timeZone', 'N/A')}\n"
            f"[bold]Token storage:[/bold] {storage}",
            title="✓ Connection test"
        ))
        console.print()

    except (FileNotFoundError, FreecalError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(e))}\n")
        raise typer.Exit(1)


@app.command()
def clear_cache(
    config_file: ConfigOption = None,
):
    """
    Clear the authentication token cache.
    """
    try:
        config = load_config(config_file)
        _build_authenticator(config).clear_cache()
        console.print("You will need to authenticate again on the next run.\n")

    except (FileNotFoundError, OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]freecal[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.graph_client import GraphClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, CalendarsConfig, get_default_config_path
from ..domain.exceptions import SourceUnavailableError, TaskCalError
from ..domain.tasks import Task
from ..services.task_service import TaskService, build_task_service

app = typer.Typer(
    name="taskcal",
    help="Schedule tasks into the earliest free slot of your calendar",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Mock-Daten nutzen statt Microsoft Graph.")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Bezugszeitpunkt (YYYY-MM-DD HH:mm) statt der aktuellen Zeit.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren.")] = False,
):
    """
    taskcal - Aufgaben automatisch in freie Kalenderzeit einplanen.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)]
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        # The bundled mock data uses these calendar ids
        return AppConfig(calendars=CalendarsConfig(primary="primary", tasks="tasks", holidays="holidays"))
    return AppConfig.load_from_yaml(config_path)


def _build_service(config_file: Optional[Path], mock: bool) -> tuple[AppConfig, TaskService]:
    config = _load_config(config_file, mock)

    if mock:
        console.print("[yellow]⚠  MOCK-MODUS: Verwende Test-Daten[/yellow]\n")
        client = MockCalendarClient(timezone=config.timezone)
    else:
        client = GraphClient(
            access_token=config.resolve_access_token(),
            base_url=config.graph_base_url,
            timezone=config.timezone
        )

    return config, build_task_service(config, client)


def _parse_now(value: Optional[str], tz: str):
    if value is None:
        return None
    try:
        return pendulum.from_format(value, "YYYY-MM-DD HH:mm", tz=tz)
    except ValueError as e:
        console.print(f"[red]Fehler beim Parsen von --now: {e}[/red]")
        raise typer.Exit(1)


def _parse_date(value: Optional[str], tz: str, label: str):
    if value is None:
        return None
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).start_of("day")
    except ValueError as e:
        console.print(f"[red]Fehler beim Parsen des {label}: {e}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[bold red]Fehler:[/bold red] {escape(str(error))}")
    if isinstance(error, SourceUnavailableError):
        console.print("[dim]Der Kalender ist vorübergehend nicht erreichbar. Bitte später erneut versuchen.[/dim]")
    return typer.Exit(1)


def _print_task(prefix: str, task: Task) -> None:
    console.print(f"[bold green]✓ {prefix}:[/bold green] {escape(task.format_display())}")
    console.print(f"   [dim]ID: {task.event_id}[/dim]\n")


@app.command()
def slot(
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Dauer in Minuten")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    now: NowOption = None,
):
    """
    Show the earliest free slot without creating anything.
    """
    try:
        config, service = _build_service(config_file, mock)
        minutes = duration if duration is not None else config.working_hours.default_duration_minutes
        found = asyncio.run(service.schedule_time(minutes, now=_parse_now(now, config.timezone)))
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    console.print(f"[bold green]✓ Nächster freier Slot ({found.duration_minutes()} Min.):[/bold green] {found}\n")


@app.command()
def create(
    title: Annotated[str, typer.Argument(help="Titel der Aufgabe")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Dauer in Minuten")] = None,
    description: Annotated[str, typer.Option("--description", help="Beschreibung")] = "",
    config_file: ConfigOption = None,
    mock: MockOption = False,
    now: NowOption = None,
):
    """
    Create a task in the earliest free slot.

    Examples:

        taskcal create "Bericht schreiben" --duration 90

        taskcal create "Reisekosten" --mock --now "2024-12-23 10:15"
    """
    try:
        config, service = _build_service(config_file, mock)
        minutes = duration if duration is not None else config.working_hours.default_duration_minutes
        task = asyncio.run(
            service.create_task(title, minutes, description, now=_parse_now(now, config.timezone))
        )
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    _print_task("Aufgabe eingeplant", task)


@app.command("list")
def list_tasks(
    start: Annotated[Optional[str], typer.Option("--start", help="Startdatum (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Enddatum (YYYY-MM-DD)")] = None,
    days: Annotated[int, typer.Option("--days", help="Zeitraum in Tagen, wenn Start oder Ende fehlt")] = 7,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List tasks in a date range.
    """
    try:
        config, service = _build_service(config_file, mock)
        tz = config.timezone
        result = asyncio.run(
            service.list_tasks(
                start=_parse_date(start, tz, "Startdatums"),
                end=_parse_date(end, tz, "Enddatums"),
                span_days=days
            )
        )
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    console.print(
        f"[bold cyan]📋 Aufgaben {result.start.format('DD.MM.YYYY')} - {result.end.format('DD.MM.YYYY')}[/bold cyan]\n"
    )
    if not result.tasks:
        console.print("[yellow]Keine Aufgaben in diesem Zeitraum.[/yellow]\n")
        return

    for task in result.tasks:
        style = "dim" if task.done else None
        console.print(f"  {escape(task.format_display())}", style=style)
        console.print(f"      [dim]ID: {task.event_id}[/dim]")
    console.print()


@app.command()
def reschedule(
    event_id: Annotated[str, typer.Argument(help="Event-ID der Aufgabe")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    now: NowOption = None,
):
    """
    Move a task to the earliest free slot, keeping its duration.
    """
    try:
        config, service = _build_service(config_file, mock)
        task = asyncio.run(service.reschedule_task(event_id, now=_parse_now(now, config.timezone)))
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    _print_task("Aufgabe verschoben", task)


@app.command()
def copy(
    event_id: Annotated[str, typer.Argument(help="Event-ID der Aufgabe")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    now: NowOption = None,
):
    """
    Schedule a numbered copy of a task.
    """
    try:
        config, service = _build_service(config_file, mock)
        task = asyncio.run(service.copy_task(event_id, now=_parse_now(now, config.timezone)))
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    _print_task("Aufgabe kopiert", task)


@app.command()
def done(
    event_id: Annotated[str, typer.Argument(help="Event-ID der Aufgabe")],
    undo: Annotated[bool, typer.Option("--undo", help="Als offen markieren.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Mark a task as done (or open again with --undo).
    """
    try:
        _, service = _build_service(config_file, mock)
        is_done = asyncio.run(service.toggle_task_done(event_id, not undo))
    except (TaskCalError, FileNotFoundError, ValueError) as e:
        raise _fail(e)

    state = "erledigt" if is_done else "offen"
    console.print(f"[green]✓ Aufgabe {event_id} ist {state}.[/green]\n")


@app.command()
def show_config(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show working hours and the calendars that count as busy.
    """
    try:
        config = _load_config(config_file, mock)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(e)

    weekday_labels = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

    table = Table(
        title="Konfiguration",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Einstellung", style="bold yellow")
    table.add_column("Wert")

    table.add_row("Arbeitszeiten", f"{config.working_hours.start_hour}:00 - {config.working_hours.end_hour}:00")
    table.add_row("Standarddauer", f"{config.working_hours.default_duration_minutes} Min.")
    table.add_row("Zeitzone", config.timezone)
    table.add_row("Freie Tage", ", ".join(weekday_labels[d] for d in config.exclude_days) or "-")
    table.add_row("Hauptkalender", config.calendars.primary)
    table.add_row("Aufgabenkalender", config.calendars.tasks)
    table.add_row("Feiertagskalender", config.calendars.holidays or "-")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]taskcal[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

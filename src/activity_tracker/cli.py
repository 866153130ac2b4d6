"""Command-line interface for the activity tracker."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from .dates import AggregationUnit, parse_day
from .db import (
    clear_records,
    database_connection,
    delete_activity,
    fetch_activities,
    insert_activity,
    load_settings,
    seed_default_activities,
)
from .paths import get_db_path
from .recording import ActivityRecorder
from .reporting import SummaryPrinter, format_minutes

app = typer.Typer(help="Record time spent on activities and review where the day went.")

DbOption = typer.Option(
    None,
    "--db",
    path_type=Path,
    help="Location of the activity SQLite database.",
)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def activities(db_path: Optional[Path] = DbOption) -> None:
    """List the activity catalog."""
    with database_connection(db_path or get_db_path()) as conn:
        seed_default_activities(conn)
        for activity in fetch_activities(conn):
            typer.echo(f"{activity.icon} {activity.name:<20} {activity.color}  {activity.id}")


@app.command("add-activity")
def add_activity(
    name: str = typer.Argument(..., help="Display name of the new activity."),
    color: str = typer.Option("#6366f1", "--color", help="Hex colour used in charts."),
    icon: str = typer.Option("", "--icon", help="Emoji shown next to the name."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Add an activity to the catalog."""
    with database_connection(db_path or get_db_path()) as conn:
        settings = load_settings(conn)
        try:
            activity = insert_activity(
                conn, name, color, icon, max_activities=settings.max_activities
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="NAME") from exc
    typer.echo(f"Added {activity.name} ({activity.id})")


@app.command("remove-activity")
def remove_activity(
    activity: str = typer.Argument(..., help="Activity id or name."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Remove an activity. Its past records are kept."""
    with database_connection(db_path or get_db_path()) as conn:
        activity_id = _resolve_activity(conn, activity)
        delete_activity(conn, activity_id)
    typer.echo(f"Removed {activity}")


@app.command()
def start(
    activity: str = typer.Argument(..., help="Activity id or name."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Start recording an activity, stopping the current one first."""
    with database_connection(db_path or get_db_path()) as conn:
        seed_default_activities(conn)
        activity_id = _resolve_activity(conn, activity)
        record = ActivityRecorder(conn).start(activity_id)
    typer.echo(f"Started {activity} at {record.start_time:%H:%M}")


@app.command()
def stop(db_path: Optional[Path] = DbOption) -> None:
    """Stop the activity in progress."""
    with database_connection(db_path or get_db_path()) as conn:
        pieces = ActivityRecorder(conn).stop()
    if not pieces:
        typer.echo("Nothing is being recorded.")
        return
    minutes = sum(piece.duration_seconds or 0.0 for piece in pieces) / 60.0
    typer.echo(f"Stopped after {format_minutes(minutes)}")


@app.command()
def status(db_path: Optional[Path] = DbOption) -> None:
    """Show the activity in progress, if any."""
    with database_connection(db_path or get_db_path()) as conn:
        current = ActivityRecorder(conn).ongoing()
        names = {activity.id: activity.name for activity in fetch_activities(conn)}
    if current is None:
        typer.echo("Nothing is being recorded.")
        return
    elapsed = (datetime.now() - current.start_time).total_seconds() / 60.0
    name = names.get(current.activity_id, current.activity_id)
    typer.echo(f"{name} since {current.start_time:%Y-%m-%d %H:%M} ({format_minutes(elapsed)})")


@app.command()
def summary(
    date_str: Optional[str] = typer.Option(
        None,
        "--date",
        help="Reference day (YYYY-MM-DD). Defaults to today.",
    ),
    unit: AggregationUnit = typer.Option(
        AggregationUnit.DAY, "--unit", case_sensitive=False, help="Aggregation period."
    ),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Print the per-activity breakdown for a day, week, month or year."""
    target = _parse_date_option(date_str)
    SummaryPrinter(db_path=db_path or get_db_path()).print_breakdown(target, unit)


@app.command()
def timeline(
    date_str: Optional[str] = typer.Option(
        None,
        "--date",
        help="Day (YYYY-MM-DD) to lay out. Defaults to today.",
    ),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Print the day as consecutive activity/idle blocks."""
    target = _parse_date_option(date_str)
    SummaryPrinter(db_path=db_path or get_db_path()).print_timeline(target)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Delete every recorded interval, including the one in progress."""
    if not yes:
        typer.confirm("Delete all records?", abort=True)
    with database_connection(db_path or get_db_path()) as conn:
        clear_records(conn)
    typer.echo("All records deleted.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = DbOption,
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Serve the JSON API."""
    from .server_runner import run_server

    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        open_browser=open_browser,
    )


def _parse_date_option(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return parse_day(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--date") from exc


def _resolve_activity(conn, value: str) -> str:
    """Accept an activity id or a case-insensitive name."""
    catalog = fetch_activities(conn)
    for activity in catalog:
        if activity.id == value:
            return activity.id
    matches = [a for a in catalog if a.name.casefold() == value.casefold()]
    if len(matches) == 1:
        return matches[0].id
    if matches:
        raise typer.BadParameter(f"Several activities are named {value!r}; use the id.")
    raise typer.BadParameter(f"Unknown activity {value!r}.")

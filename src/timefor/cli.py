"""Command-line interface for the tracker."""

from __future__ import annotations

import logging
import sqlite3
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

from . import tracker
from .config import DaemonSettings, parse_duration
from .db import database_connection, initialize_views
from .errors import AlreadyTracking, NotifyFailed, TimeforError
from .paths import get_db_path, get_log_path
from .presenter import DEFAULT_TEMPLATE, OutputStyle, format_activity

app = typer.Typer(help="A command-line time tracker with rofi integration.")

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the activity SQLite database (default: $TIMEFOR_DB or ~/.timefor.db).",
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    ctx.obj = db_path or get_db_path()


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except AlreadyTracking as exc:
        typer.echo(str(exc))
    except TimeforError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    except sqlite3.Error as exc:
        typer.echo(f"Error: database failure: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def start(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Activity name."),
    shift: str = typer.Option("0", "--shift", help="Start time shift (like 10m, 1m30s)."),
) -> None:
    """Start new activity."""
    with _reported_errors(), database_connection(ctx.obj) as conn:
        activity = tracker.start(conn, name, parse_duration(shift))
        typer.echo(f'New activity "{activity.name}" started')


@app.command()
def select(
    ctx: typer.Context,
    update: bool = typer.Option(False, "--update", help="Update current activity instead."),
) -> None:
    """Select new activity using rofi."""
    from .selector import select_name

    with _reported_errors(), database_connection(ctx.obj) as conn:
        name = select_name(conn)
        if update:
            tracker.update(conn, name=name)
            return
        activity = tracker.start(conn, name)
        typer.echo(f'New activity "{activity.name}" started')


@app.command()
def update(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Change the name as well."),
) -> None:
    """Update the duration of current activity (for cron use)."""
    with _reported_errors(), database_connection(ctx.obj) as conn:
        tracker.update(conn, name=name)


@app.command()
def finish(ctx: typer.Context) -> None:
    """Finish current activity."""
    with _reported_errors(), database_connection(ctx.obj) as conn:
        tracker.finish(conn)


@app.command()
def reject(ctx: typer.Context) -> None:
    """Reject current activity."""
    with _reported_errors(), database_connection(ctx.obj) as conn:
        if tracker.reject(conn):
            typer.echo("Current activity rejected")


@app.command()
def show(
    ctx: typer.Context,
    template: str = typer.Option(
        DEFAULT_TEMPLATE, "--template", "-t", help="Template for formatting."
    ),
    style: OutputStyle = typer.Option(
        OutputStyle.SYMBOL, "--style", case_sensitive=False, help="How to mark the active state."
    ),
) -> None:
    """Show current activity."""
    with _reported_errors(), database_connection(ctx.obj) as conn:
        typer.echo(format_activity(tracker.latest(conn), template, style))


@app.command()
def report(
    ctx: typer.Context,
    notify: bool = typer.Option(False, "--notify", "-n", help="Send as a desktop notification."),
) -> None:
    """Report today's activities."""
    from .reporting import build_report

    with _reported_errors(), database_connection(ctx.obj) as conn:
        result = build_report(conn)

    if not notify:
        typer.echo(result.text)
        return

    from .notifier import Notifier

    try:
        Notifier().send(result.title, result.body, timeout=0)
    except NotifyFailed:
        logger.warning("Report notification was not delivered.", exc_info=True)


@app.command()
def daemon(
    ctx: typer.Context,
    update_interval: str = typer.Option(
        "30s", "--update-interval", help="Interval to update activity time in db."
    ),
    break_interval: str = typer.Option(
        "80m", "--break-interval", help="Interval to show a break reminder."
    ),
    repeat_interval: str = typer.Option(
        "10m", "--repeat-interval", help="Interval to repeat a break reminder."
    ),
    hook: Optional[str] = typer.Option(
        None, "--hook", help="Shell command template run when the activity display changes."
    ),
    log_file: bool = typer.Option(
        True, "--log-file/--no-log-file", help="Also append logs to the data directory."
    ),
) -> None:
    """Update the duration of current activity and remind about breaks."""
    from .daemon import Daemon

    with _reported_errors():
        settings = DaemonSettings.from_strings(
            update_interval, break_interval, repeat_interval, hook
        )
        if log_file:
            handler = logging.FileHandler(get_log_path(), encoding="utf-8")
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logging.getLogger().addHandler(handler)
        Daemon(db_path=ctx.obj, settings=settings).run_forever()


@app.command()
def db(
    ctx: typer.Context,
    update_views: bool = typer.Option(
        False, "--update-views", help="Update sqlite views and exit."
    ),
) -> None:
    """Execute sqlite3 with db file."""
    if update_views:
        with _reported_errors(), database_connection(ctx.obj) as conn:
            initialize_views(conn)
        return

    try:
        completed = subprocess.run(["sqlite3", "-box", str(ctx.obj)], check=False)
    except OSError as exc:
        typer.echo(f"Error: cannot run sqlite3: {exc}", err=True)
        raise typer.Exit(code=1)
    raise typer.Exit(code=completed.returncode)

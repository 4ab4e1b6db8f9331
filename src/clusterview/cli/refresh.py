"""Refresh interval CLI commands.

This module provides the CLI command for the persisted refresh interval:
- interval: Show the stored interval, or store a new one

The interval is stored in the preferences database configured by
CLUSTERVIEW_PREFERENCES_PATH (or --db).
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from clusterview.config import load_settings
from clusterview.errors import InvalidIntervalError, PreferenceStoreError
from clusterview.preferences import SqlitePreferenceStore
from clusterview.refresh import REFRESH_INTERVALS, RefreshClock

refresh_app = typer.Typer(help="Manage the refresh interval")


def _label(interval_ms: int) -> str:
    for label, value in REFRESH_INTERVALS.items():
        if value == interval_ms:
            return label
    return f"{interval_ms}ms"


def _parse_choice(value: str) -> int:
    """Accept an interval label ("30s", "off") or a number of milliseconds."""
    if value in REFRESH_INTERVALS:
        return REFRESH_INTERVALS[value]
    try:
        return int(value)
    except ValueError:
        raise InvalidIntervalError(value)


@refresh_app.command("interval")
def refresh_interval(
    new_value: str = typer.Option(
        None, "--set", help=f"New interval ({', '.join(REFRESH_INTERVALS)} or ms)"
    ),
    db_path: Path = typer.Option(None, "--db", help="Path to preferences database"),
    show_choices: bool = typer.Option(False, "--choices", help="List interval choices"),
) -> None:
    """Show or change the refresh interval."""
    console = Console()
    settings = load_settings()

    if show_choices:
        table = Table(title="Refresh Intervals")
        table.add_column("Label", style="cyan")
        table.add_column("Milliseconds", justify="right")
        for label, value in REFRESH_INTERVALS.items():
            table.add_row(label, str(value))
        console.print(table)
        return

    try:
        with SqlitePreferenceStore(db_path or settings.preferences_path) as prefs:
            clock = RefreshClock.from_settings(settings, preferences=prefs)
            if new_value is not None:
                clock.set_interval(_parse_choice(new_value))
    except (InvalidIntervalError, PreferenceStoreError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"Refresh interval: {_label(clock.interval_ms)} ({clock.state.value})")

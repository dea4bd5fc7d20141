"""Watch list commands."""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Annotated

import typer

from eventbell.cli.console import console, dim, error, success, warning


def _format_countdown(fire_at: datetime | None, now: datetime) -> str:
    """Format a countdown string for the reminder time."""
    if fire_at is None:
        return "[dim]never[/dim]"

    if fire_at <= now:
        return "[dim]passed[/dim]"

    total_minutes = int((fire_at - now).total_seconds()) // 60
    if total_minutes < 60:
        return f"in {total_minutes}m"

    hours = total_minutes // 60
    minutes = total_minutes % 60
    if hours < 24:
        if minutes:
            return f"in {hours}h {minutes}m"
        return f"in {hours}h"

    days = hours // 24
    hours = hours % 24
    if hours:
        return f"in {days}d {hours}h"
    return f"in {days}d"


def register(app: typer.Typer) -> None:
    """Register the watch, unwatch and list commands."""

    @app.command()
    def watch(
        name: Annotated[str, typer.Argument(help="Event name, e.g. 'CPI Release'")],
        event_date: Annotated[
            datetime,
            typer.Option("--date", "-d", formats=["%Y-%m-%d"], help="Event date"),
        ],
        time_text: Annotated[
            str,
            typer.Option("--time", "-t", help="Event time as published, e.g. '8:30 AM'"),
        ],
        impact: Annotated[
            str,
            typer.Option("--impact", help="Impact: High, Medium, Low"),
        ] = "High",
        lead: Annotated[
            int,
            typer.Option("--lead", "-l", help="Minutes before the event to remind"),
        ] = 15,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Watch a calendar event and get reminded before it starts.

        Examples:
            eventbell watch "CPI Release" --date 2024-03-12 --time "8:30 AM" --lead 15
        """
        from eventbell.cli.runtime import load_cli_config, open_registry
        from eventbell.scheduling import (
            CalendarEvent,
            Impact,
            InvalidLeadTimeError,
            resolve_event_time,
        )

        try:
            impact_value = Impact(impact.capitalize())
        except ValueError:
            error(f"Unknown impact: {impact} (choose High, Medium or Low)")
            raise typer.Exit(1) from None

        config = load_cli_config(config_path)
        registry = open_registry(config)
        event = CalendarEvent(
            name=name,
            time_text=time_text,
            date=event_date.date(),
            impact=impact_value,
        )

        try:
            watched = registry.watch(event, lead)
        except InvalidLeadTimeError as e:
            error(str(e))
            raise typer.Exit(1) from e

        success(f"Watching {watched.name} ({lead} minute(s) before)")
        console.print(dim(f"Fingerprint: {watched.fingerprint}"))
        if resolve_event_time(time_text, event.date, config.tzinfo) is None:
            warning(f"'{time_text}' has no clock time; no reminder will fire")

    @app.command()
    def unwatch(
        fingerprint: Annotated[
            str, typer.Argument(help="Event fingerprint (date|name|time)")
        ],
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Stop watching an event at every lead time."""
        from eventbell.cli.runtime import load_cli_config, open_registry

        registry = open_registry(load_cli_config(config_path))
        removed = registry.unwatch(fingerprint)
        if not removed:
            error(f"Not watching {fingerprint}")
            raise typer.Exit(1)
        success(f"Unwatched {fingerprint} ({removed} reminder(s) removed)")

    @app.command("list")
    def list_watches(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """List watched events and when their reminders fire."""
        from rich.table import Table

        from eventbell.cli.runtime import load_cli_config, open_registry
        from eventbell.scheduling import resolve_event_time

        config = load_cli_config(config_path)
        registry = open_registry(config)
        watches = sorted(registry.snapshot, key=lambda w: (w.date, w.name, w.lead_minutes))

        if not watches:
            warning("No watched events")
            return

        now = datetime.now(config.tzinfo)
        table = Table(show_header=True)
        table.add_column("Date")
        table.add_column("Time")
        table.add_column("Event")
        table.add_column("Impact")
        table.add_column("Lead")
        table.add_column("Reminder")
        table.add_column("Fingerprint", style="dim")

        for w in watches:
            instant = resolve_event_time(w.time_text, w.date, config.tzinfo)
            fire_at = instant - timedelta(minutes=w.lead_minutes) if instant else None
            table.add_row(
                w.date.isoformat(),
                w.time_text,
                w.name,
                w.impact.value,
                f"{w.lead_minutes}m",
                _format_countdown(fire_at, now),
                w.fingerprint,
            )

        console.print(table)
        console.print(f"\n{dim(f'Total: {len(watches)} watch(es)')}")

    @app.command()
    def resolve(
        time_text: Annotated[str, typer.Argument(help="Time text, e.g. '8:30 AM'")],
        event_date: Annotated[
            datetime | None,
            typer.Option("--date", "-d", formats=["%Y-%m-%d"], help="Event date"),
        ] = None,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Show how a calendar time string is scheduled."""
        from eventbell.cli.runtime import load_cli_config
        from eventbell.scheduling import resolve_event_time

        config = load_cli_config(config_path)
        on = event_date.date() if event_date else date.today()
        instant = resolve_event_time(time_text, on, config.tzinfo)
        if instant is None:
            warning(f"'{time_text}' is unschedulable")
            return
        console.print(instant.isoformat())

"""Notification history command."""

from pathlib import Path
from typing import Annotated

import typer

from eventbell.cli.console import console, warning


def register(app: typer.Typer) -> None:
    """Register the notifications command."""

    @app.command()
    def notifications(
        limit: Annotated[
            int,
            typer.Option("--limit", "-n", help="Number of records to show"),
        ] = 20,
        all_owners: Annotated[
            bool,
            typer.Option("--all", help="Show records for every owner"),
        ] = False,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Show recently delivered reminders."""
        from rich.table import Table

        from eventbell.cli.runtime import load_cli_config
        from eventbell.delivery import NotificationLog

        config = load_cli_config(config_path)
        owner = None if all_owners else config.owner_id
        records = NotificationLog().recent(owner, limit=limit)

        if not records:
            warning("No notifications")
            return

        table = Table(show_header=True)
        table.add_column("When")
        table.add_column("Owner")
        table.add_column("Message")
        for record in records:
            table.add_row(
                record.created_at.astimezone(config.tzinfo).strftime("%Y-%m-%d %H:%M"),
                record.owner_id,
                record.message,
            )
        console.print(table)

"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from eventbell.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate, paths"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $EVENTBELL_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from rich.table import Table

        from eventbell.cli.runtime import load_cli_config
        from eventbell.config.paths import get_all_paths, get_config_path

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)
            console.print(f"Config file: {expanded_path}\n")
            console.print(expanded_path.read_text(), markup=False, highlight=False)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            config_obj = load_cli_config(expanded_path)

            table = Table(title="Configuration Summary")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            table.add_row("Owner", config_obj.owner_id)
            table.add_row("Timezone", config_obj.timezone)
            table.add_row("Tick interval", f"{config_obj.scheduler.tick_interval:g}s")
            table.add_row(
                "Lead times",
                ", ".join(f"{m}m" for m in config_obj.scheduler.lead_minutes),
            )
            table.add_row("Trigger window", config_obj.scheduler.trigger_window)
            quiet = config_obj.quiet_hours
            table.add_row(
                "Quiet hours",
                f"{quiet.start}-{quiet.end}" if quiet.enabled else "off",
            )
            ttl = config_obj.leader.lock_ttl_seconds
            table.add_row("Lock TTL", f"{ttl:g}s" if ttl is not None else "none")
            console.print(table)
            success("Configuration is valid")

        elif action == "paths":
            for name, value in get_all_paths().items():
                console.print(f"{name:<14} {value}", markup=False, highlight=False)

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate, paths")
            raise typer.Exit(1)

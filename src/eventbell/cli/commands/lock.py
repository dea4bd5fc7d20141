"""Leader lock inspection commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from eventbell.cli.console import console, error, success, warning


def register(app: typer.Typer) -> None:
    """Register the lock command."""

    @app.command()
    def lock(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: status, clear"),
        ] = None,
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Clear without confirmation"),
        ] = False,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Inspect or clear the scheduler leader lock.

        A scheduler that crashed without releasing the lock keeps other
        instances from leading until the lock expires or is cleared.

        Examples:
            eventbell lock status
            eventbell lock clear --force
        """
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from eventbell.cli.runtime import load_cli_config
        from eventbell.scheduling import LeaderLock

        config = load_cli_config(config_path)
        leader = LeaderLock(
            ttl_seconds=config.leader.lock_ttl_seconds,
            acquire_timeout=config.leader.acquire_timeout,
        )

        if action == "status":
            marker = leader.read()
            if marker is None:
                console.print("Lock is free")
                return
            state = "[yellow]stale[/yellow]" if leader.is_stale(marker) else "[green]held[/green]"
            console.print(f"Lock is {state}")
            console.print(f"  owner:     {marker.owner}")
            console.print(f"  pid:       {marker.pid}")
            console.print(f"  host:      {marker.host}")
            console.print(f"  acquired:  {marker.acquired_at.isoformat()}")
            console.print(f"  heartbeat: {marker.heartbeat_at.isoformat()}")

        elif action == "clear":
            if leader.read() is None:
                warning("Lock is already free")
                return
            if not force and not typer.confirm("Clear the scheduler lock?"):
                console.print("Cancelled")
                return
            leader.force_clear()
            success("Lock cleared")

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: status, clear")
            raise typer.Exit(1)

"""Scheduler daemon command."""

from pathlib import Path
from typing import Annotated

import typer

from eventbell.cli.console import console, info, success, warning


def register(app: typer.Typer) -> None:
    """Register the run command."""

    @app.command()
    def run(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        once: Annotated[
            bool,
            typer.Option("--once", help="Evaluate a single pass and exit"),
        ] = False,
        log_file: Annotated[
            bool,
            typer.Option("--log-file/--no-log-file", help="Also write JSONL logs"),
        ] = True,
    ) -> None:
        """Run the reminder scheduler.

        Only one scheduler per machine leads at a time; others exit
        immediately as followers.
        """
        import asyncio

        from eventbell.cli.runtime import load_cli_config
        from eventbell.logging import configure_logging
        from eventbell.runner import SchedulerRunner

        config = load_cli_config(config_path)
        runner = SchedulerRunner(config)

        if once:
            configure_logging(log_to_file=log_file)
            results = asyncio.run(runner.run_once())
            if results is None:
                warning("Another scheduler is running; nothing evaluated")
                return
            delivered = sum(1 for r in results if r.delivered)
            for result in results:
                status = "[green]sent[/green]" if result.delivered else "[red]failed[/red]"
                console.print(f"{status} {result.message}")
            success(f"{delivered} reminder(s) delivered")
            return

        configure_logging(use_rich=True, log_to_file=log_file)
        info(
            f"Scheduler for {config.owner_id} "
            f"(tick {config.scheduler.tick_interval:g}s, tz {config.timezone})"
        )
        try:
            led = asyncio.run(runner.run())
        except KeyboardInterrupt:
            led = True
        if not led:
            warning("Another scheduler is already running; exiting as follower")

"""Shared bootstrap helpers for CLI entrypoints."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from eventbell.cli.console import error
from eventbell.config import ConfigError, EventbellConfig, load_config
from eventbell.scheduling import WatchRegistry, WatchStore


def load_cli_config(path: Path | None = None) -> EventbellConfig:
    """Load configuration, reporting problems as a CLI error exit."""
    try:
        return load_config(path)
    except FileNotFoundError as e:
        error(str(e))
        raise typer.Exit(1) from e
    except (ConfigError, ValidationError) as e:
        error(f"Configuration error: {e}")
        raise typer.Exit(1) from e


def open_registry(config: EventbellConfig) -> WatchRegistry:
    """Open the configured owner's watch registry, loaded."""
    registry = WatchRegistry(
        WatchStore(),
        owner_id=config.owner_id,
        allowed_lead_minutes=config.scheduler.lead_minutes,
    )
    registry.load()
    return registry

"""Command line interface."""

from eventbell.cli.app import app

__all__ = ["app"]

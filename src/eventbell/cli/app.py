"""Main CLI application."""

import typer

from eventbell.cli.commands import config, lock, notifications, run, watch

app = typer.Typer(
    name="eventbell",
    help="eventbell - reminders before the calendar events you watch",
    no_args_is_help=True,
)

run.register(app)
watch.register(app)
lock.register(app)
notifications.register(app)
config.register(app)


if __name__ == "__main__":
    app()

#!/usr/bin/env python3
"""
persona CLI - Personality Evolution Engine

Main entrypoint for the persona command-line tool.
"""

import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from persona.logging_config import setup_logging
from persona.metrics import metrics_settings_from_env, start_metrics_server
from persona_cli.commands import interact, log, replay

app = typer.Typer(
    name="persona",
    help="Personality Evolution Engine CLI",
    add_completion=False,
)

console = Console()

app.add_typer(log.app, name="log", help="Journal operations")

app.command("interact")(interact.interact_command)
app.command("batch")(interact.batch_command)
app.command("show")(interact.show_command)
app.command("replay")(replay.replay_command)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default: PERSONA_LOG_LEVEL or WARNING)"
    ),
):
    """Configure logging and metrics before running a command."""
    setup_logging(level=log_level or os.getenv("PERSONA_LOG_LEVEL", "WARNING"))
    start_metrics_server(*metrics_settings_from_env())


@app.command()
def version():
    """Show version information."""
    from persona import __version__ as engine_version
    from persona_cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]persona CLI[/bold]", f"v{__version__}")
    table.add_row("Engine", f"v{engine_version}")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()

"""
Replay command: rebuild personalities from the journal and hash the result
"""

import json
import os
from typing import Dict, Optional

import typer
from rich.syntax import Syntax
from rich.table import Table

from persona.log import FileEventStore
from persona.replay import compute_state_hash, replay as replay_events

from ._common import EXIT_ERROR, JsonOption, LogOption, console, fail, print_json


def replay_command(
    log_path: str = LogOption,
    until: Optional[int] = typer.Option(None, "--until", "-u", help="Replay until sequence number"),
    show_state: bool = typer.Option(False, "--show-state", "-s", help="Show final personalities"),
    json_output: bool = JsonOption,
):
    """
    Replay the journal and print the resulting state hash.

    Examples:
        persona replay
        persona replay --until 10 --show-state
        persona replay --json
    """
    if not os.path.exists(log_path):
        fail(json_output, EXIT_ERROR, "Log file not found", path=log_path)

    try:
        store = FileEventStore(log_path)
        result = replay_events(store, to_seq=until)
        state_hash = compute_state_hash(result.state)

        event_types: Dict[str, int] = {}
        for event in store.read(from_seq=0):
            if until is not None and event.require_seq() > until:
                break
            event_types[event.type] = event_types.get(event.type, 0) + 1
    except Exception as e:
        fail(json_output, EXIT_ERROR, str(e))

    if json_output:
        output = {
            "success": True,
            "events_replayed": result.applied,
            "state_version": result.state.version,
            "state_hash": state_hash,
            "event_counts": event_types,
        }
        if show_state:
            output["personalities"] = result.state.aggregates
        print_json(output)
        return

    console.print(f"[green]✓ Replayed {result.applied} events[/green]")
    console.print(f"  State version: [cyan]{result.state.version}[/cyan]")
    console.print(f"  State hash: [yellow]{state_hash}[/yellow]")

    table = Table(title="Event Counts")
    table.add_column("Event Type", style="green")
    table.add_column("Count", style="cyan", justify="right")
    for event_type in sorted(event_types):
        table.add_row(event_type, str(event_types[event_type]))
    console.print(table)

    if show_state:
        console.print("\n[bold]Personalities:[/bold]")
        console.print(Syntax(json.dumps(result.state.aggregates, indent=2, sort_keys=True), "json", theme="monokai"))

"""
Journal commands: tail, inspect, verify
"""

import json
import os
from typing import Any, Dict, List, Optional

import typer
from rich.syntax import Syntax
from rich.table import Table

from persona.log import FileEventStore, verify_chain

from ._common import EXIT_ERROR, EXIT_REJECTED, JsonOption, LogOption, console, fail, print_json

app = typer.Typer()


def _load_records(log_path: str) -> List[Dict[str, Any]]:
    if not os.path.exists(log_path):
        raise FileNotFoundError(log_path)
    return list(FileEventStore(log_path).records())


@app.command()
def tail(
    log_path: str = LogOption,
    lines: Optional[int] = typer.Option(None, "--lines", "-n", help="Number of records to show"),
    json_output: bool = JsonOption,
):
    """
    Show the last records of the journal.

    Examples:
        persona log tail
        persona log tail --lines 10 --json
    """
    try:
        records = _load_records(log_path)
    except FileNotFoundError:
        fail(json_output, EXIT_ERROR, "Log file not found", path=log_path)
    except Exception as e:
        fail(json_output, EXIT_ERROR, str(e))

    if lines:
        records = records[-lines:]

    if json_output:
        print_json({"events": records, "count": len(records)})
        return

    if not records:
        console.print("[yellow]Journal is empty[/yellow]")
        return

    table = Table(title=f"Journal: {log_path}")
    table.add_column("Seq", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Entity", style="yellow")
    table.add_column("Ts")
    table.add_column("Hash (prefix)", style="dim")

    for rec in records:
        ev = rec["event"]
        table.add_row(
            str(ev.get("seq", "N/A")),
            ev.get("type", "N/A"),
            ev.get("aggregate_id", "N/A"),
            str(ev.get("ts", "N/A")),
            rec.get("event_hash", "")[:16] or "N/A",
        )

    console.print(table)
    console.print(f"\n[bold]Total events:[/bold] {len(records)}")


@app.command()
def inspect(
    log_path: str = LogOption,
    from_seq: Optional[int] = typer.Option(None, "--from", help="Start from sequence number"),
    to_seq: Optional[int] = typer.Option(None, "--to", help="End at sequence number"),
    event_type: Optional[str] = typer.Option(None, "--event-type", "-t", help="Filter by event type"),
    entity_id: Optional[int] = typer.Option(None, "--entity", "-e", help="Filter by entity id"),
    show_payload: bool = typer.Option(False, "--payload", "-p", help="Show full payload"),
    json_output: bool = JsonOption,
):
    """
    Inspect journal records with filters.

    Examples:
        persona log inspect --from 0 --to 10
        persona log inspect --event-type TraitIncreased --entity 7
        persona log inspect --payload --json
    """
    try:
        records = _load_records(log_path)
    except FileNotFoundError:
        fail(json_output, EXIT_ERROR, "Log file not found", path=log_path)
    except Exception as e:
        fail(json_output, EXIT_ERROR, str(e))

    if from_seq is not None:
        records = [r for r in records if r["event"].get("seq", 0) >= from_seq]
    if to_seq is not None:
        records = [r for r in records if r["event"].get("seq", 0) <= to_seq]
    if event_type:
        records = [r for r in records if r["event"].get("type") == event_type]
    if entity_id is not None:
        records = [r for r in records if r["event"].get("aggregate_id") == str(entity_id)]

    if json_output:
        if not show_payload:
            for rec in records:
                rec["event"]["payload"] = "<hidden>"
        print_json({"events": records, "count": len(records)})
        return

    if not records:
        console.print("[yellow]No events match the filters[/yellow]")
        return

    for rec in records:
        ev = rec["event"]
        console.print(f"\n[bold cyan]Event {ev.get('seq', 'N/A')}[/bold cyan]")
        console.print(f"  Type: [green]{ev.get('type', 'N/A')}[/green]")
        console.print(f"  Entity: [yellow]{ev.get('aggregate_id', 'N/A')}[/yellow]")
        console.print(f"  Timestamp: {ev.get('ts', 'N/A')}")
        console.print(f"  Hash: {rec.get('event_hash', 'N/A')}")
        console.print(f"  Prev Hash: {rec.get('prev_hash', 'N/A')}")

        if show_payload:
            console.print("  Payload:")
            console.print(Syntax(json.dumps(ev.get("payload", {}), indent=2), "json", theme="monokai"))

    console.print(f"\n[bold]Total events:[/bold] {len(records)}")


@app.command()
def verify(
    log_path: str = LogOption,
    json_output: bool = JsonOption,
):
    """
    Verify the journal hash chain.

    Exits 1 when the chain is broken.
    """
    try:
        records = _load_records(log_path)
    except FileNotFoundError:
        fail(json_output, EXIT_ERROR, "Log file not found", path=log_path)
    except Exception as e:
        fail(json_output, EXIT_ERROR, str(e))

    report = verify_chain(records)

    if json_output:
        print_json({"valid": report.valid, "checked": report.checked, "errors": report.errors})
    elif report.valid:
        console.print(f"[green]✓ Hash chain valid[/green] ({report.checked} records)")
    else:
        console.print(f"[red]✗ Hash chain broken[/red] ({report.checked} records checked)")
        for err in report.errors:
            console.print(f"  - {err}")

    if not report.valid:
        raise typer.Exit(EXIT_REJECTED)

"""
Interaction commands: interact, batch, show
"""

import os
from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from persona.config import EngineConfig
from persona.core.errors import NotFound, PersonaError, RateLimited
from persona.log import FileEventStore
from persona.replay import restore_store

from ._common import (
    EXIT_ERROR,
    EXIT_REJECTED,
    JsonOption,
    LogOption,
    RegistryOption,
    build_engine,
    console,
    fail,
    personality_table,
    print_json,
)


def _error_details(ex: PersonaError) -> Dict[str, Any]:
    details: Dict[str, Any] = {"error_type": type(ex).__name__}
    if isinstance(ex, RateLimited):
        details["next_valid_at"] = ex.next_valid_at
    return details


def _split(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def interact_command(
    entity_id: int = typer.Argument(..., help="Entity id"),
    kind: str = typer.Argument(..., help="Interaction kind (gentle, playful, long_press)"),
    caller: str = typer.Option(..., "--caller", "-c", help="Caller address"),
    now: Optional[int] = typer.Option(None, "--now", help="Timestamp (default: current time)"),
    log_path: str = LogOption,
    registry_path: str = RegistryOption,
    json_output: bool = JsonOption,
):
    """
    Apply one interaction to an entity.

    Examples:
        persona interact 7 gentle --caller 0xA
        persona interact 7 playful --caller 0xA --now 1700003600 --json
    """
    try:
        engine = build_engine(log_path, registry_path)
        result = engine.interact(entity_id, kind, caller, now)
    except PersonaError as ex:
        fail(json_output, EXIT_REJECTED, str(ex), **_error_details(ex))
    except FileNotFoundError as ex:
        fail(json_output, EXIT_ERROR, "File not found", path=ex.filename)
    except Exception as ex:
        fail(json_output, EXIT_ERROR, str(ex))

    if json_output:
        print_json({
            "personality": result.personality.to_dict(),
            "events": [{"seq": e.seq, "type": e.type, "payload": e.payload} for e in result.events],
        })
        return

    console.print(f"[green]✓ Interaction accepted[/green] ({len(result.events)} events)")
    console.print(personality_table(result.personality))


def batch_command(
    ids: str = typer.Option(..., "--ids", help="Comma-separated entity ids"),
    kinds: str = typer.Option(..., "--kinds", help="Comma-separated interaction kinds"),
    caller: str = typer.Option(..., "--caller", "-c", help="Caller address"),
    now: Optional[int] = typer.Option(None, "--now", help="Timestamp (default: current time)"),
    atomic: Optional[bool] = typer.Option(
        None, "--atomic/--per-item", help="All-or-nothing batch (default: PERSONA_BATCH_ATOMIC)"
    ),
    log_path: str = LogOption,
    registry_path: str = RegistryOption,
    json_output: bool = JsonOption,
):
    """
    Apply interactions pairwise (ids[i] with kinds[i]).

    Examples:
        persona batch --ids 1,2 --kinds gentle,playful --caller 0xA
        persona batch --ids 1,2 --kinds gentle,gentle --caller 0xA --atomic
    """
    try:
        entity_ids = [int(x) for x in _split(ids)]
    except ValueError:
        fail(json_output, EXIT_ERROR, f"entity ids must be integers: {ids}")

    try:
        engine = build_engine(log_path, registry_path)
        result = engine.batch_interact(entity_ids, _split(kinds), caller, now, atomic=atomic)
    except PersonaError as ex:
        fail(json_output, EXIT_REJECTED, str(ex), **_error_details(ex))
    except FileNotFoundError as ex:
        fail(json_output, EXIT_ERROR, "File not found", path=ex.filename)
    except Exception as ex:
        fail(json_output, EXIT_ERROR, str(ex))

    if json_output:
        items = []
        for item in result.items:
            entry: Dict[str, Any] = {"entity_id": item.entity_id, "kind": item.kind, "ok": item.ok}
            if item.ok:
                entry["personality"] = item.personality.to_dict()
            else:
                entry["error"] = str(item.error)
                entry.update(_error_details(item.error))
            items.append(entry)
        print_json({"atomic": result.atomic, "items": items})
    else:
        table = Table(title="Batch" + (" (atomic)" if result.atomic else ""))
        table.add_column("Entity", style="yellow")
        table.add_column("Kind", style="green")
        table.add_column("Result")
        for item in result.items:
            outcome = "[green]accepted[/green]" if item.ok else f"[red]{item.error}[/red]"
            table.add_row(str(item.entity_id), str(item.kind), outcome)
        console.print(table)

    if result.failed:
        raise typer.Exit(EXIT_REJECTED)


def show_command(
    entity_id: int = typer.Argument(..., help="Entity id"),
    log_path: str = LogOption,
    json_output: bool = JsonOption,
):
    """
    Show the current personality of an entity, rebuilt from the journal.

    Examples:
        persona show 7
        persona show 7 --json
    """
    if not os.path.exists(log_path):
        fail(json_output, EXIT_ERROR, "Log file not found", path=log_path)

    try:
        config = EngineConfig.from_env()
        personality = restore_store(
            FileEventStore(log_path),
            baseline_trait=config.baseline_trait,
            trait_cap=config.trait_cap,
        ).get(entity_id)
    except NotFound as ex:
        fail(json_output, EXIT_REJECTED, str(ex), error_type="NotFound")
    except Exception as ex:
        fail(json_output, EXIT_ERROR, str(ex))

    if json_output:
        print_json(personality.to_dict())
    else:
        console.print(personality_table(personality))

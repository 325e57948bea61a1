"""
Shared helpers for CLI commands.
"""

import json
from typing import Any, Dict, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from persona.config import EngineConfig
from persona.core.canonical import canonicalize
from persona.core.state import Personality
from persona.guard import FileRegistry
from persona.log import FileEventStore
from persona.processor import PersonalityEngine

DEFAULT_LOG = "/tmp/persona/journal.log"
DEFAULT_REGISTRY = "registry.json"

EXIT_REJECTED = 1
EXIT_ERROR = 2

console = Console()

LogOption = typer.Option(
    DEFAULT_LOG, "--log", "-l", envvar="PERSONA_JOURNAL", help="Path to journal file"
)
RegistryOption = typer.Option(
    DEFAULT_REGISTRY, "--registry", "-r", envvar="PERSONA_REGISTRY",
    help="Path to ownership registry JSON ({\"<id>\": \"<owner>\"})",
)
JsonOption = typer.Option(False, "--json", help="Output as JSON")


def build_engine(log_path: str, registry_path: str) -> PersonalityEngine:
    return PersonalityEngine.from_journal(
        FileRegistry(registry_path),
        FileEventStore(log_path),
        config=EngineConfig.from_env(),
    )


def print_json(data: Any) -> None:
    print(json.dumps(canonicalize(data), indent=2))


def fail(json_output: bool, code: int, message: str, **details: Any) -> NoReturn:
    if json_output:
        out: Dict[str, Any] = {"error": message}
        out.update(details)
        print_json(out)
    else:
        style = "yellow" if code == EXIT_REJECTED else "red"
        console.print(f"[{style}]Error:[/{style}] {message}")
    raise typer.Exit(code)


def personality_table(p: Personality, title: str = "") -> Table:
    table = Table(title=title or f"Entity {p.entity_id}")
    table.add_column("Field", style="green")
    table.add_column("Value", style="cyan", justify="right")
    for name, value in p.to_dict().items():
        if name == "entity_id":
            continue
        table.add_row(name, str(value))
    return table

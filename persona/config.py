"""
Engine configuration.

Environment Variables:
    PERSONA_COOLDOWN_SECONDS: Minimum spacing between accepted interactions - default: 3600
    PERSONA_TRAIT_CAP: Saturation ceiling for every trait - default: 100
    PERSONA_BASELINE_TRAIT: Initial value of every trait - default: 10
    PERSONA_BATCH_ATOMIC: all-or-nothing batches (true/false) - default: false
    PERSONA_KIND_TABLE: Path to JSON {"kind": {"trait": delta}} merged over the defaults
"""

import json
import logging
import os
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .core.errors import InvalidInteraction
from .core.kinds import KindTable

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 3600
DEFAULT_TRAIT_CAP = 100
DEFAULT_BASELINE_TRAIT = 10


class EngineConfig(BaseModel):
    cooldown_window: int = Field(default=DEFAULT_COOLDOWN_SECONDS, ge=0)
    trait_cap: int = Field(default=DEFAULT_TRAIT_CAP, ge=1)
    baseline_trait: int = Field(default=DEFAULT_BASELINE_TRAIT, ge=0)
    batch_atomic: bool = False
    kind_overrides: Dict[str, Dict[str, int]] = Field(default_factory=dict)

    @field_validator("kind_overrides")
    @classmethod
    def _check_overrides(cls, v: Dict[str, Dict[str, int]]) -> Dict[str, Dict[str, int]]:
        try:
            KindTable.default().merged(v)
        except InvalidInteraction as ex:
            raise ValueError(ex.reason) from ex
        return v

    @model_validator(mode="after")
    def _check_baseline(self) -> "EngineConfig":
        if self.baseline_trait > self.trait_cap:
            raise ValueError(
                f"baseline_trait ({self.baseline_trait}) exceeds trait_cap ({self.trait_cap})"
            )
        return self

    def kind_table(self) -> KindTable:
        return KindTable.default().merged(self.kind_overrides)

    @staticmethod
    def from_env() -> "EngineConfig":
        values: Dict[str, object] = {}
        for key, field in (
            ("PERSONA_COOLDOWN_SECONDS", "cooldown_window"),
            ("PERSONA_TRAIT_CAP", "trait_cap"),
            ("PERSONA_BASELINE_TRAIT", "baseline_trait"),
        ):
            parsed = _env_int(key)
            if parsed is not None:
                values[field] = parsed

        atomic = os.getenv("PERSONA_BATCH_ATOMIC")
        if atomic:
            values["batch_atomic"] = atomic.strip().lower() in ("1", "true", "yes", "on")

        table_path = os.getenv("PERSONA_KIND_TABLE")
        if table_path:
            with open(table_path, "r", encoding="utf-8") as f:
                values["kind_overrides"] = json.load(f)

        return EngineConfig(**values)


def _env_int(key: str) -> Optional[int]:
    val = os.getenv(key)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using default", key, val)
        return None

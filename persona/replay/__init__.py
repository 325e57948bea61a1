"""
Replay system for deterministic personality reconstruction.

Same journal -> same personalities -> same state hash.
"""

from .runner import ReplayResult, build_reducer, compute_state_hash, replay, restore_store

__all__ = [
    "ReplayResult",
    "build_reducer",
    "compute_state_hash",
    "replay",
    "restore_store",
]

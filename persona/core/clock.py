"""
Time sources for the engine.

Timestamps are integer seconds. Callers may always pass ``now`` explicitly;
the clock is only consulted when they don't.
"""

import time
from dataclasses import dataclass


class SystemClock:
    """Wall clock, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


@dataclass(frozen=True)
class DeterministicClock:
    """Fixed time source for tests and replays."""
    current: int = 0

    def now(self) -> int:
        """Get current timestamp."""
        return self.current

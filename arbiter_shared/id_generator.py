"""ID Generator Implementation.

Provides ID generation implementing IdGeneratorProtocol. The arbiter stamps
every submission with a fresh id so that resubmitting the same task object
is distinguishable in logs and event history.

Usage:
    from arbiter_shared.id_generator import UUIDGenerator

    generator = UUIDGenerator()
    generator.generate_prefixed("sub")  # "sub_550e8400-..."

For tests and log analysis, SequentialIdGenerator produces readable ids.
"""

from __future__ import annotations

from itertools import count
from uuid import uuid4


class UUIDGenerator:
    """UUID-based ID generator implementing IdGeneratorProtocol."""

    def generate(self) -> str:
        return str(uuid4())

    def generate_prefixed(self, prefix: str) -> str:
        """Generate a prefixed ID (e.g., "sub_550e8400-...")."""
        return f"{prefix}_{uuid4()}"


class SequentialIdGenerator:
    """Deterministic ids ("000001", "sub_000002", ...) for tests and replays.

    Ids repeat across instances, so never mix two generators in one arbiter.
    """

    def __init__(self, start: int = 1, width: int = 6):
        self._start = start
        self._width = width
        self._numbers = count(start)

    def generate(self) -> str:
        return str(next(self._numbers)).zfill(self._width)

    def generate_prefixed(self, prefix: str) -> str:
        return f"{prefix}_{self.generate()}"

    def reset(self) -> None:
        """Restart the sequence from the starting value."""
        self._numbers = count(self._start)

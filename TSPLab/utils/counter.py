from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class OperationCounter:
    """Tally of logical reads and writes made by one solve call.

    Each solve call owns its own counter and hands it down by reference; it is
    reported in the result and never drives control flow.
    """

    reads: int = 0
    writes: int = 0

    def read(self, count: int = 1) -> None:
        self.reads += count

    def write(self, count: int = 1) -> None:
        self.writes += count

    def reset(self) -> None:
        self.reads = 0
        self.writes = 0

    def snapshot(self) -> Tuple[int, int]:
        return self.reads, self.writes


__all__ = ["OperationCounter"]

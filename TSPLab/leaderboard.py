from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from TSPLab.models import Node, Performance, Result

SORT_KEYS = ("distance", "runtime", "reads", "writes")


@dataclass(frozen=True)
class LeaderboardEntry:
    id: int
    algorithm_name: str
    performance: Performance
    path: Tuple[Node, ...]
    created_at: datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "algorithm": self.algorithm_name,
            **self.performance.to_dict(),
            "path": [node.id for node in self.path],
            "created_at": self.created_at.isoformat(),
        }


class Leaderboard:
    """Successful runs, kept for comparison until cleared."""

    def __init__(self) -> None:
        self._entries: List[LeaderboardEntry] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def record(self, algorithm_name: str, result: Result) -> LeaderboardEntry:
        with self._lock:
            entry = LeaderboardEntry(
                id=next(self._ids),
                algorithm_name=algorithm_name,
                performance=result.performance,
                path=tuple(result.path),
                created_at=datetime.now(timezone.utc),
            )
            self._entries.append(entry)
            return entry

    def entries(self, sort_by: Optional[str] = None) -> List[LeaderboardEntry]:
        """Entries in insertion order, or ascending by a performance metric."""
        with self._lock:
            entries = list(self._entries)
        if sort_by is None:
            return entries
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Cannot sort by {sort_by!r}; expected one of {', '.join(SORT_KEYS)}")
        return sorted(entries, key=lambda entry: (getattr(entry.performance, sort_by), entry.id))

    def best(self) -> Optional[LeaderboardEntry]:
        ranked = self.entries(sort_by="distance")
        return ranked[0] if ranked else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def to_records(self) -> List[Dict[str, Any]]:
        return [entry.to_record() for entry in self.entries()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[LeaderboardEntry]:
        return iter(self.entries())


__all__ = ["Leaderboard", "LeaderboardEntry", "SORT_KEYS"]

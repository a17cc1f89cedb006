from __future__ import annotations

from enum import Enum


class AlgorithmFamily(str, Enum):
    EXACT = "exact"
    HEURISTIC = "heuristic"
    LOCAL_SEARCH = "local_search"
    METAHEURISTIC = "metaheuristic"


__all__ = ["AlgorithmFamily"]

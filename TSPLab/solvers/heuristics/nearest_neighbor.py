from __future__ import annotations

from typing import Any, List, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import BaseSolver, nearest_neighbor_tour, tour_distance
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily


class NearestNeighborSolver(BaseSolver):
    name = "nearest_neighbor"
    label = "Nearest Neighbour"
    family = AlgorithmFamily.HEURISTIC

    def search(
        self,
        nodes: List[Node],
        params: Any,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        tour = nearest_neighbor_tour(nodes, counter)
        return tour, tour_distance(tour, counter)


__all__ = ["NearestNeighborSolver"]

from __future__ import annotations

import itertools
import logging
import math
from typing import Any, List, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import BaseSolver, tour_distance
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

logger = logging.getLogger(__name__)

PRACTICAL_NODE_LIMIT = 10


class NaiveSolver(BaseSolver):
    """Exhaustive search over every ordering of the nodes.

    All n! orderings are scanned, without fixing a start node, and the first
    ordering reaching the minimum wins. Only usable for a handful of nodes.
    """

    name = "naive"
    label = "Naive"
    family = AlgorithmFamily.EXACT

    def search(
        self,
        nodes: List[Node],
        params: Any,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        n = len(nodes)
        if n > PRACTICAL_NODE_LIMIT:
            logger.warning("Naive search over %d nodes scans %d orderings", n, math.factorial(n))

        best_cost = math.inf
        best_path: List[Node] = list(nodes)
        for perm in itertools.permutations(nodes):
            counter.read(n)
            cost = tour_distance(perm, counter)
            if cost < best_cost:
                best_cost = cost
                best_path = list(perm)
                counter.write(n)
        return best_path, best_cost


__all__ = ["NaiveSolver"]

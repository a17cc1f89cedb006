from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import (
    EPSILON,
    BaseSolver,
    ConfigOption,
    distance,
    reverse_segment,
    tour_distance,
    two_opt_delta,
)
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily


@dataclass(frozen=True)
class GraspParams:
    alpha: float = 0.3
    iterations: int = 100
    local_search_max_iterations: int = 1000


def randomized_greedy_tour(
    nodes: Sequence[Node],
    alpha: float,
    counter: OperationCounter,
    rng: np.random.Generator,
) -> List[Node]:
    """Build a tour by drawing each next node from the restricted candidate list.

    The list holds every unvisited node within ``alpha * (max - min)`` of the
    closest one: ``alpha = 0`` is plain greedy, ``alpha = 1`` picks uniformly.
    """
    n = len(nodes)
    current = int(rng.integers(n))
    unvisited = [idx for idx in range(n) if idx != current]
    tour = [nodes[current]]
    counter.read()
    counter.write()

    while unvisited:
        dists = [distance(nodes[current], nodes[idx], counter) for idx in unvisited]
        min_dist = min(dists)
        max_dist = max(dists)
        threshold = min_dist + alpha * (max_dist - min_dist)
        rcl = [pos for pos, dist in enumerate(dists) if dist <= threshold]
        chosen = rcl[int(rng.integers(len(rcl)))]
        current = unvisited.pop(chosen)
        tour.append(nodes[current])
        counter.read()
        counter.write()
    return tour


def two_opt_local_search(
    tour: Sequence[Node],
    max_iterations: int,
    counter: OperationCounter,
) -> Tuple[List[Node], float]:
    """First-improvement 2-opt, applying at most ``max_iterations`` moves."""
    n = len(tour)
    current = list(tour)
    current_cost = tour_distance(current, counter)
    if n < 4:
        return current, current_cost

    iterations = 0
    improved = True
    while improved and iterations < max_iterations:
        improved = False
        iterations += 1
        for i in range(1, n - 1):
            for j in range(i + 1, n):
                delta = two_opt_delta(current, i, j, counter)
                if delta < -EPSILON:
                    current = reverse_segment(current, i, j, counter)
                    current_cost += delta
                    improved = True
                    break
            if improved:
                break
    return current, current_cost


class GraspSolver(BaseSolver):
    name = "grasp"
    label = "GRASP"
    family = AlgorithmFamily.METAHEURISTIC
    options = (
        ConfigOption(key="alpha", label="Alpha (RCL threshold)", default=0.3, min=0.0, max=1.0),
        ConfigOption(key="iterations", label="Iterations", default=100, min=10, max=1000, integer=True),
        ConfigOption(
            key="local_search_max_iterations",
            label="Local Search Max Iterations",
            default=1000,
            min=100,
            max=10000,
            integer=True,
        ),
    )
    params_cls = GraspParams

    def search(
        self,
        nodes: List[Node],
        params: GraspParams,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        best_tour: List[Node] = []
        best_cost = math.inf

        for _ in range(params.iterations):
            constructed = randomized_greedy_tour(nodes, params.alpha, counter, rng)
            tour, cost = two_opt_local_search(constructed, params.local_search_max_iterations, counter)
            if cost < best_cost:
                best_cost = cost
                best_tour = list(tour)
                counter.read(len(tour))
                counter.write(len(tour))

        return best_tour, tour_distance(best_tour, counter)


__all__ = ["GraspParams", "GraspSolver", "randomized_greedy_tour", "two_opt_local_search"]

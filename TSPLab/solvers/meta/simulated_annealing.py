from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import (
    BaseSolver,
    ConfigOption,
    nearest_neighbor_tour,
    reverse_segment,
    tour_distance,
    two_opt_delta,
)
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily


@dataclass(frozen=True)
class AnnealingParams:
    initial_temperature: float = 10000.0
    cooling_rate: float = 0.995
    min_temperature: float = 0.1
    max_iterations: int = 100000


class SimulatedAnnealingSolver(BaseSolver):
    """Random 2-opt moves accepted by the Metropolis rule under geometric cooling.

    The walk keeps its current (possibly worse) tour separately from the best
    tour seen so far, which is what gets reported.
    """

    name = "simulated_annealing"
    label = "Simulated Annealing"
    family = AlgorithmFamily.METAHEURISTIC
    options = (
        ConfigOption(key="initial_temperature", label="Initial Temperature", default=10000, min=100, max=100000),
        ConfigOption(key="cooling_rate", label="Cooling Rate", default=0.995, min=0.9, max=0.9999),
        ConfigOption(key="min_temperature", label="Min Temperature", default=0.1, min=0.001, max=10),
        ConfigOption(
            key="max_iterations", label="Max Iterations", default=100000, min=1000, max=1000000, integer=True
        ),
    )
    params_cls = AnnealingParams

    def search(
        self,
        nodes: List[Node],
        params: AnnealingParams,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        n = len(nodes)
        current_tour = nearest_neighbor_tour(nodes, counter)
        current_cost = tour_distance(current_tour, counter)

        best_tour = list(current_tour)
        best_cost = current_cost
        counter.read(n)
        counter.write(n)

        temperature = params.initial_temperature
        iteration = 0
        while temperature > params.min_temperature and iteration < params.max_iterations:
            # Position 0 stays fixed; moves reverse tour[i..j] with 1 <= i < j.
            i, j = sorted(int(v) for v in rng.integers(1, n, size=2))
            if i == j or i + 1 == j:
                iteration += 1
                continue

            delta = two_opt_delta(current_tour, i, j, counter)
            if delta < 0 or rng.random() < math.exp(-delta / temperature):
                current_tour = reverse_segment(current_tour, i, j, counter)
                current_cost += delta
                if current_cost < best_cost:
                    best_cost = current_cost
                    best_tour = list(current_tour)
                    counter.read(n)
                    counter.write(n)

            temperature *= params.cooling_rate
            iteration += 1

        return best_tour, tour_distance(best_tour, counter)


__all__ = ["AnnealingParams", "SimulatedAnnealingSolver"]

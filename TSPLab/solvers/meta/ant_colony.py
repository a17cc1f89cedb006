from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import COORDINATE_READS, BaseSolver, ConfigOption
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

# Desirability used when two nodes share coordinates.
COINCIDENT_ETA = 1000.0


@dataclass(frozen=True)
class AntColonyParams:
    ant_count: int = 20
    iterations: int = 100
    alpha: float = 1.0
    beta: float = 2.0
    evaporation_rate: float = 0.5
    q: float = 100.0


def distance_matrix(nodes: Sequence[Node], counter: OperationCounter) -> np.ndarray:
    coords = np.array([(node.x, node.y) for node in nodes], dtype=float)
    n = len(nodes)
    diff = coords[:, None, :] - coords[None, :, :]
    counter.read(COORDINATE_READS * n * (n - 1))
    counter.write(n * n)
    return np.linalg.norm(diff, axis=-1)


def construct_tour(
    pheromone: np.ndarray,
    eta: np.ndarray,
    alpha: float,
    beta: float,
    counter: OperationCounter,
    rng: np.random.Generator,
) -> List[int]:
    """One ant's walk; each step is a roulette draw over pheromone^alpha * eta^beta."""
    n = pheromone.shape[0]
    current = int(rng.integers(n))
    unvisited = [idx for idx in range(n) if idx != current]
    tour = [current]
    counter.write()

    while unvisited:
        candidates = np.asarray(unvisited)
        weights = np.power(pheromone[current, candidates], alpha) * np.power(eta[current, candidates], beta)
        counter.read(2 * len(unvisited))
        cumulative = np.cumsum(weights)
        threshold = rng.random() * cumulative[-1]
        pos = min(int(np.searchsorted(cumulative, threshold, side="left")), len(unvisited) - 1)
        current = unvisited.pop(pos)
        tour.append(current)
        counter.write()
    return tour


def tour_length(tour: Sequence[int], distances: np.ndarray, counter: OperationCounter) -> float:
    path = np.asarray(tour)
    counter.read(len(tour))
    return float(distances[path, np.roll(path, -1)].sum())


def update_pheromone(
    pheromone: np.ndarray,
    tours: Sequence[Sequence[int]],
    lengths: Sequence[float],
    evaporation_rate: float,
    q: float,
    counter: OperationCounter,
) -> None:
    """Evaporate every trail, then let each ant deposit ``q / length`` on its edges."""
    n = pheromone.shape[0]
    pheromone *= 1.0 - evaporation_rate
    counter.read(n * n)
    counter.write(n * n)

    for tour, length in zip(tours, lengths):
        deposit = q / length if length > 0 else q
        path = np.asarray(tour)
        following = np.roll(path, -1)
        # Undirected: reinforce both directions of every traversed edge.
        np.add.at(pheromone, (path, following), deposit)
        np.add.at(pheromone, (following, path), deposit)
        counter.read(2 * len(tour))
        counter.write(2 * len(tour))


class AntColonySolver(BaseSolver):
    name = "ant_colony"
    label = "Ant Colony"
    family = AlgorithmFamily.METAHEURISTIC
    options = (
        ConfigOption(key="ant_count", label="Number of Ants", default=20, min=5, max=100, integer=True),
        ConfigOption(key="iterations", label="Iterations", default=100, min=10, max=500, integer=True),
        ConfigOption(key="alpha", label="Pheromone Weight (alpha)", default=1.0, min=0.1, max=5.0),
        ConfigOption(key="beta", label="Heuristic Weight (beta)", default=2.0, min=0.1, max=5.0),
        ConfigOption(key="evaporation_rate", label="Evaporation Rate", default=0.5, min=0.1, max=0.9),
        ConfigOption(key="q", label="Pheromone Constant (Q)", default=100, min=1, max=1000),
    )
    params_cls = AntColonyParams

    def search(
        self,
        nodes: List[Node],
        params: AntColonyParams,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        n = len(nodes)
        distances = distance_matrix(nodes, counter)
        eta = np.full_like(distances, COINCIDENT_ETA)
        np.divide(1.0, distances, out=eta, where=distances > 0)
        pheromone = np.full((n, n), 1.0 / n)
        counter.write(n * n)

        best_tour: List[int] = []
        best_length = math.inf
        for _ in range(params.iterations):
            tours = []
            lengths = []
            for _ in range(params.ant_count):
                tour = construct_tour(pheromone, eta, params.alpha, params.beta, counter, rng)
                length = tour_length(tour, distances, counter)
                tours.append(tour)
                lengths.append(length)
                if length < best_length:
                    best_length = length
                    best_tour = list(tour)
                    counter.write(len(tour))
            update_pheromone(pheromone, tours, lengths, params.evaporation_rate, params.q, counter)

        counter.read(len(best_tour))
        counter.write(len(best_tour))
        return [nodes[idx] for idx in best_tour], best_length


__all__ = ["AntColonyParams", "AntColonySolver", "construct_tour", "distance_matrix", "update_pheromone"]

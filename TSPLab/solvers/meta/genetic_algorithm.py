from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import BaseSolver, ConfigOption, nearest_neighbor_tour, tour_distance
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

TOURNAMENT_SIZE = 3


@dataclass(frozen=True)
class GeneticParams:
    population_size: int = 50
    generations: int = 100
    mutation_rate: float = 0.1
    crossover_rate: float = 0.8
    elite_count: int = 2


def shuffled(nodes: Sequence[Node], counter: OperationCounter, rng: np.random.Generator) -> List[Node]:
    """Fisher-Yates shuffle into a new list."""
    result = list(nodes)
    counter.write(len(nodes))
    for i in range(len(result) - 1, 0, -1):
        j = int(rng.integers(i + 1))
        counter.read(2)
        counter.write(2)
        result[i], result[j] = result[j], result[i]
    return result


def initial_population(
    nodes: Sequence[Node],
    size: int,
    counter: OperationCounter,
    rng: np.random.Generator,
) -> List[List[Node]]:
    population = [nearest_neighbor_tour(nodes, counter)]
    for _ in range(1, size):
        population.append(shuffled(nodes, counter, rng))
    return population


def fitness_of(population: Sequence[Sequence[Node]], counter: OperationCounter) -> List[float]:
    fitness = []
    for tour in population:
        dist = tour_distance(tour, counter)
        fitness.append(1.0 / dist if dist > 0 else math.inf)
    return fitness


def elite_indices(fitness: Sequence[float], count: int) -> List[int]:
    return sorted(range(len(fitness)), key=lambda idx: fitness[idx], reverse=True)[:count]


def tournament_select(
    population: Sequence[Sequence[Node]],
    fitness: Sequence[float],
    counter: OperationCounter,
    rng: np.random.Generator,
    size: int = TOURNAMENT_SIZE,
) -> List[Node]:
    best_idx = int(rng.integers(len(population)))
    counter.read()
    for _ in range(1, size):
        idx = int(rng.integers(len(population)))
        counter.read()
        if fitness[idx] > fitness[best_idx]:
            best_idx = idx
    selected = population[best_idx]
    counter.read(len(selected))
    counter.write(len(selected))
    return list(selected)


def order_crossover(
    parent1: Sequence[Node],
    parent2: Sequence[Node],
    counter: OperationCounter,
    rng: np.random.Generator,
) -> List[Node]:
    """OX: keep ``parent1[start..end]`` in place, fill the rest in ``parent2`` order.

    Filling starts right after ``end`` (wrapping around) in both the child and
    ``parent2``; nodes already placed are skipped by id.
    """
    n = len(parent1)
    if n < 3:
        counter.read(n)
        counter.write(n)
        return list(parent1)

    start, end = sorted(int(v) for v in rng.integers(n, size=2))
    child: List[Optional[Node]] = [None] * n
    used = set()
    for i in range(start, end + 1):
        child[i] = parent1[i]
        used.add(parent1[i].id)
        counter.read()
        counter.write()

    child_idx = (end + 1) % n
    for offset in range(n):
        node = parent2[(end + 1 + offset) % n]
        counter.read()
        if node.id in used:
            continue
        child[child_idx] = node
        used.add(node.id)
        counter.write()
        child_idx = (child_idx + 1) % n
    return child  # type: ignore[return-value]


def swap_mutation(tour: Sequence[Node], counter: OperationCounter, rng: np.random.Generator) -> List[Node]:
    result = list(tour)
    if len(result) < 2:
        return result
    counter.read(len(result))
    counter.write(len(result))
    i = int(rng.integers(len(result)))
    j = int(rng.integers(len(result)))
    while j == i:
        j = int(rng.integers(len(result)))
    counter.read(2)
    counter.write(2)
    result[i], result[j] = result[j], result[i]
    return result


class GeneticAlgorithmSolver(BaseSolver):
    """Generational GA with elitism, tournament selection, OX and swap mutation.

    The population is seeded with one nearest-neighbour tour; the best tour of
    any generation is kept.
    """

    name = "genetic_algorithm"
    label = "Genetic Algorithm"
    family = AlgorithmFamily.METAHEURISTIC
    options = (
        ConfigOption(key="population_size", label="Population Size", default=50, min=10, max=200, integer=True),
        ConfigOption(key="generations", label="Generations", default=100, min=10, max=1000, integer=True),
        ConfigOption(key="mutation_rate", label="Mutation Rate", default=0.1, min=0.01, max=0.5),
        ConfigOption(key="crossover_rate", label="Crossover Rate", default=0.8, min=0.5, max=1.0),
        ConfigOption(key="elite_count", label="Elite Count", default=2, min=1, max=10, integer=True),
    )
    params_cls = GeneticParams

    def search(
        self,
        nodes: List[Node],
        params: GeneticParams,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        population_size = params.population_size
        elite_count = min(params.elite_count, population_size)

        population = initial_population(nodes, population_size, counter, rng)
        fitness = fitness_of(population, counter)
        best_tour = list(population[0])
        best_cost = tour_distance(best_tour, counter)

        for _ in range(params.generations):
            next_population = []
            for idx in elite_indices(fitness, elite_count):
                counter.read(len(population[idx]))
                counter.write(len(population[idx]))
                next_population.append(list(population[idx]))

            while len(next_population) < population_size:
                parent1 = tournament_select(population, fitness, counter, rng)
                parent2 = tournament_select(population, fitness, counter, rng)
                if rng.random() < params.crossover_rate:
                    offspring = order_crossover(parent1, parent2, counter, rng)
                else:
                    counter.read(len(parent1))
                    counter.write(len(parent1))
                    offspring = list(parent1)
                if rng.random() < params.mutation_rate:
                    offspring = swap_mutation(offspring, counter, rng)
                next_population.append(offspring)

            population = next_population
            fitness = fitness_of(population, counter)
            for tour in population:
                cost = tour_distance(tour, counter)
                if cost < best_cost:
                    best_cost = cost
                    best_tour = list(tour)
                    counter.read(len(tour))
                    counter.write(len(tour))

        return best_tour, best_cost


__all__ = [
    "GeneticAlgorithmSolver",
    "GeneticParams",
    "elite_indices",
    "order_crossover",
    "swap_mutation",
    "tournament_select",
]

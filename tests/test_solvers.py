from __future__ import annotations

import math

import numpy as np
import pytest

from TSPLab.models import Graph, Node
from TSPLab.solvers import get_solver, get_solver_names
from TSPLab.solvers.base import tour_distance
from TSPLab.solvers.heuristics.grasp import randomized_greedy_tour, two_opt_local_search
from TSPLab.solvers.heuristics.k_opt import (
    MAX_RECONNECTIONS,
    kopt_candidates,
    kopt_positions,
    optimize_two_opt,
    swap_permutations,
    three_opt_candidates,
)
from TSPLab.solvers.meta.ant_colony import distance_matrix, update_pheromone
from TSPLab.solvers.meta.genetic_algorithm import order_crossover, swap_mutation
from TSPLab.utils import OperationCounter

# Small budgets keep the stochastic solvers fast.
FAST_CONFIGS = {
    "genetic_algorithm": {"population_size": 10, "generations": 10},
    "ant_colony": {"ant_count": 5, "iterations": 10},
    "simulated_annealing": {"max_iterations": 1000},
    "grasp": {"iterations": 10, "local_search_max_iterations": 100},
}

ALL_SOLVERS = get_solver_names()


def seven_points() -> Graph:
    return Graph.from_coordinates([(0, 0), (4, 1), (2, 5), (7, 3), (5, 7), (1, 3), (6, 0)])


def solve(name, graph, config=None, seed=11):
    merged = dict(FAST_CONFIGS.get(name, {}))
    merged.update(config or {})
    return get_solver(name).solve(graph, merged, rng=np.random.default_rng(seed))


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_tour_is_closed_permutation(name):
    graph = seven_points()
    result = solve(name, graph)
    ids = result.node_ids
    assert len(ids) == len(graph) + 1
    assert ids[0] == ids[-1]
    assert sorted(ids[:-1]) == sorted(graph.node_ids)
    assert result.distance == pytest.approx(tour_distance(result.path[:-1]))


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_empty_graph(name):
    result = get_solver(name).solve(Graph())
    assert result.path == ()
    assert result.distance == 0.0
    assert (result.performance.reads, result.performance.writes) == (0, 0)
    assert result.performance.runtime == 0.0


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_single_node(name):
    node = Node(id=5, x=3.0, y=4.0)
    result = get_solver(name).solve([node])
    assert result.path == (node,)
    assert result.distance == 0.0


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_two_nodes(name):
    graph = Graph.from_coordinates([(0, 0), (3, 4)])
    result = get_solver(name).solve(graph)
    assert result.node_ids == [1, 2, 1]
    assert result.distance == pytest.approx(10.0)


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_unit_square(name, shuffled_square):
    result = solve(name, shuffled_square)
    assert result.distance == pytest.approx(4.0)


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_counters_and_runtime_are_reported(name):
    result = solve(name, seven_points())
    assert result.performance.reads > 0
    assert result.performance.writes > 0
    assert result.performance.runtime >= 0.0


@pytest.mark.parametrize("name", ALL_SOLVERS)
def test_input_graph_is_not_modified(name):
    graph = seven_points()
    before = graph.to_dict()
    solve(name, graph)
    assert graph.to_dict() == before


@pytest.mark.parametrize("name", [n for n in ALL_SOLVERS if n != "naive"])
def test_naive_is_a_lower_bound(name):
    graph = seven_points()
    optimum = get_solver("naive").solve(graph).distance
    assert solve(name, graph).distance >= optimum - 1e-9


def test_naive_finds_known_optimum():
    # Points on a circle: the optimum visits them in angular order.
    angles = [0, 3, 1, 5, 2, 4]
    coords = [(math.cos(a * math.pi / 3), math.sin(a * math.pi / 3)) for a in angles]
    result = get_solver("naive").solve(Graph.from_coordinates(coords))
    assert result.distance == pytest.approx(6.0)


def test_nearest_neighbor_is_deterministic(random_graph):
    first = get_solver("nearest_neighbor").solve(random_graph)
    second = get_solver("nearest_neighbor").solve(random_graph)
    assert first.node_ids == second.node_ids
    assert first.node_ids[0] == random_graph.nodes[0].id


@pytest.mark.parametrize("k", [2, 3, 4, 5])
def test_k_opt_never_worse_than_nearest_neighbor(k, random_graph):
    baseline = get_solver("nearest_neighbor").solve(random_graph).distance
    result = get_solver("k_opt").solve(random_graph, {"k": k})
    assert result.distance <= baseline + 1e-9


def test_k_opt_falls_back_on_small_graphs(square):
    result = get_solver("k_opt").solve(square, {"k": 5})
    assert result.distance == pytest.approx(4.0)


@pytest.mark.parametrize("name", ["genetic_algorithm", "ant_colony", "simulated_annealing", "grasp"])
def test_seeded_runs_are_reproducible(name, random_graph):
    first = solve(name, random_graph, seed=3)
    second = solve(name, random_graph, seed=3)
    assert first.node_ids == second.node_ids
    assert first.distance == pytest.approx(second.distance)


def test_genetic_elite_may_fill_population(random_graph):
    result = solve("genetic_algorithm", random_graph, {"population_size": 10, "elite_count": 10})
    assert len(result.path) == len(random_graph) + 1


def test_optimize_two_opt_removes_crossing(shuffled_square):
    tour = optimize_two_opt(shuffled_square.nodes, OperationCounter())
    assert tour_distance(tour) == pytest.approx(4.0)
    assert tour[0].id == 1


def test_three_opt_candidates_are_permutations():
    tour = Graph.from_coordinates([(i, i * i % 7) for i in range(8)]).nodes
    candidates = three_opt_candidates(tour, 1, 3, 5)
    assert len(candidates) == 7
    for candidate in candidates:
        assert sorted(n.id for n in candidate) == [n.id for n in tour]
        assert candidate[:2] == tour[:2]


def test_kopt_positions_respect_spacing():
    positions = kopt_positions(12, 4)
    assert positions
    for cut in positions:
        assert all(b - a >= 2 for a, b in zip(cut, cut[1:]))
        assert cut[-1] <= 12 - 2
    assert kopt_positions(5, 3) == []


def test_kopt_positions_are_capped():
    positions = kopt_positions(60, 5)
    assert len(positions) <= 1000
    assert len(set(positions)) == len(positions)
    assert positions[0] == (0, 2, 4, 6, 8)


def test_kopt_candidates_are_capped_permutations():
    tour = Graph.from_coordinates([(i, 0) for i in range(12)]).nodes
    candidates = kopt_candidates(tour, (1, 3, 5, 7, 9))
    assert 0 < len(candidates) <= MAX_RECONNECTIONS
    for candidate in candidates:
        assert sorted(n.id for n in candidate) == [n.id for n in tour]
        assert candidate[0] == tour[0]


def test_order_crossover_produces_permutation(rng):
    nodes = seven_points().nodes
    other = list(reversed(nodes))
    child = order_crossover(nodes, other, OperationCounter(), rng)
    assert sorted(n.id for n in child) == [n.id for n in nodes]


def test_swap_mutation_swaps_two_positions(rng):
    nodes = seven_points().nodes
    mutated = swap_mutation(nodes, OperationCounter(), rng)
    changed = [i for i, (a, b) in enumerate(zip(nodes, mutated)) if a != b]
    assert len(changed) == 2


def test_greedy_with_zero_alpha_follows_nearest_neighbor():
    nodes = Graph.from_coordinates([(0, 0), (1, 0), (2, 0), (3, 0)]).nodes
    tour = randomized_greedy_tour(nodes, 0.0, OperationCounter(), np.random.default_rng(0))
    assert sorted(n.id for n in tour) == [1, 2, 3, 4]
    # Every start has a neighbour one unit away, and alpha 0 only allows the closest.
    assert abs(tour[1].x - tour[0].x) == pytest.approx(1.0)


def test_two_opt_local_search_tracks_cost(shuffled_square):
    tour, cost = two_opt_local_search(shuffled_square.nodes, 10, OperationCounter())
    assert cost == pytest.approx(tour_distance(tour))
    assert cost == pytest.approx(4.0)


def test_pheromone_update_is_symmetric():
    nodes = seven_points().nodes
    counter = OperationCounter()
    distances = distance_matrix(nodes, counter)
    assert np.allclose(distances, distances.T)
    pheromone = np.full((7, 7), 1.0 / 7)
    update_pheromone(pheromone, [[0, 1, 2, 3, 4, 5, 6]], [10.0], 0.5, 100.0, counter)
    assert np.allclose(pheromone, pheromone.T)
    assert pheromone[0, 1] == pytest.approx(0.5 / 7 + 10.0)
    assert pheromone[0, 2] == pytest.approx(0.5 / 7)


def test_swap_permutations_order():
    assert list(swap_permutations(3)) == [(0, 1, 2), (0, 2, 1), (1, 0, 2), (1, 2, 0), (2, 1, 0), (2, 0, 1)]
    assert list(swap_permutations(4))[4:7] == [(0, 3, 2, 1), (0, 3, 1, 2), (1, 0, 2, 3)]
    assert list(swap_permutations(1)) == [(0,)]


def test_kopt_candidates_follow_swap_order():
    tour = Graph.from_coordinates([(i, 0) for i in range(12)]).nodes
    candidates = kopt_candidates(tour, (1, 3, 5, 7, 9))
    ids = [[n.id for n in candidate] for candidate in candidates]
    # Middle segments are [3,4] [5,6] [7,8] [9,10]; 16 reversal masks per ordering.
    assert ids[0] == [n.id for n in tour]
    assert ids[1] == [1, 2, 4, 3, 5, 6, 7, 8, 9, 10, 11, 12]
    assert ids[16] == [1, 2, 3, 4, 5, 6, 9, 10, 7, 8, 11, 12]
    assert ids[4 * 16] == [1, 2, 3, 4, 9, 10, 7, 8, 5, 6, 11, 12]

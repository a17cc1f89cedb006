from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from TSPLab.models import Node
from TSPLab.solvers.base import (
    EPSILON,
    BaseSolver,
    ConfigOption,
    nearest_neighbor_tour,
    reverse_segment,
    tour_distance,
    two_opt_delta,
)
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

MAX_POSITION_SETS = 1000
MAX_RECONNECTIONS = 100


@dataclass(frozen=True)
class KOptParams:
    k: int = 2


def optimize_two_opt(tour: Sequence[Node], counter: OperationCounter) -> List[Node]:
    """Segment-reversal local search until no move shortens the tour."""
    n = len(tour)
    current = list(tour)
    if n < 4:
        return current

    improved = True
    while improved:
        improved = False
        for i in range(n - 1):
            for j in range(i + 2, n):
                if two_opt_delta(current, i + 1, j, counter) < -EPSILON:
                    current = reverse_segment(current, i + 1, j, counter)
                    improved = True
    return current


def three_opt_candidates(tour: Sequence[Node], i: int, j: int, k: int) -> List[List[Node]]:
    """The seven non-identity reconnections after cutting after ``i``, ``j`` and ``k``."""
    a = list(tour[: i + 1])
    b = list(tour[i + 1 : j + 1])
    c = list(tour[j + 1 : k + 1])
    d = list(tour[k + 1 :])
    b_rev = b[::-1]
    c_rev = c[::-1]
    return [
        a + b_rev + c + d,
        a + b + c_rev + d,
        a + b_rev + c_rev + d,
        a + c + b + d,
        a + c + b_rev + d,
        a + c_rev + b + d,
        a + c_rev + b_rev + d,
    ]


def optimize_three_opt(tour: Sequence[Node], counter: OperationCounter) -> List[Node]:
    n = len(tour)
    if n < 6:
        return optimize_two_opt(tour, counter)

    current = list(tour)
    best_cost = tour_distance(current, counter)
    improved = True
    while improved:
        improved = False
        for i in range(n - 4):
            for j in range(i + 2, n - 2):
                for k in range(j + 2, n):
                    best_candidate = None
                    for candidate in three_opt_candidates(current, i, j, k):
                        counter.write(n)
                        cost = tour_distance(candidate, counter)
                        if cost < best_cost - EPSILON:
                            best_cost = cost
                            best_candidate = candidate
                    if best_candidate is not None:
                        current = best_candidate
                        improved = True
    return current


def _unrank_combination(rank: int, pool: int, size: int) -> Tuple[int, ...]:
    """The ``rank``-th ``size``-combination of ``range(pool)`` in lexicographic order."""
    combo = []
    value = 0
    for remaining in range(size, 0, -1):
        while True:
            count = math.comb(pool - value - 1, remaining - 1)
            if rank < count:
                break
            rank -= count
            value += 1
        combo.append(value)
        value += 1
    return tuple(combo)


def kopt_positions(n: int, k: int) -> List[Tuple[int, ...]]:
    """Cut positions ``p1 < ... < pk`` at least two apart with ``pk <= n - 2``.

    Shifting ``p_i`` down by ``i`` turns them into plain k-combinations of
    ``range(n - k)``, so the sets can be counted and sampled without listing
    them. More than ``MAX_POSITION_SETS`` sets are thinned to evenly spaced ranks.
    """
    pool = n - k
    if k <= 0 or pool < k:
        return []
    total = math.comb(pool, k)
    if total <= MAX_POSITION_SETS:
        combos = list(itertools.combinations(range(pool), k))
    else:
        ranks = sorted({(total - 1) * step // (MAX_POSITION_SETS - 1) for step in range(MAX_POSITION_SETS)})
        combos = [_unrank_combination(rank, pool, k) for rank in ranks]
    return [tuple(value + idx for idx, value in enumerate(combo)) for combo in combos]


def swap_permutations(count: int) -> Iterator[Tuple[int, ...]]:
    """Orderings of ``range(count)`` in swap-recursion order.

    Position ``start`` takes each later index in turn by swapping, so after
    ``(0, 1, 2)`` and ``(0, 2, 1)`` come ``(1, 0, 2)``, ``(1, 2, 0)``,
    ``(2, 1, 0)`` and ``(2, 0, 1)``.
    """
    order = list(range(count))

    def permute(start: int) -> Iterator[Tuple[int, ...]]:
        if start == count:
            yield tuple(order)
            return
        for i in range(start, count):
            order[start], order[i] = order[i], order[start]
            yield from permute(start + 1)
            order[start], order[i] = order[i], order[start]

    return permute(0)


def _segment_arrangements(segments: Sequence[List[Node]]) -> Iterator[List[List[Node]]]:
    count = len(segments)
    for order in swap_permutations(count):
        for mask in range(1 << count):
            yield [
                segments[idx][::-1] if mask & (1 << pos) else segments[idx]
                for pos, idx in enumerate(order)
            ]


def kopt_candidates(tour: Sequence[Node], positions: Sequence[int]) -> List[List[Node]]:
    """Reorder and optionally reverse the inner segments between the cuts.

    The first and last segments stay in place; at most ``MAX_RECONNECTIONS``
    arrangements are returned.
    """
    segments: List[List[Node]] = []
    prev = 0
    for pos in positions:
        segments.append(list(tour[prev : pos + 1]))
        prev = pos + 1
    if prev < len(tour):
        segments.append(list(tour[prev:]))

    head, middle, tail = segments[0], segments[1:-1], segments[-1]
    candidates = []
    for arrangement in itertools.islice(_segment_arrangements(middle), MAX_RECONNECTIONS):
        candidates.append(head + [node for segment in arrangement for node in segment] + tail)
    return candidates


def optimize_k_opt(tour: Sequence[Node], k: int, counter: OperationCounter) -> List[Node]:
    n = len(tour)
    if n < 2 * k:
        return optimize_three_opt(tour, counter)

    current = optimize_three_opt(tour, counter)
    best_cost = tour_distance(current, counter)
    positions = kopt_positions(n, k)

    improved = True
    while improved:
        improved = False
        for cut in positions:
            for candidate in kopt_candidates(current, cut):
                counter.write(n)
                cost = tour_distance(candidate, counter)
                if cost < best_cost - EPSILON:
                    current = candidate
                    best_cost = cost
                    improved = True
                    break
            if improved:
                break
    return current


class KOptSolver(BaseSolver):
    """Nearest-neighbour start refined by 2-opt, 3-opt or sampled k-opt moves.

    The search order is fixed, so the result is deterministic for a given
    node order.
    """

    name = "k_opt"
    label = "k-opt"
    family = AlgorithmFamily.LOCAL_SEARCH
    options = (ConfigOption(key="k", label="k value", default=2, min=2, max=5, integer=True),)
    params_cls = KOptParams

    def search(
        self,
        nodes: List[Node],
        params: KOptParams,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        tour = nearest_neighbor_tour(nodes, counter)
        if params.k == 2:
            tour = optimize_two_opt(tour, counter)
        elif params.k == 3:
            tour = optimize_three_opt(tour, counter)
        else:
            tour = optimize_k_opt(tour, params.k, counter)
        return tour, tour_distance(tour, counter)


__all__ = [
    "KOptParams",
    "KOptSolver",
    "kopt_candidates",
    "kopt_positions",
    "optimize_k_opt",
    "optimize_three_opt",
    "optimize_two_opt",
    "swap_permutations",
    "three_opt_candidates",
]

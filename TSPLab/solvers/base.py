from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

import numpy as np

from TSPLab.models import Graph, Node, Performance, Result
from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

EPSILON = 1e-10
COORDINATE_READS = 4


class InvalidConfigError(ValueError):
    """Raised when a config value cannot be interpreted for its option."""


def current_time() -> float:
    return time.perf_counter()


def elapsed_ms(start_time: float) -> float:
    return (current_time() - start_time) * 1000.0


def distance(a: Node, b: Node, counter: OperationCounter | None = None) -> float:
    """Euclidean distance between two nodes."""
    if counter is not None:
        counter.read(COORDINATE_READS)
    dx = b.x - a.x
    dy = b.y - a.y
    return math.sqrt(dx * dx + dy * dy)


def tour_distance(tour: Sequence[Node], counter: OperationCounter | None = None) -> float:
    """Length of the closed tour, including the return leg to the first node."""
    if len(tour) < 2:
        return 0.0
    total = 0.0
    for i in range(len(tour) - 1):
        total += distance(tour[i], tour[i + 1], counter)
    total += distance(tour[-1], tour[0], counter)
    return total


def nearest_neighbor_tour(nodes: Sequence[Node], counter: OperationCounter | None = None) -> List[Node]:
    """Greedy tour from ``nodes[0]``; ties go to the earliest unvisited index."""
    if not nodes:
        return []
    unvisited = list(range(1, len(nodes)))
    tour = [nodes[0]]
    current = 0
    if counter is not None:
        counter.write()

    while unvisited:
        nearest_pos = 0
        nearest_dist = math.inf
        for pos, idx in enumerate(unvisited):
            dist = distance(nodes[current], nodes[idx], counter)
            if dist < nearest_dist:
                nearest_dist = dist
                nearest_pos = pos
        current = unvisited.pop(nearest_pos)
        tour.append(nodes[current])
        if counter is not None:
            counter.write()
    return tour


def close_tour(tour: Sequence[Node]) -> List[Node]:
    cycle = list(tour)
    if len(cycle) > 1:
        cycle.append(cycle[0])
    return cycle


def two_opt_delta(tour: Sequence[Node], i: int, j: int, counter: OperationCounter | None = None) -> float:
    """Change in length from reversing ``tour[i..j]`` (inclusive, ``i >= 1``)."""
    n = len(tour)
    a = tour[i - 1]
    b = tour[i]
    c = tour[j]
    d = tour[(j + 1) % n]
    return (distance(a, c, counter) + distance(b, d, counter)) - (
        distance(a, b, counter) + distance(c, d, counter)
    )


def reverse_segment(tour: Sequence[Node], i: int, j: int, counter: OperationCounter | None = None) -> List[Node]:
    """Copy of ``tour`` with positions ``i..j`` (inclusive) reversed."""
    new_tour = list(tour)
    new_tour[i : j + 1] = reversed(new_tour[i : j + 1])
    if counter is not None:
        counter.read(len(tour) + (j - i + 1))
        counter.write(len(tour) + (j - i + 1))
    return new_tour


def as_nodes(graph: Graph | Sequence[Node]) -> List[Node]:
    if isinstance(graph, Graph):
        return list(graph.nodes)
    return list(graph)


@dataclass(frozen=True)
class ConfigOption:
    """Describes one tunable parameter of a solver (also used for UI sliders)."""

    key: str
    label: str
    default: float | str
    type: str = "number"
    min: float | None = None
    max: float | None = None
    choices: Tuple[str, ...] = ()
    integer: bool = False

    def resolve(self, value: Any) -> Any:
        if value is None:
            return self.default
        if self.type == "select":
            if value not in self.choices:
                raise InvalidConfigError(
                    f"Option '{self.key}' must be one of {', '.join(map(str, self.choices))}, got {value!r}"
                )
            return value
        if isinstance(value, bool):
            raise InvalidConfigError(f"Option '{self.key}' expects a number, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidConfigError(f"Option '{self.key}' expects a number, got {value!r}") from exc
        if math.isnan(number):
            raise InvalidConfigError(f"Option '{self.key}' expects a number, got NaN")
        if self.min is not None:
            number = max(self.min, number)
        if self.max is not None:
            number = min(self.max, number)
        if self.integer:
            return int(round(number))
        return number

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"key": self.key, "label": self.label, "type": self.type, "default": self.default}
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        if self.choices:
            data["choices"] = list(self.choices)
        return data


def resolve_options(params_cls: Type[Any], options: Sequence[ConfigOption], config: Mapping[str, Any] | None) -> Any:
    """Build a typed params object from an open config mapping.

    Missing keys take the option default, unknown keys are ignored and numbers
    are clamped into the declared range.
    """
    config = config or {}
    values = {option.key: option.resolve(config.get(option.key)) for option in options}
    return params_cls(**values)


class BaseSolver:
    """Common interface for TSPLab solvers.

    Subclasses implement :meth:`search`; the empty, single-node and two-node
    graphs are answered here so every solver reports them identically.
    """

    name: str
    label: str
    family: AlgorithmFamily
    options: Tuple[ConfigOption, ...] = ()
    params_cls: Optional[type] = None

    def parse_config(self, config: Mapping[str, Any] | None) -> Any:
        if self.params_cls is None:
            return None
        return resolve_options(self.params_cls, self.options, config)

    def solve(
        self,
        graph: Graph | Sequence[Node],
        config: Mapping[str, Any] | None = None,
        rng: np.random.Generator | None = None,
    ) -> Result:
        start_time = current_time()
        nodes = as_nodes(graph)
        counter = OperationCounter()
        n = len(nodes)

        if n == 0:
            return Result(path=(), performance=Performance(distance=0.0, runtime=0.0, reads=0, writes=0))
        if n == 1:
            counter.read()
            return build_result([nodes[0]], 0.0, counter, start_time)
        if n == 2:
            counter.read(2)
            counter.write(3)
            return build_result(nodes, tour_distance(nodes, counter), counter, start_time)

        params = self.parse_config(config)
        if rng is None:
            rng = np.random.default_rng()
        tour, cost = self.search(nodes, params, counter, rng)
        return build_result(tour, cost, counter, start_time)

    def search(
        self,
        nodes: List[Node],
        params: Any,
        counter: OperationCounter,
        rng: np.random.Generator,
    ) -> Tuple[List[Node], float]:
        """Return an open tour over ``nodes`` and its closed length."""
        raise NotImplementedError

    def __call__(self, graph: Graph | Sequence[Node], config: Mapping[str, Any] | None = None) -> Result:
        return self.solve(graph, config)


def build_result(tour: Sequence[Node], cost: float, counter: OperationCounter, start_time: float) -> Result:
    return Result(
        path=tuple(close_tour(tour)),
        performance=Performance(
            distance=float(cost),
            runtime=elapsed_ms(start_time),
            reads=counter.reads,
            writes=counter.writes,
        ),
    )


@dataclass(frozen=True)
class SolverSpec:
    """Registry entry describing a solver implementation."""

    name: str
    label: str
    cls: Type[BaseSolver]
    family: AlgorithmFamily
    options: Tuple[ConfigOption, ...] = ()

    def create(self) -> BaseSolver:
        return self.cls()


__all__ = [
    "BaseSolver",
    "COORDINATE_READS",
    "ConfigOption",
    "EPSILON",
    "InvalidConfigError",
    "SolverSpec",
    "as_nodes",
    "build_result",
    "close_tour",
    "current_time",
    "distance",
    "elapsed_ms",
    "nearest_neighbor_tour",
    "resolve_options",
    "reverse_segment",
    "tour_distance",
    "two_opt_delta",
]

from __future__ import annotations

from typing import List, Optional, Sequence, Type

from TSPLab.solvers.base import BaseSolver, ConfigOption, InvalidConfigError, SolverSpec
from TSPLab.solvers.exact import NaiveSolver
from TSPLab.solvers.heuristics import GraspSolver, KOptSolver, NearestNeighborSolver
from TSPLab.solvers.meta import AntColonySolver, GeneticAlgorithmSolver, SimulatedAnnealingSolver
from TSPLab.utils.taxonomy import AlgorithmFamily


def _spec(solver_cls: Type[BaseSolver]) -> SolverSpec:
    return SolverSpec(
        name=solver_cls.name,
        label=solver_cls.label,
        cls=solver_cls,
        family=solver_cls.family,
        options=solver_cls.options,
    )


_REGISTRATION_ORDER: Sequence[Type[BaseSolver]] = (
    NaiveSolver,
    KOptSolver,
    NearestNeighborSolver,
    GeneticAlgorithmSolver,
    AntColonySolver,
    SimulatedAnnealingSolver,
    GraspSolver,
)

SOLVER_SPECS: dict[str, SolverSpec] = {solver_cls.name: _spec(solver_cls) for solver_cls in _REGISTRATION_ORDER}
SOLVER_REGISTRY: dict[str, type[BaseSolver]] = {name: spec.cls for name, spec in SOLVER_SPECS.items()}
SOLVER_FAMILIES: dict[str, AlgorithmFamily] = {name: spec.family for name, spec in SOLVER_SPECS.items()}


def find_solver(name: str) -> Optional[SolverSpec]:
    return SOLVER_SPECS.get(name)


def get_solver(name: str) -> BaseSolver:
    spec = find_solver(name)
    if spec is None:
        raise KeyError(f"Unknown solver: {name}")
    return spec.create()


def get_solver_names() -> List[str]:
    return list(SOLVER_SPECS)


__all__ = [
    "AlgorithmFamily",
    "AntColonySolver",
    "BaseSolver",
    "ConfigOption",
    "GeneticAlgorithmSolver",
    "GraspSolver",
    "InvalidConfigError",
    "KOptSolver",
    "NaiveSolver",
    "NearestNeighborSolver",
    "SOLVER_FAMILIES",
    "SOLVER_REGISTRY",
    "SOLVER_SPECS",
    "SimulatedAnnealingSolver",
    "SolverSpec",
    "find_solver",
    "get_solver",
    "get_solver_names",
]

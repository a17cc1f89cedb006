from TSPLab.core import Arena
from TSPLab.leaderboard import Leaderboard, LeaderboardEntry
from TSPLab.models import Edge, Graph, Node, Performance, Result
from TSPLab.runner import (
    AlgorithmRunner,
    AlgorithmRunnerError,
    ProcessWorker,
    RunnerErrorCode,
    RunnerState,
    RunOptions,
    create_algorithm_runner,
)
from TSPLab.solvers import (
    BaseSolver,
    ConfigOption,
    InvalidConfigError,
    SOLVER_FAMILIES,
    SOLVER_REGISTRY,
    SOLVER_SPECS,
    SolverSpec,
    find_solver,
    get_solver,
    get_solver_names,
)
from TSPLab.utils import AlgorithmFamily, OperationCounter

__all__ = [
    "AlgorithmFamily",
    "AlgorithmRunner",
    "AlgorithmRunnerError",
    "Arena",
    "BaseSolver",
    "ConfigOption",
    "Edge",
    "Graph",
    "InvalidConfigError",
    "Leaderboard",
    "LeaderboardEntry",
    "Node",
    "OperationCounter",
    "Performance",
    "ProcessWorker",
    "Result",
    "RunOptions",
    "RunnerErrorCode",
    "RunnerState",
    "SOLVER_FAMILIES",
    "SOLVER_REGISTRY",
    "SOLVER_SPECS",
    "SolverSpec",
    "create_algorithm_runner",
    "find_solver",
    "get_solver",
    "get_solver_names",
]

from TSPLab.solvers.heuristics.grasp import GraspSolver
from TSPLab.solvers.heuristics.k_opt import KOptSolver
from TSPLab.solvers.heuristics.nearest_neighbor import NearestNeighborSolver

__all__ = [
    "GraspSolver",
    "KOptSolver",
    "NearestNeighborSolver",
]

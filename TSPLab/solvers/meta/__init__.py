from TSPLab.solvers.meta.ant_colony import AntColonySolver
from TSPLab.solvers.meta.genetic_algorithm import GeneticAlgorithmSolver
from TSPLab.solvers.meta.simulated_annealing import SimulatedAnnealingSolver

__all__ = [
    "AntColonySolver",
    "GeneticAlgorithmSolver",
    "SimulatedAnnealingSolver",
]

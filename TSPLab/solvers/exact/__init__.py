from TSPLab.solvers.exact.naive import NaiveSolver

__all__ = ["NaiveSolver"]

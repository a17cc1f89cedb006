from TSPLab.utils.counter import OperationCounter
from TSPLab.utils.taxonomy import AlgorithmFamily

__all__ = ["AlgorithmFamily", "OperationCounter"]

from __future__ import annotations

import pytest

from TSPLab.leaderboard import Leaderboard
from TSPLab.models import Node, Performance, Result


def result(distance: float, runtime: float, reads: int = 0, writes: int = 0) -> Result:
    path = (Node(1, 0.0, 0.0), Node(2, 1.0, 0.0), Node(1, 0.0, 0.0))
    return Result(path=path, performance=Performance(distance=distance, runtime=runtime, reads=reads, writes=writes))


@pytest.fixture
def board() -> Leaderboard:
    board = Leaderboard()
    board.record("k-opt", result(12.0, 3.0, reads=50))
    board.record("Naive", result(10.0, 40.0, reads=900))
    board.record("GRASP", result(10.0, 8.0, reads=300))
    return board


def test_entries_keep_insertion_order(board):
    assert [entry.algorithm_name for entry in board.entries()] == ["k-opt", "Naive", "GRASP"]
    assert [entry.id for entry in board] == [1, 2, 3]
    assert len(board) == 3


def test_sort_by_metric_breaks_ties_by_id(board):
    assert [e.algorithm_name for e in board.entries(sort_by="distance")] == ["Naive", "GRASP", "k-opt"]
    assert [e.algorithm_name for e in board.entries(sort_by="runtime")] == ["k-opt", "GRASP", "Naive"]
    assert [e.algorithm_name for e in board.entries(sort_by="reads")] == ["k-opt", "GRASP", "Naive"]


def test_unknown_sort_key(board):
    with pytest.raises(ValueError, match="Cannot sort by 'speed'"):
        board.entries(sort_by="speed")


def test_best(board):
    assert board.best().algorithm_name == "Naive"
    assert Leaderboard().best() is None


def test_records(board):
    record = board.to_records()[0]
    assert record["algorithm"] == "k-opt"
    assert record["distance"] == 12.0
    assert record["path"] == [1, 2, 1]
    assert "created_at" in record


def test_clear_keeps_counting_ids(board):
    board.clear()
    assert len(board) == 0
    entry = board.record("Naive", result(1.0, 1.0))
    assert entry.id == 4

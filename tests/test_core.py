from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import pytest

from TSPLab import Arena, Graph, Leaderboard, Result
from TSPLab.runner import AlgorithmRunnerError, RunnerErrorCode
from TSPLab.runner.messages import RunRequest, WorkerResponse, decode_response
from TSPLab.runner.worker import handle_request


class InlineWorker:
    """Answers synchronously in the calling thread through ``handle_request``."""

    def __init__(self) -> None:
        self.on_message: Optional[Callable[[WorkerResponse], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.terminated = False

    def post_message(self, request: RunRequest) -> None:
        response = decode_response(handle_request(request.to_payload()))
        self.on_message(response)

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture
def arena(timers) -> Arena:
    return Arena(worker_factory=InlineWorker, timer_factory=timers)


def test_run_records_success(arena, square):
    future = arena.run("nearest_neighbor", square)
    assert isinstance(future.result(timeout=0), Result)
    entries = arena.leaderboard.entries()
    assert [entry.algorithm_name for entry in entries] == ["Nearest Neighbour"]
    assert entries[0].performance.distance == pytest.approx(4.0)


def test_failed_run_is_not_recorded(arena, square):
    future = arena.run("unknown", square)
    error = future.exception(timeout=0)
    assert error.code is RunnerErrorCode.WORKER_ERROR
    assert error.message == "Algorithm not found: unknown"
    assert len(arena.leaderboard) == 0


def test_solve_all_runs_every_solver(arena):
    graph = Graph.from_coordinates([(0, 0), (2, 0), (2, 2), (0, 2), (1, 3)])
    configs = {
        "genetic_algorithm": {"population_size": 10, "generations": 10},
        "ant_colony": {"ant_count": 5, "iterations": 10},
        "simulated_annealing": {"max_iterations": 1000},
        "grasp": {"iterations": 10},
    }
    outcomes = arena.solve_all(graph, configs=configs)
    assert set(outcomes) == set(arena.parallel_runners)
    assert len(outcomes) == 7
    assert all(isinstance(outcome, Result) for outcome in outcomes.values())
    assert len(arena.leaderboard) == 7
    best = arena.leaderboard.best()
    assert best.performance.distance == pytest.approx(outcomes["naive"].distance)


def test_solve_all_reports_failures_per_solver(arena, square):
    outcomes = arena.solve_all(square, configs={"k_opt": {"k": "x"}}, algorithms=["k_opt", "nearest_neighbor"])
    assert isinstance(outcomes["k_opt"], AlgorithmRunnerError)
    assert isinstance(outcomes["nearest_neighbor"], Result)
    assert [entry.algorithm_name for entry in arena.leaderboard] == ["Nearest Neighbour"]


def test_run_all_timeouts_are_independent(workers, timers, square):
    arena = Arena(worker_factory=workers, timer_factory=timers)
    futures = arena.run_all(square, timeout=500, algorithms=["naive", "k_opt"])
    assert arena.is_running
    assert len(timers.timers) == 2

    timers.timers[0].fire()
    assert futures["naive"].exception(timeout=0).code is RunnerErrorCode.TIMEOUT
    assert not futures["k_opt"].done()

    arena.cancel_all()
    assert futures["k_opt"].exception(timeout=0).code is RunnerErrorCode.CANCELLED
    assert not arena.is_running


def test_close_cancels_everything(workers, timers, square):
    with Arena(worker_factory=workers, timer_factory=timers) as arena:
        single = arena.run("naive", square)
        parallel = arena.run_all(square, algorithms=["grasp"])
    assert single.exception(timeout=0).code is RunnerErrorCode.CANCELLED
    assert parallel["grasp"].exception(timeout=0).code is RunnerErrorCode.CANCELLED
    assert all(worker.terminated for worker in workers.workers)


class ThreadedWorker(InlineWorker):
    """Answers from its own thread, the way the process listener does."""

    def post_message(self, request: RunRequest) -> None:
        def answer() -> None:
            self.on_message(decode_response(handle_request(request.to_payload())))

        threading.Thread(target=answer, daemon=True).start()


class SlowLeaderboard(Leaderboard):
    def record(self, algorithm_name, result):
        time.sleep(0.05)
        return super().record(algorithm_name, result)


def test_solve_all_returns_after_leaderboard_is_updated(timers, square):
    arena = Arena(worker_factory=ThreadedWorker, timer_factory=timers, leaderboard=SlowLeaderboard())
    names = ["naive", "k_opt", "nearest_neighbor"]
    outcomes = arena.solve_all(square, algorithms=names)
    assert all(isinstance(outcomes[name], Result) for name in names)
    assert len(arena.leaderboard) == 3


def test_run_future_settles_after_recording(timers, square):
    arena = Arena(worker_factory=ThreadedWorker, timer_factory=timers, leaderboard=SlowLeaderboard())
    result = arena.run("nearest_neighbor", square).result(timeout=10)
    assert [entry.performance for entry in arena.leaderboard] == [result.performance]

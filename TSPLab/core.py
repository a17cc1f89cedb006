from __future__ import annotations

import functools
import logging
from concurrent.futures import Future, wait
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from TSPLab.leaderboard import Leaderboard
from TSPLab.models import Graph, Result
from TSPLab.runner import AlgorithmRunner, AlgorithmRunnerError, RunOptions, create_algorithm_runner
from TSPLab.runner.runner import TimerFactory, WorkerFactory, daemon_timer
from TSPLab.runner.worker import ProcessWorker
from TSPLab.solvers import find_solver, get_solver_names

logger = logging.getLogger(__name__)

Outcome = Union[Result, AlgorithmRunnerError]


class Arena:
    """Runs solvers against a graph and records successful runs on a leaderboard.

    ``run`` uses a single runner, so a new run supersedes the previous one.
    ``run_all`` starts one independent runner per solver, all built from the
    same worker factory, and they race concurrently. Returned futures settle
    only after a successful result is on the leaderboard.
    """

    def __init__(
        self,
        worker_factory: WorkerFactory = ProcessWorker,
        timer_factory: TimerFactory = daemon_timer,
        leaderboard: Leaderboard | None = None,
    ):
        self._worker_factory = worker_factory
        self._timer_factory = timer_factory
        self.runner = create_algorithm_runner(worker_factory, timer_factory)
        self.leaderboard = leaderboard if leaderboard is not None else Leaderboard()
        self.parallel_runners: Dict[str, AlgorithmRunner] = {}

    def run(
        self,
        algorithm_name: str,
        graph: Graph,
        config: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> "Future[Result]":
        future = self.runner.run(algorithm_name, graph, config, RunOptions(timeout=timeout))
        return self._recorded(algorithm_name, future)

    def run_all(
        self,
        graph: Graph,
        configs: Optional[Mapping[str, Mapping[str, Any]]] = None,
        timeout: Optional[float] = None,
        algorithms: Optional[Iterable[str]] = None,
    ) -> Dict[str, "Future[Result]"]:
        self.cancel_all()
        configs = configs or {}
        names = list(algorithms) if algorithms is not None else get_solver_names()
        futures: Dict[str, Future] = {}
        for name in names:
            runner = create_algorithm_runner(self._worker_factory, self._timer_factory)
            self.parallel_runners[name] = runner
            future = runner.run(name, graph, configs.get(name), RunOptions(timeout=timeout))
            futures[name] = self._recorded(name, future)
        return futures

    def solve_all(
        self,
        graph: Graph,
        configs: Optional[Mapping[str, Mapping[str, Any]]] = None,
        timeout: Optional[float] = None,
        algorithms: Optional[Iterable[str]] = None,
    ) -> Dict[str, Outcome]:
        """Blocking ``run_all``: wait for every runner and collect its outcome."""
        futures = self.run_all(graph, configs=configs, timeout=timeout, algorithms=algorithms)
        wait(futures.values())
        outcomes: Dict[str, Outcome] = {}
        for name, future in futures.items():
            error = future.exception()
            outcomes[name] = error if error is not None else future.result()
        return outcomes

    @property
    def is_running(self) -> bool:
        return self.runner.state.is_running or any(
            runner.state.is_running for runner in self.parallel_runners.values()
        )

    def cancel_all(self) -> None:
        self.runner.cancel()
        for runner in self.parallel_runners.values():
            runner.cancel()
        self.parallel_runners.clear()

    def close(self) -> None:
        self.cancel_all()

    def __enter__(self) -> "Arena":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _recorded(self, algorithm_name: str, run_future: Future) -> Future:
        """Future settling like ``run_future``, but only once a success is on the leaderboard."""
        recorded: Future = Future()
        recorded.set_running_or_notify_cancel()
        run_future.add_done_callback(functools.partial(self._record, algorithm_name, recorded))
        return recorded

    def _record(self, algorithm_name: str, recorded: Future, run_future: Future) -> None:
        error = run_future.exception()
        if error is not None:
            recorded.set_exception(error)
            return
        result = run_future.result()
        try:
            spec = find_solver(algorithm_name)
            label = spec.label if spec is not None else algorithm_name
            entry = self.leaderboard.record(label, result)
            logger.debug("Recorded %s as leaderboard entry %d", label, entry.id)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record %s on the leaderboard", algorithm_name)
        recorded.set_result(result)


__all__ = ["Arena", "Outcome"]

from __future__ import annotations

import copy
import functools
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Mapping, Optional, Protocol

from TSPLab.models import Graph, Result
from TSPLab.runner.errors import AlgorithmRunnerError, RunnerErrorCode
from TSPLab.runner.messages import RunRequest, SuccessResponse, WorkerResponse
from TSPLab.runner.worker import ProcessWorker

logger = logging.getLogger(__name__)


class Worker(Protocol):
    on_message: Optional[Callable[[WorkerResponse], None]]
    on_error: Optional[Callable[[str], None]]

    def post_message(self, request: RunRequest) -> None: ...

    def terminate(self) -> None: ...


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


WorkerFactory = Callable[[], Worker]
TimerFactory = Callable[[float, Callable[[], None]], Timer]
StateListener = Callable[["RunnerState"], None]


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


@dataclass(frozen=True)
class RunnerState:
    is_running: bool = False
    can_cancel: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class RunOptions:
    timeout: Optional[float] = None  # milliseconds; None or <= 0 disables it


def _format_ms(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class AlgorithmRunner:
    """Runs one solver at a time in an isolated worker.

    Each :meth:`run` returns a future that settles exactly once: with the
    ``Result``, or with an :class:`AlgorithmRunnerError` coded ``TIMEOUT``,
    ``CANCELLED`` or ``WORKER_ERROR``. Starting a run while another is in
    flight cancels the older one first. Whichever of success, failure,
    timeout or cancellation arrives first wins; the worker is torn down and
    later arrivals are ignored.
    """

    def __init__(
        self,
        worker_factory: WorkerFactory = ProcessWorker,
        timer_factory: TimerFactory = daemon_timer,
    ):
        self._worker_factory = worker_factory
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._state = RunnerState()
        self._listeners: List[StateListener] = []
        self._worker: Optional[Worker] = None
        self._timer: Optional[Timer] = None
        self._future: Optional[Future] = None
        self._algorithm_name: Optional[str] = None

    @property
    def state(self) -> RunnerState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def run(
        self,
        algorithm_name: str,
        graph: Graph,
        config: Optional[Mapping[str, Any]] = None,
        options: Optional[RunOptions] = None,
    ) -> "Future[Result]":
        with self._lock:
            if self._state.is_running:
                self.cancel()

            future: Future = Future()
            # Running futures refuse Future.cancel(); use AlgorithmRunner.cancel().
            future.set_running_or_notify_cancel()
            self._future = future
            self._algorithm_name = algorithm_name
            self._set_state(RunnerState(is_running=True, can_cancel=True, error=None))
            logger.debug("Starting %s", algorithm_name)

            try:
                worker = self._worker_factory()
            except Exception as exc:  # noqa: BLE001
                message = f"Failed to create worker: {exc}"
                logger.error(message)
                self._fail(future, message)
                return future

            self._worker = worker
            worker.on_message = functools.partial(self._handle_message, future)
            worker.on_error = functools.partial(self._handle_fault, future)

            timeout = options.timeout if options is not None else None
            if timeout is not None and timeout > 0:
                timer = self._timer_factory(timeout / 1000.0, functools.partial(self._handle_timeout, future, timeout))
                self._timer = timer
                timer.start()

            # Copies keep the worker from ever touching the caller's graph or config.
            request = RunRequest(
                algorithm_name=algorithm_name,
                graph=copy.deepcopy(graph),
                config=copy.deepcopy(dict(config)) if config is not None else None,
            )
            try:
                worker.post_message(request)
            except Exception as exc:  # noqa: BLE001
                message = f"Failed to start worker: {exc}"
                logger.error(message)
                self._fail(future, message)
        return future

    def cancel(self) -> None:
        with self._lock:
            future = self._future
            if not self._state.is_running or future is None:
                return
            logger.info("Cancelling %s", self._algorithm_name)
            self._settle(future, error=AlgorithmRunnerError("Algorithm cancelled by user", RunnerErrorCode.CANCELLED))

    def clear_error(self) -> None:
        with self._lock:
            self._set_state(replace(self._state, error=None))

    def close(self) -> None:
        self.cancel()

    def __enter__(self) -> "AlgorithmRunner":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _handle_message(self, future: Future, response: WorkerResponse) -> None:
        if isinstance(response, SuccessResponse):
            with self._lock:
                if self._settle(future, result=response.result):
                    logger.debug("%s finished in %.1fms", self._algorithm_name, response.result.performance.runtime)
            return
        logger.warning("Algorithm failed: %s", response.error)
        self._fail(future, response.error)

    def _handle_fault(self, future: Future, message: str) -> None:
        message = message or "Unknown worker error"
        logger.error("Worker error: %s", message)
        self._fail(future, message)

    def _handle_timeout(self, future: Future, timeout: float) -> None:
        message = f"Algorithm timed out after {_format_ms(timeout)}ms"
        with self._lock:
            if future is self._future:
                logger.warning("%s: %s", self._algorithm_name, message)
            self._settle(future, error=AlgorithmRunnerError(message, RunnerErrorCode.TIMEOUT), state_error=message)

    def _fail(self, future: Future, message: str) -> None:
        self._settle(
            future,
            error=AlgorithmRunnerError(message, RunnerErrorCode.WORKER_ERROR),
            state_error=message,
        )

    def _settle(
        self,
        future: Future,
        result: Optional[Result] = None,
        error: Optional[AlgorithmRunnerError] = None,
        state_error: Optional[str] = None,
    ) -> bool:
        """Settle ``future`` if it is still the active run; returns whether it did."""
        with self._lock:
            if future is not self._future:
                return False
            self._teardown()
            self._set_state(RunnerState(is_running=False, can_cancel=False, error=state_error))
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)
            return True

    def _teardown(self) -> None:
        timer, worker = self._timer, self._worker
        self._timer = None
        self._worker = None
        self._future = None
        if timer is not None:
            timer.cancel()
        if worker is not None:
            try:
                worker.terminate()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to terminate worker for %s", self._algorithm_name)

    def _set_state(self, state: RunnerState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                logger.exception("Runner state listener failed")


def create_algorithm_runner(
    worker_factory: WorkerFactory = ProcessWorker,
    timer_factory: TimerFactory = daemon_timer,
) -> AlgorithmRunner:
    return AlgorithmRunner(worker_factory=worker_factory, timer_factory=timer_factory)


__all__ = [
    "AlgorithmRunner",
    "RunOptions",
    "RunnerState",
    "TimerFactory",
    "WorkerFactory",
    "create_algorithm_runner",
    "daemon_timer",
]

from __future__ import annotations

import pathlib
import sys
from typing import Callable, List, Optional

import numpy as np
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from TSPLab.models import Graph
from TSPLab.runner.messages import RunRequest, WorkerResponse


class FakeWorker:
    """In-memory worker: records requests and lets the test push responses."""

    def __init__(self) -> None:
        self.on_message: Optional[Callable[[WorkerResponse], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.requests: List[RunRequest] = []
        self.terminated = False
        self.fail_on_post: Optional[Exception] = None

    def post_message(self, request: RunRequest) -> None:
        if self.fail_on_post is not None:
            raise self.fail_on_post
        self.requests.append(request)

    def terminate(self) -> None:
        self.terminated = True

    def respond(self, response: WorkerResponse) -> None:
        assert self.on_message is not None
        self.on_message(response)

    def fault(self, message: str) -> None:
        assert self.on_error is not None
        self.on_error(message)


class FakeTimer:
    """Timer that only fires when the test calls :meth:`fire`."""

    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function()


class WorkerPool:
    """Factory handing out a fresh :class:`FakeWorker` per run."""

    def __init__(self) -> None:
        self.workers: List[FakeWorker] = []

    def __call__(self) -> FakeWorker:
        worker = FakeWorker()
        self.workers.append(worker)
        return worker

    @property
    def last(self) -> FakeWorker:
        return self.workers[-1]


class TimerPool:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


@pytest.fixture
def workers() -> WorkerPool:
    return WorkerPool()


@pytest.fixture
def timers() -> TimerPool:
    return TimerPool()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(7)


@pytest.fixture
def square() -> Graph:
    return Graph.from_coordinates([(0, 0), (1, 0), (1, 1), (0, 1)])


@pytest.fixture
def shuffled_square() -> Graph:
    # Crossing order: the nearest-neighbour tour from node 1 is already optimal,
    # but the raw order is not.
    return Graph.from_coordinates([(0, 0), (1, 1), (1, 0), (0, 1)])


@pytest.fixture
def random_graph() -> Graph:
    coords = np.random.default_rng(2024).random((12, 2)) * 100
    return Graph.from_coordinates(coords.tolist())

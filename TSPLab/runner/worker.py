from __future__ import annotations

import logging
import multiprocessing as mp
import threading
from multiprocessing.connection import Connection, wait
from typing import Any, Callable, Dict, Mapping, Optional

from TSPLab.runner.messages import (
    REQUEST_RUN,
    ErrorResponse,
    RunRequest,
    SuccessResponse,
    WorkerResponse,
    decode_response,
    encode_response,
)
from TSPLab.solvers import find_solver

logger = logging.getLogger(__name__)


def handle_request(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Run one request payload and return the response payload.

    Never raises: unknown message types, unknown algorithms and solver faults
    all come back as error responses.
    """
    message_type = payload.get("type")
    if message_type != REQUEST_RUN:
        logger.warning("Unknown message type: %s", message_type)
        return encode_response(ErrorResponse(error=f"Unknown message type: {message_type}"))

    algorithm_name = payload.get("algorithm_name")
    try:
        request = RunRequest.from_payload(payload)
        spec = find_solver(request.algorithm_name)
        if spec is None:
            logger.info("Algorithm not found: %s", request.algorithm_name)
            return encode_response(ErrorResponse(error=f"Algorithm not found: {request.algorithm_name}"))
        result = spec.create().solve(request.graph, request.config)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Solver %s failed", algorithm_name)
        return encode_response(ErrorResponse(error=str(exc) or type(exc).__name__))
    return encode_response(SuccessResponse(result=result))


def _worker_main(payload: Dict[str, Any], connection: Connection) -> None:
    try:
        connection.send(handle_request(payload))
    finally:
        connection.close()


class ProcessWorker:
    """Isolated execution context: one child process per request.

    The solver runs in the child so a tight CPU loop never blocks the caller.
    ``terminate`` kills the child outright; there is no cooperative exit.
    Responses are delivered from a listener thread through ``on_message``;
    a child that dies without answering is reported through ``on_error``.
    """

    poll_interval = 0.05
    # Never fork: the parent process runs timer and listener threads.
    start_method = "spawn"

    def __init__(self, context: Optional[mp.context.BaseContext] = None):
        self._context = context or mp.get_context(self.start_method)
        self.on_message: Optional[Callable[[WorkerResponse], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self._process: Optional[mp.process.BaseProcess] = None
        self._connection: Optional[Connection] = None
        self._stopped = threading.Event()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    def is_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def post_message(self, request: RunRequest) -> None:
        if self._process is not None:
            raise RuntimeError("ProcessWorker accepts a single request")
        receiver, sender = self._context.Pipe(duplex=False)
        process = self._context.Process(
            target=_worker_main,
            args=(request.to_payload(), sender),
            name=f"tsplab-{request.algorithm_name}",
            daemon=True,
        )
        process.start()
        sender.close()
        self._process = process
        self._connection = receiver
        listener = threading.Thread(target=self._listen, name=f"{process.name}-listener", daemon=True)
        listener.start()

    def terminate(self) -> None:
        self._stopped.set()
        process = self._process
        if process is None or not process.is_alive():
            return
        process.terminate()
        process.join(timeout=1.0)
        if process.is_alive():
            process.kill()
            process.join()

    def _listen(self) -> None:
        process, connection = self._process, self._connection
        try:
            while not self._stopped.is_set():
                ready = wait([connection, process.sentinel], timeout=self.poll_interval)
                if not ready:
                    continue
                if connection in ready:
                    try:
                        payload = connection.recv()
                    except (EOFError, OSError):
                        payload = None
                    if payload is not None:
                        self._deliver(payload)
                        return
                process.join()
                self._fail(f"Worker exited without result (exit code {process.exitcode})")
                return
        finally:
            connection.close()

    def _deliver(self, payload: Mapping[str, Any]) -> None:
        try:
            response = decode_response(payload)
        except (KeyError, TypeError, ValueError) as exc:
            self._fail(f"Malformed worker response: {exc}")
            return
        if self._stopped.is_set() or self.on_message is None:
            return
        self.on_message(response)

    def _fail(self, message: str) -> None:
        if self._stopped.is_set() or self.on_error is None:
            return
        self.on_error(message)


__all__ = ["ProcessWorker", "handle_request"]

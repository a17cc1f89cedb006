from __future__ import annotations

from enum import Enum


class RunnerErrorCode(str, Enum):
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    WORKER_ERROR = "WORKER_ERROR"


class AlgorithmRunnerError(Exception):
    """Failure settling a run: timed out, cancelled or failed in the worker."""

    def __init__(self, message: str, code: RunnerErrorCode | str):
        super().__init__(message)
        self.message = message
        self.code = RunnerErrorCode(code)

    def __repr__(self) -> str:
        return f"AlgorithmRunnerError({self.message!r}, code={self.code.value})"


__all__ = ["AlgorithmRunnerError", "RunnerErrorCode"]

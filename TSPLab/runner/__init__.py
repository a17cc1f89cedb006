from TSPLab.runner.errors import AlgorithmRunnerError, RunnerErrorCode
from TSPLab.runner.messages import ErrorResponse, RunRequest, SuccessResponse, WorkerResponse
from TSPLab.runner.runner import AlgorithmRunner, RunOptions, RunnerState, create_algorithm_runner
from TSPLab.runner.worker import ProcessWorker, handle_request

__all__ = [
    "AlgorithmRunner",
    "AlgorithmRunnerError",
    "ErrorResponse",
    "ProcessWorker",
    "RunOptions",
    "RunRequest",
    "RunnerErrorCode",
    "RunnerState",
    "SuccessResponse",
    "WorkerResponse",
    "create_algorithm_runner",
    "handle_request",
]

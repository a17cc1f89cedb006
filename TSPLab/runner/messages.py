"""Plain-dict envelope for requests sent to a worker and the responses it returns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from TSPLab.models import Graph, Result

REQUEST_RUN = "run"
RESPONSE_SUCCESS = "success"
RESPONSE_ERROR = "error"


@dataclass(frozen=True)
class RunRequest:
    algorithm_name: str
    graph: Graph
    config: Optional[Dict[str, Any]] = None
    type: str = REQUEST_RUN

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "algorithm_name": self.algorithm_name,
            "graph": self.graph.to_dict(),
            "config": dict(self.config) if self.config is not None else None,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RunRequest":
        config = payload.get("config")
        return cls(
            algorithm_name=payload["algorithm_name"],
            graph=Graph.from_dict(payload.get("graph") or {}),
            config=dict(config) if config is not None else None,
            type=payload.get("type", REQUEST_RUN),
        )


@dataclass(frozen=True)
class SuccessResponse:
    result: Result
    type: str = RESPONSE_SUCCESS


@dataclass(frozen=True)
class ErrorResponse:
    error: str
    type: str = RESPONSE_ERROR


WorkerResponse = Union[SuccessResponse, ErrorResponse]


def encode_response(response: WorkerResponse) -> Dict[str, Any]:
    if isinstance(response, SuccessResponse):
        return {"type": RESPONSE_SUCCESS, "result": response.result.to_dict()}
    return {"type": RESPONSE_ERROR, "error": response.error}


def decode_response(payload: Mapping[str, Any]) -> WorkerResponse:
    kind = payload.get("type")
    if kind == RESPONSE_SUCCESS:
        return SuccessResponse(result=Result.from_dict(payload["result"]))
    if kind == RESPONSE_ERROR:
        return ErrorResponse(error=str(payload.get("error", "")))
    raise ValueError(f"Unknown response type: {kind}")


__all__ = [
    "ErrorResponse",
    "REQUEST_RUN",
    "RESPONSE_ERROR",
    "RESPONSE_SUCCESS",
    "RunRequest",
    "SuccessResponse",
    "WorkerResponse",
    "decode_response",
    "encode_response",
]

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

NODE_FIELDS = ("id", "x", "y")
EDGE_FIELDS = ("id", "from", "to", "weight")


@dataclass(frozen=True)
class Node:
    """A point of the graph.

    ``attrs`` carries any extra fields supplied by the caller (a display name,
    a colour, ...). Solvers never read it; it only travels with the node.
    """

    id: int
    x: float
    y: float
    attrs: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.attrs, "id": self.id, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Node":
        missing = [key for key in NODE_FIELDS if key not in data]
        if missing:
            raise ValueError(f"Node is missing required fields: {', '.join(missing)}")
        attrs = {key: value for key, value in data.items() if key not in NODE_FIELDS}
        return cls(id=data["id"], x=float(data["x"]), y=float(data["y"]), attrs=attrs)


@dataclass(frozen=True)
class Edge:
    """Display edge between two graph-owned nodes."""

    id: int
    source: Node
    target: Node
    weight: Optional[float] = None
    attrs: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {**self.attrs, "id": self.id, "from": self.source.to_dict(), "to": self.target.to_dict()}
        if self.weight is not None:
            data["weight"] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Edge":
        attrs = {key: value for key, value in data.items() if key not in EDGE_FIELDS}
        weight = data.get("weight")
        return cls(
            id=data["id"],
            source=Node.from_dict(data["from"]),
            target=Node.from_dict(data["to"]),
            weight=float(weight) if weight is not None else None,
            attrs=attrs,
        )


@dataclass
class Graph:
    """Ordered nodes plus the edges of the last displayed tour.

    Edges must reference nodes that are still in ``nodes``; use
    :meth:`without_node` when deleting so stale edges are pruned.
    """

    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def node_ids(self) -> List[int]:
        return [node.id for node in self.nodes]

    def without_node(self, node_id: int) -> "Graph":
        nodes = [node for node in self.nodes if node.id != node_id]
        edges = [edge for edge in self.edges if node_id not in (edge.source.id, edge.target.id)]
        return Graph(nodes=nodes, edges=edges)

    def with_tour(self, path: Sequence[Node]) -> "Graph":
        return Graph(nodes=list(self.nodes), edges=edges_from_path(path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Graph":
        return cls(
            nodes=[Node.from_dict(item) for item in data.get("nodes") or []],
            edges=[Edge.from_dict(item) for item in data.get("edges") or []],
        )

    @classmethod
    def from_coordinates(cls, coordinates: Iterable[Sequence[float]], start_id: int = 1) -> "Graph":
        nodes = [Node(id=start_id + idx, x=float(x), y=float(y)) for idx, (x, y) in enumerate(coordinates)]
        return cls(nodes=nodes)


@dataclass(frozen=True)
class Performance:
    distance: float
    runtime: float
    reads: int
    writes: int

    def to_dict(self) -> Dict[str, Any]:
        return {"distance": self.distance, "runtime": self.runtime, "reads": self.reads, "writes": self.writes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Performance":
        return cls(
            distance=float(data["distance"]),
            runtime=float(data["runtime"]),
            reads=int(data["reads"]),
            writes=int(data["writes"]),
        )


@dataclass(frozen=True)
class Result:
    """Outcome of one solve call.

    ``path`` is closed (its last node repeats the first) whenever it holds two
    or more distinct nodes.
    """

    path: Tuple[Node, ...]
    performance: Performance

    @property
    def distance(self) -> float:
        return self.performance.distance

    @property
    def node_ids(self) -> List[int]:
        return [node.id for node in self.path]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": [node.to_dict() for node in self.path],
            "performance": self.performance.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Result":
        return cls(
            path=tuple(Node.from_dict(item) for item in data.get("path") or []),
            performance=Performance.from_dict(data["performance"]),
        )


def edges_from_path(path: Sequence[Node]) -> List[Edge]:
    """Display edges for consecutive nodes of a (closed) tour."""
    return [
        Edge(id=idx, source=path[idx], target=path[idx + 1])
        for idx in range(len(path) - 1)
    ]


__all__ = ["Edge", "Graph", "Node", "Performance", "Result", "edges_from_path"]

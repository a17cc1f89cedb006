#!/usr/bin/env python3
from __future__ import annotations

import argparse
import hashlib
import json
import pathlib
from datetime import datetime, timezone
from typing import Iterable

import numpy as np


def create_graph(num_nodes: int, rng: np.random.Generator, scale: float) -> dict:
    coordinates = np.round(rng.random((num_nodes, 2)) * scale, 3)
    digest = hashlib.sha1(coordinates.tobytes()).hexdigest()
    nodes = [{"id": idx + 1, "x": float(x), "y": float(y)} for idx, (x, y) in enumerate(coordinates)]
    return {
        "graph_id": digest,
        "num_nodes": num_nodes,
        "graph": {"nodes": nodes, "edges": []},
        "scale": scale,
    }


def parse_args(raw_args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate random point graphs for the TSP heuristics.")
    parser.add_argument(
        "--counts",
        nargs="+",
        type=int,
        default=[5, 8, 10, 20, 50, 100],
        help="Node counts to generate.",
    )
    parser.add_argument(
        "--instances-per-count",
        type=int,
        default=5,
        help="How many graphs to generate per node count.",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=500.0,
        help="Coordinates drawn uniformly in [0, scale).",
    )
    parser.add_argument(
        "--output",
        type=pathlib.Path,
        default=pathlib.Path("data/graphs.jsonl"),
        help="Destination JSONL file.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42).")
    return parser.parse_args(raw_args)


def main(raw_args: Iterable[str] | None = None) -> None:
    args = parse_args(raw_args)
    rng = np.random.default_rng(args.seed)

    timestamp = datetime.now(timezone.utc).isoformat()
    args.output.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    with args.output.open("w", encoding="utf-8") as fh:
        for count in args.counts:
            for _ in range(args.instances_per_count):
                record = {
                    "created_at": timestamp,
                    "seed": args.seed,
                    **create_graph(count, rng, args.scale),
                }
                fh.write(json.dumps(record))
                fh.write("\n")
                written += 1
    print(f"Wrote {written} graphs to {args.output}")


if __name__ == "__main__":
    main()

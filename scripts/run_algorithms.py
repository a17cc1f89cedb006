#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import Iterable, Iterator

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from TSPLab import AlgorithmRunnerError, Arena, Graph, Result, get_solver_names


def parse_args(raw_args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run TSP heuristics on generated graphs.")
    parser.add_argument(
        "--graphs",
        type=pathlib.Path,
        default=pathlib.Path("data/graphs.jsonl"),
        help="JSONL file containing graphs.",
    )
    parser.add_argument(
        "--results",
        type=pathlib.Path,
        default=pathlib.Path("data/results.jsonl"),
        help="Destination JSONL file for run outcomes.",
    )
    parser.add_argument(
        "--algorithms",
        nargs="+",
        choices=get_solver_names(),
        help="Subset of algorithms to execute (default: all).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5000.0,
        help="Per-algorithm timeout in milliseconds (0 disables it).",
    )
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        help="JSON file mapping algorithm name to its config options.",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Re-run algorithms even if results already exist for a graph.",
    )
    return parser.parse_args(raw_args)


def iter_jsonl(path: pathlib.Path) -> Iterator[dict]:
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def load_existing_results(path: pathlib.Path) -> set[tuple[str, str]]:
    seen: set[tuple[str, str]] = set()
    if not path.exists():
        return seen
    for row in iter_jsonl(path):
        gid = row.get("graph_id")
        algo = row.get("algorithm")
        if gid and algo:
            seen.add((gid, algo))
    return seen


def load_configs(path: pathlib.Path | None) -> dict[str, dict]:
    if path is None:
        return {}
    with path.open("r", encoding="utf-8") as fh:
        configs = json.load(fh)
    if not isinstance(configs, dict):
        raise SystemExit(f"Config file must hold a JSON object: {path}")
    return configs


def serialize_outcome(record: dict, algorithm: str, outcome: Result | AlgorithmRunnerError) -> dict:
    row = {
        "algorithm": algorithm,
        "graph_id": record["graph_id"],
        "num_nodes": record.get("num_nodes"),
    }
    if isinstance(outcome, AlgorithmRunnerError):
        row.update({"status": outcome.code.value.lower(), "error": outcome.message})
        return row
    row.update({"status": "complete", **outcome.performance.to_dict(), "path": outcome.node_ids})
    return row


def main(raw_args: Iterable[str] | None = None) -> int:
    args = parse_args(raw_args)
    if not args.graphs.exists():
        raise SystemExit(f"Graph file not found: {args.graphs}")

    selected = args.algorithms or get_solver_names()
    configs = load_configs(args.config)
    existing = set() if args.overwrite else load_existing_results(args.results)
    args.results.parent.mkdir(parents=True, exist_ok=True)
    appended = 0

    with Arena() as arena, args.results.open("a", encoding="utf-8") as out:
        for record in iter_jsonl(args.graphs):
            graph_id = record["graph_id"]
            pending = [name for name in selected if (graph_id, name) not in existing]
            if not pending:
                print(f"graph {graph_id} (nodes={record.get('num_nodes')}) -> cached")
                continue
            graph = Graph.from_dict(record["graph"])
            outcomes = arena.solve_all(graph, configs=configs, timeout=args.timeout, algorithms=pending)
            for name, outcome in outcomes.items():
                row = serialize_outcome(record, name, outcome)
                out.write(json.dumps(row))
                out.write("\n")
                appended += 1
                print(f"{name} on graph {graph_id} (nodes={len(graph)}) -> {row['status']}")

        print("\n================ LEADERBOARD ================\n")
        header = f"{'algorithm':>20} | {'distance':>12} | {'runtime (ms)':>12} | {'reads':>12} | {'writes':>12}"
        print(header)
        print("-" * len(header))
        for entry in arena.leaderboard.entries(sort_by="distance"):
            perf = entry.performance
            print(
                f"{entry.algorithm_name:>20} | {perf.distance:12.3f} | {perf.runtime:12.2f} | "
                f"{perf.reads:12d} | {perf.writes:12d}"
            )

    print(f"Completed {appended} new runs.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

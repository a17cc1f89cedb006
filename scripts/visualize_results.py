#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import pathlib
from typing import Iterable, List

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


def parse_args(raw_args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare TSP heuristic runs and draw the best tours.")
    parser.add_argument(
        "--results",
        type=pathlib.Path,
        default=pathlib.Path("data/results.jsonl"),
        help="Input JSONL file with algorithm runs.",
    )
    parser.add_argument(
        "--graphs",
        type=pathlib.Path,
        default=pathlib.Path("data/graphs.jsonl"),
        help="Graph JSONL file, needed to draw tours.",
    )
    parser.add_argument(
        "--figure",
        type=pathlib.Path,
        default=pathlib.Path("data/results.png"),
        help="Destination for the comparison plot (PNG).",
    )
    parser.add_argument(
        "--tour",
        metavar="GRAPH_ID",
        help="Also draw the shortest recorded tour of this graph.",
    )
    return parser.parse_args(raw_args)


def load_records(path: pathlib.Path) -> List[dict]:
    records: List[dict] = []
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            records.append(json.loads(line))
    return records


def to_frame(records: List[dict]) -> pd.DataFrame:
    df = pd.DataFrame(records)
    for col in ["num_nodes", "distance", "runtime", "reads", "writes"]:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def print_summary(df: pd.DataFrame) -> None:
    completed = df[df["status"] == "complete"]
    if completed.empty:
        print("No completed runs to summarize.")
        return
    summary = (
        completed.groupby("algorithm")
        .agg(
            runs=("distance", "count"),
            avg_distance=("distance", "mean"),
            avg_runtime=("runtime", "mean"),
            avg_reads=("reads", "mean"),
            avg_writes=("writes", "mean"),
        )
        .sort_values("avg_distance")
        .reset_index()
    )
    for _, row in summary.iterrows():
        print(
            f"{row['algorithm']}: runs={int(row['runs'])} avg_distance={row['avg_distance']:.2f} "
            f"avg_runtime={row['avg_runtime']:.2f}ms reads={row['avg_reads']:.0f} writes={row['avg_writes']:.0f}"
        )
    failures = df[df["status"] != "complete"]
    if not failures.empty:
        counts = failures.groupby(["algorithm", "status"]).size()
        for (algorithm, status), count in counts.items():
            print(f"{algorithm}: {count} run(s) ended with {status}")


def plot_metrics(df: pd.DataFrame, output: pathlib.Path) -> None:
    completed = df[df["status"] == "complete"].copy()
    if completed.empty:
        raise SystemExit("No completed runs to plot.")

    sns.set_theme(style="whitegrid")
    fig, axes = plt.subplots(1, 3, figsize=(20, 6))
    panels = [
        ("distance", "Tour Distance by Node Count", "Distance"),
        ("runtime", "Runtime by Node Count", "Runtime (ms)"),
        ("reads", "Reads by Node Count", "Reads"),
    ]
    for ax, (column, title, ylabel) in zip(axes, panels):
        sns.lineplot(
            data=completed,
            x="num_nodes",
            y=column,
            hue="algorithm",
            estimator="mean",
            errorbar="sd",
            err_style="band",
            ax=ax,
        )
        ax.set_title(title)
        ax.set_xlabel("Number of Nodes")
        ax.set_ylabel(ylabel)
    axes[1].set_yscale("log")
    axes[2].set_yscale("log")

    handles, labels = axes[0].get_legend_handles_labels()
    for ax in axes:
        ax.get_legend().remove()
    fig.legend(handles, labels, loc="upper center", ncol=max(1, len(labels)))
    fig.tight_layout(rect=(0, 0, 1, 0.93))

    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output, dpi=200)
    print(f"Saved figure to {output}")


def render_tour(df: pd.DataFrame, graphs_path: pathlib.Path, graph_id: str, output: pathlib.Path) -> None:
    runs = df[(df["graph_id"] == graph_id) & (df["status"] == "complete")]
    if runs.empty:
        raise SystemExit(f"No completed runs for graph {graph_id}")
    best = runs.loc[runs["distance"].idxmin()]

    graph = next((row["graph"] for row in load_records(graphs_path) if row.get("graph_id") == graph_id), None)
    if graph is None:
        raise SystemExit(f"Graph {graph_id} not found in {graphs_path}")
    coords = {node["id"]: (node["x"], node["y"]) for node in graph["nodes"]}
    xs = [coords[node_id][0] for node_id in best["path"]]
    ys = [coords[node_id][1] for node_id in best["path"]]

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.plot(xs, ys, "-", color="tab:blue", linewidth=1.5)
    ax.scatter([x for x, _ in coords.values()], [y for _, y in coords.values()], color="tab:red", zorder=3)
    ax.set_title(f"{best['algorithm']} - distance {best['distance']:.2f}")
    ax.set_aspect("equal")
    fig.tight_layout()

    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output, dpi=200)
    print(f"Saved tour to {output}")


def main(raw_args: Iterable[str] | None = None) -> None:
    args = parse_args(raw_args)
    if not args.results.exists():
        raise SystemExit(f"No results file found at {args.results}")
    records = load_records(args.results)
    if not records:
        raise SystemExit("Results file is empty.")
    df = to_frame(records)
    print_summary(df)
    plot_metrics(df, args.figure)
    if args.tour:
        render_tour(df, args.graphs, args.tour, args.figure.with_name(f"tour_{args.tour[:12]}.png"))


if __name__ == "__main__":
    main()

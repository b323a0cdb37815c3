"""Command line helper for graph files.

Usage:
  grapheditor-tool info graph.json
  grapheditor-tool path graph.json N0 N7
  grapheditor-tool export graph.json --out graph.png
  grapheditor-tool verify graph.json

START and END may be node ids or display names.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from grapheditor.codec import GraphFileError, load
from grapheditor.graph import GraphStore, Node
from grapheditor.pathfinder import find_path

logger = logging.getLogger(__name__)


def _open_graph(path: str) -> GraphStore:
    graph = GraphStore()
    load(path).apply_to(graph)
    return graph


def _resolve(graph: GraphStore, ref: str) -> Optional[Node]:
    node = graph.find_by_id(ref)
    if node:
        return node
    for candidate in graph.nodes:
        if candidate.name == ref:
            return candidate
    return None


def _cmd_info(args: argparse.Namespace) -> int:
    graph = _open_graph(args.file)
    isolated = sum(1 for n in graph.nodes if next(graph.neighbors(n.handle), None) is None)
    print(f"Graph: {Path(args.file).resolve()}")
    print(f"  Nodes: {len(graph)}")
    print(f"  Edges: {graph.edge_count}")
    print(f"  Isolated nodes: {isolated}")
    print(f"  Total weight: {graph.total_weight():.3f}")
    return 0


def _cmd_path(args: argparse.Namespace) -> int:
    graph = _open_graph(args.file)
    start = _resolve(graph, args.start)
    end = _resolve(graph, args.end)
    for ref, node in ((args.start, start), (args.end, end)):
        if node is None:
            print(f"Unknown node: {ref}", file=sys.stderr)
            return 2

    result = find_path(graph.snapshot(), start.handle, end.handle)
    if not result.found:
        print(f"No path from {start.name} to {end.name}")
        return 1

    names = [graph.node(h).name for h in result.nodes]
    print(" -> ".join(names))
    print(f"Cost: {result.cost:.3f}")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    # Imported lazily so the other commands work without cairo installed.
    from grapheditor.export import GraphExporter

    graph = _open_graph(args.file)
    exporter = GraphExporter(show_grid=args.grid)
    kwargs = {"scale": args.scale} if args.scale else {}
    try:
        ok = exporter.export(graph, args.out, **kwargs)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    if not ok:
        print("Nothing to export: the graph is empty", file=sys.stderr)
        return 1
    print(f"Wrote {Path(args.out).resolve()}")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    decoded = load(args.file)
    print(f"Graph file OK: {len(decoded.nodes)} nodes, {len(decoded.edges)} edges")
    if decoded.dropped_edges:
        print(f"  Dropped edges: {decoded.dropped_edges}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="grapheditor-tool")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_info = sub.add_parser("info", help="Show graph statistics")
    p_info.add_argument("file", help="Graph .json file")
    p_info.set_defaults(func=_cmd_info)

    p_path = sub.add_parser("path", help="Find the shortest path between two nodes")
    p_path.add_argument("file", help="Graph .json file")
    p_path.add_argument("start", help="Start node id or name")
    p_path.add_argument("end", help="End node id or name")
    p_path.set_defaults(func=_cmd_path)

    p_exp = sub.add_parser("export", help="Render the graph to PNG, SVG or PDF")
    p_exp.add_argument("file", help="Graph .json file")
    p_exp.add_argument("--out", required=True, help="Output path (.png, .svg or .pdf)")
    p_exp.add_argument("--scale", type=float, help="PNG pixel scale (default 2.0)")
    p_exp.add_argument("--grid", action="store_true", help="Draw the dot grid")
    p_exp.set_defaults(func=_cmd_export)

    p_ver = sub.add_parser("verify", help="Validate a graph file")
    p_ver.add_argument("file", help="Graph .json file")
    p_ver.set_defaults(func=_cmd_verify)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return int(args.func(args))
    except GraphFileError as exc:
        logger.debug("Graph file error", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

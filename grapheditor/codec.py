"""JSON persistence for graphs.

A graph file holds two ordered lists:

    {"nodes": [{"id": "N0", "name": "N0", "x": 0.0, "y": 0.0}, ...],
     "edges": [{"aId": "N0", "bId": "N1"}, ...]}

Edge weights are not stored; they are recomputed from node positions when
the file is loaded, so an edge whose endpoint moved after it was created
comes back with the current distance rather than its old weight.
"""

import json
import logging
import math
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from grapheditor.graph import GraphStore

logger = logging.getLogger(__name__)

GRAPH_SUFFIX = ".json"

PathLike = Union[str, os.PathLike]


class GraphFileError(Exception):
    """A graph file could not be read, parsed or written."""

    def __init__(self, message: str, path: Any = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class DecodedGraph:
    """Validated graph data, detached from any store."""
    nodes: Tuple[Tuple[str, str, float, float], ...]
    edges: Tuple[Tuple[str, str], ...]
    dropped_edges: int = 0

    def apply_to(self, graph: GraphStore):
        graph.reset(self.nodes, self.edges)


def with_suffix(path: PathLike) -> Path:
    """Append the canonical suffix unless the name already ends with it."""
    path = Path(path)
    if path.name.lower().endswith(GRAPH_SUFFIX):
        return path
    return path.with_name(path.name + GRAPH_SUFFIX)


def encode(graph: GraphStore) -> Dict[str, List[Dict[str, Any]]]:
    by_handle = {node.handle: node.id for node in graph.nodes}
    return {
        "nodes": [
            {"id": n.id, "name": n.name, "x": n.x, "y": n.y}
            for n in graph.nodes
        ],
        "edges": [
            {"aId": by_handle[e.a], "bId": by_handle[e.b]}
            for e in graph.edges
        ],
    }


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise GraphFileError(f"{what} must be a number")
    try:
        number = float(value)
    except OverflowError as exc:
        raise GraphFileError(f"{what} is out of range") from exc
    if not math.isfinite(number):
        raise GraphFileError(f"{what} must be finite")
    return number


def decode(data: Any) -> DecodedGraph:
    """Validate a parsed graph record.

    Structural problems raise GraphFileError. Edges that name an unknown
    node, connect a node to itself or repeat an existing pair are dropped
    without error so partially damaged files still open.
    """
    if not isinstance(data, dict):
        raise GraphFileError("graph record must be an object")
    raw_nodes = data.get("nodes")
    raw_edges = data.get("edges", [])
    if not isinstance(raw_nodes, list):
        raise GraphFileError("'nodes' must be a list")
    if not isinstance(raw_edges, list):
        raise GraphFileError("'edges' must be a list")

    nodes: List[Tuple[str, str, float, float]] = []
    seen = set()
    for index, item in enumerate(raw_nodes):
        if not isinstance(item, dict):
            raise GraphFileError(f"node #{index} must be an object")
        node_id = item.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise GraphFileError(f"node #{index} has no id")
        if node_id in seen:
            raise GraphFileError(f"duplicate node id {node_id!r}")
        seen.add(node_id)
        name = item.get("name", node_id)
        if not isinstance(name, str):
            raise GraphFileError(f"node {node_id!r} name must be a string")
        x = _number(item.get("x"), f"node {node_id!r} x")
        y = _number(item.get("y"), f"node {node_id!r} y")
        nodes.append((node_id, name, x, y))

    edges: List[Tuple[str, str]] = []
    pairs = set()
    dropped = 0
    for index, item in enumerate(raw_edges):
        if not isinstance(item, dict):
            raise GraphFileError(f"edge #{index} must be an object")
        a_id, b_id = item.get("aId"), item.get("bId")
        known = isinstance(a_id, str) and isinstance(b_id, str) \
            and a_id in seen and b_id in seen
        pair = frozenset((a_id, b_id)) if known and a_id != b_id else None
        if pair is None or pair in pairs:
            logger.debug("Dropping edge #%d (%r, %r)", index, a_id, b_id)
            dropped += 1
            continue
        pairs.add(pair)
        edges.append((a_id, b_id))

    return DecodedGraph(tuple(nodes), tuple(edges), dropped)


def _file_mode(target: Path) -> int:
    """Mode for a saved file: keep an existing file's, else honour the umask."""
    try:
        return stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def save(graph: GraphStore, path: PathLike) -> Path:
    """Write `graph` to `path` and return the path actually written.

    The file is written next to the target and moved into place, so a
    failed write leaves any existing file intact.
    """
    target = with_suffix(path)
    payload = json.dumps(encode(graph), indent=2)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".graph-", suffix=".tmp",
                                        dir=str(target.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.chmod(tmp_name, _file_mode(target))
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise GraphFileError(f"Could not write {target}: {exc}", target) from exc

    logger.info("Saved %d nodes and %d edges to %s",
                len(graph), graph.edge_count, target)
    return target


def load(path: PathLike) -> DecodedGraph:
    """Read and validate a graph file without touching any live graph."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise GraphFileError(f"{path} is not UTF-8 text: {exc}", path) from exc
    except OSError as exc:
        raise GraphFileError(f"Could not read {path}: {exc}", path) from exc

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise GraphFileError(f"{path} is not valid JSON: {exc}", path) from exc

    try:
        decoded = decode(data)
    except GraphFileError as exc:
        raise GraphFileError(f"{path}: {exc}", path) from exc

    if decoded.dropped_edges:
        logger.warning("Dropped %d unusable edge(s) while loading %s",
                       decoded.dropped_edges, path)
    return decoded

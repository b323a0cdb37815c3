"""In-memory graph store for the editor."""

import math
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple


_ID_PATTERN = re.compile(r"^N(\d+)$")


@dataclass
class Node:
    """A node on the world plane.

    `handle` is the arena index every other component uses to refer to the
    node; `id` is the user-visible, persisted identifier.
    """
    handle: int
    id: str
    name: str
    x: float
    y: float


@dataclass(frozen=True)
class Edge:
    """An undirected edge between two node handles.

    The weight is the distance between the endpoints when the edge was made
    and is not updated when either endpoint moves afterwards.
    """
    a: int
    b: int
    weight: float

    def other(self, handle: int) -> int:
        return self.b if handle == self.a else self.a

    def touches(self, handle: int) -> bool:
        return handle == self.a or handle == self.b


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable copy of the graph, safe to hand to another thread."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]

    def adjacency(self) -> Dict[int, List[Tuple[int, float]]]:
        """Map each handle to its (neighbor, weight) pairs in edge order."""
        adj: Dict[int, List[Tuple[int, float]]] = {n.handle: [] for n in self.nodes}
        for edge in self.edges:
            adj.setdefault(edge.a, []).append((edge.b, edge.weight))
            adj.setdefault(edge.b, []).append((edge.a, edge.weight))
        return adj


def distance(a: Node, b: Node) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def id_suffix(node_id: str) -> Optional[int]:
    """Return k for identifiers of the form ``N<k>``, else None."""
    match = _ID_PATTERN.match(node_id)
    return int(match.group(1)) if match else None


class GraphStore:
    """Owns nodes and edges and assigns identifiers.

    Nodes live in an arena keyed by handle. Handles come from their own
    monotonic sequence and are never reused, so a handle held by the
    selection or a path anchor can always be checked with `is_live`.
    """

    def __init__(self):
        self._nodes: Dict[int, Node] = {}
        self._edges: List[Edge] = []
        self._pairs: Set[FrozenSet[int]] = set()
        self._counter = 0
        self._next_handle = 0

    # ==================== Identifiers ====================

    @property
    def counter(self) -> int:
        """The value the next generated identifier will use."""
        return self._counter

    def next_id(self) -> str:
        """Generate a fresh ``N<k>`` identifier and advance the counter."""
        node_id = f"N{self._counter}"
        self._counter += 1
        return node_id

    def reseed(self, value: int):
        """Set the identifier counter."""
        if value < 0:
            raise ValueError("identifier counter cannot be negative")
        self._counter = value

    def _new_handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    # ==================== Queries ====================

    @property
    def nodes(self) -> List[Node]:
        """Live nodes in insertion order."""
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def node(self, handle: Optional[int]) -> Optional[Node]:
        if handle is None:
            return None
        return self._nodes.get(handle)

    def is_live(self, handle: Optional[int]) -> bool:
        return handle is not None and handle in self._nodes

    def find_by_id(self, node_id: str) -> Optional[Node]:
        for node in self._nodes.values():
            if node.id == node_id:
                return node
        return None

    def has_edge(self, a: int, b: int) -> bool:
        return frozenset((a, b)) in self._pairs

    def neighbors(self, handle: int) -> Iterator[Node]:
        """Yield nodes connected to `handle`, in edge-insertion order."""
        for edge in self._edges:
            if edge.touches(handle):
                yield self._nodes[edge.other(handle)]

    def total_weight(self) -> float:
        return sum(edge.weight for edge in self._edges)

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=tuple(Node(n.handle, n.id, n.name, n.x, n.y) for n in self._nodes.values()),
            edges=tuple(self._edges),
        )

    # ==================== Mutations ====================

    def add_node(self, x: float, y: float) -> Node:
        """Create a node at world position (x, y) with a fresh identifier."""
        node_id = self.next_id()
        node = Node(handle=self._new_handle(), id=node_id, name=node_id,
                    x=float(x), y=float(y))
        self._nodes[node.handle] = node
        return node

    def add_edge(self, a: int, b: int) -> Optional[Edge]:
        """Connect two nodes.

        Self-loops, unknown handles and pairs that are already connected in
        either orientation are no-ops and return None.
        """
        if a == b or not (self.is_live(a) and self.is_live(b)):
            return None
        pair = frozenset((a, b))
        if pair in self._pairs:
            return None
        edge = Edge(a, b, distance(self._nodes[a], self._nodes[b]))
        self._edges.append(edge)
        self._pairs.add(pair)
        return edge

    def move_node(self, handle: int, x: float, y: float):
        node = self._nodes.get(handle)
        if node:
            node.x = float(x)
            node.y = float(y)

    def rename_node(self, handle: int, name: str):
        node = self._nodes.get(handle)
        if node:
            node.name = name

    def remove_node(self, handle: int) -> Optional[Node]:
        """Remove a node together with its incident edges."""
        node = self._nodes.pop(handle, None)
        if node is None:
            return None
        kept = [e for e in self._edges if not e.touches(handle)]
        self._edges = kept
        self._pairs = {frozenset((e.a, e.b)) for e in kept}
        return node

    def clear(self):
        """Remove all nodes and edges. The identifier counter is kept."""
        self._nodes = {}
        self._edges = []
        self._pairs = set()

    def reset(self, nodes: Iterable[Tuple[str, str, float, float]],
              edges: Iterable[Tuple[str, str]]):
        """Replace the whole graph with loaded data.

        `nodes` are (id, name, x, y) records with unique ids; `edges` are
        (id, id) pairs that must reference those ids. Callers validate the
        data first. The counter is reseeded past the largest ``N<k>`` suffix
        so new nodes never collide with loaded ones.
        """
        new_nodes: Dict[int, Node] = {}
        by_id: Dict[str, int] = {}
        for node_id, name, x, y in nodes:
            handle = self._new_handle()
            new_nodes[handle] = Node(handle, node_id, name, float(x), float(y))
            by_id[node_id] = handle

        new_edges: List[Edge] = []
        pairs: Set[FrozenSet[int]] = set()
        for a_id, b_id in edges:
            a, b = by_id[a_id], by_id[b_id]
            pair = frozenset((a, b))
            if a == b or pair in pairs:
                continue
            new_edges.append(Edge(a, b, distance(new_nodes[a], new_nodes[b])))
            pairs.add(pair)

        suffixes = [s for s in (id_suffix(i) for i in by_id) if s is not None]
        self._nodes = new_nodes
        self._edges = new_edges
        self._pairs = pairs
        self._counter = max(suffixes) + 1 if suffixes else 0

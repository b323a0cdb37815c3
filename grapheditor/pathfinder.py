"""Shortest paths over a graph snapshot.

Dijkstra's algorithm with a binary heap and lazy deletion: a relaxation
pushes a new heap entry instead of updating the old one, and entries whose
distance is worse than the best known one are skipped when popped. That
keeps each push and pop at O(log n) for O((V + E) log V) overall. Entries
carry an insertion sequence number, so equal distances pop in FIFO order.
"""

import heapq
import itertools
import math
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from grapheditor.graph import GraphSnapshot


class PathSearchCancelled(Exception):
    """Raised when a search is cancelled before it completes."""


@dataclass(frozen=True)
class PathResult:
    """Handles along the path from start to goal, and the summed weight.

    An empty `nodes` tuple means no path exists.
    """
    nodes: Tuple[int, ...] = ()
    cost: float = math.inf

    @property
    def found(self) -> bool:
        return bool(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def segments(self) -> List[Tuple[int, int]]:
        return list(zip(self.nodes, self.nodes[1:]))


NO_PATH = PathResult()


def find_path(snapshot: GraphSnapshot, start: int, goal: int,
              cancel: Optional[threading.Event] = None) -> PathResult:
    """Return the least-cost path from `start` to `goal`.

    Edge costs are the stored edge weights. Unknown handles and unreachable
    goals give an empty result.
    """
    adjacency = snapshot.adjacency()
    if start not in adjacency or goal not in adjacency:
        return NO_PATH

    dist: Dict[int, float] = {handle: math.inf for handle in adjacency}
    prev: Dict[int, int] = {}
    dist[start] = 0.0

    sequence = itertools.count()
    frontier = [(0.0, next(sequence), start)]

    while frontier:
        if cancel is not None and cancel.is_set():
            raise PathSearchCancelled()

        d, _, u = heapq.heappop(frontier)
        if d > dist[u]:
            continue  # stale entry
        if u == goal:
            break

        for v, weight in adjacency[u]:
            alt = d + weight
            if alt < dist[v]:
                dist[v] = alt
                prev[v] = u
                heapq.heappush(frontier, (alt, next(sequence), v))

    if math.isinf(dist[goal]):
        return NO_PATH

    path = [goal]
    while path[-1] != start:
        path.append(prev[path[-1]])
    path.reverse()
    return PathResult(tuple(path), dist[goal])


@dataclass
class PathSearchTask:
    """A path search bound to a snapshot, runnable on a worker thread.

    `revision` records the graph revision the snapshot was taken at so the
    owner can discard results that arrive after the graph changed.
    """
    snapshot: GraphSnapshot
    start: int
    goal: int
    revision: int
    result: Optional[PathResult] = None
    _cancel: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self):
        self._cancel.set()

    def run(self) -> Optional[PathResult]:
        """Run the search. Returns None if the task was cancelled."""
        try:
            self.result = find_path(self.snapshot, self.start, self.goal, self._cancel)
        except PathSearchCancelled:
            self.result = None
        return self.result

"""
Path Finder Tests
=================

Shortest paths, unreachable goals and cancellable searches.
"""

import math
import threading

import pytest

from grapheditor.graph import GraphStore
from grapheditor.pathfinder import (
    NO_PATH, PathSearchCancelled, PathSearchTask, find_path,
)


def build(points, pairs):
    """Create a graph from (x, y) points and index pairs; return it with handles."""
    g = GraphStore()
    handles = [g.add_node(x, y).handle for x, y in points]
    for i, j in pairs:
        g.add_edge(handles[i], handles[j])
    return g, handles


class TestFindPath:

    def test_two_hop_path(self, triangle):
        """A(0,0)-B(3,0)-C(3,4) costs 3 + 4."""
        graph, (a, b, c, d) = triangle
        result = find_path(graph.snapshot(), a, c)
        assert result.nodes == (a, b, c)
        assert result.cost == pytest.approx(7.0)
        assert result.segments() == [(a, b), (b, c)]

    def test_isolated_goal_has_no_path(self, triangle):
        graph, (a, b, c, d) = triangle
        result = find_path(graph.snapshot(), a, d)
        assert result is NO_PATH
        assert not result.found
        assert len(result) == 0
        assert math.isinf(result.cost)

    def test_path_to_self(self, triangle):
        graph, (a, b, c, d) = triangle
        result = find_path(graph.snapshot(), d, d)
        assert result.nodes == (d,)
        assert result.cost == 0

    def test_unknown_handle(self, triangle):
        graph, (a, b, c, d) = triangle
        assert find_path(graph.snapshot(), a, 1234) is NO_PATH

    def test_edges_are_undirected(self, triangle):
        graph, (a, b, c, d) = triangle
        assert find_path(graph.snapshot(), c, a).nodes == (c, b, a)

    def test_prefers_cheaper_long_route(self):
        """Four short hops beat a two-hop detour with long edges."""
        graph, h = build(
            [(0, 0), (1, 1), (2, 0), (3, 1), (4, 0), (2, 50)],
            [(0, 1), (1, 2), (2, 3), (3, 4), (0, 5), (5, 4)],
        )
        result = find_path(graph.snapshot(), h[0], h[4])
        assert result.nodes == (h[0], h[1], h[2], h[3], h[4])
        assert result.cost == pytest.approx(4 * math.sqrt(2))

    def test_uses_stored_weights(self):
        """Moving a node after connecting it does not change path costs."""
        graph, h = build([(0, 0), (10, 0), (5, 1)], [(0, 1), (0, 2), (2, 1)])
        # Make the direct edge look short on screen; its weight stays 10.
        graph.move_node(h[1], 1, 0)
        result = find_path(graph.snapshot(), h[0], h[1])
        assert result.nodes == (h[0], h[1])
        assert result.cost == pytest.approx(10.0)

    def test_equal_costs_resolve_first_in_first_out(self):
        """A square has two equal routes; the one reached first wins."""
        graph, h = build([(0, 0), (1, 0), (1, 1), (0, 1)], [(0, 1), (1, 2), (0, 3), (3, 2)])
        for _ in range(5):
            assert find_path(graph.snapshot(), h[0], h[2]).nodes == (h[0], h[1], h[2])

    def test_equal_costs_follow_edge_order(self):
        """Inserting the other route first flips the answer."""
        graph, h = build([(0, 0), (1, 0), (1, 1), (0, 1)], [(0, 3), (3, 2), (0, 1), (1, 2)])
        assert find_path(graph.snapshot(), h[0], h[2]).nodes == (h[0], h[3], h[2])

    def test_large_chain(self):
        n = 2000
        graph, h = build([(i, 0) for i in range(n)], [(i, i + 1) for i in range(n - 1)])
        result = find_path(graph.snapshot(), h[0], h[-1])
        assert len(result) == n
        assert result.cost == pytest.approx(n - 1)


class TestCancellation:

    def test_cancel_event_stops_search(self, triangle):
        graph, (a, b, c, d) = triangle
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PathSearchCancelled):
            find_path(graph.snapshot(), a, c, cancel)

    def test_task_runs(self, triangle):
        graph, (a, b, c, d) = triangle
        task = PathSearchTask(graph.snapshot(), a, c, revision=3)
        result = task.run()
        assert result is task.result
        assert result.nodes == (a, b, c)
        assert not task.cancelled

    def test_cancelled_task_returns_none(self, triangle):
        graph, (a, b, c, d) = triangle
        task = PathSearchTask(graph.snapshot(), a, c, revision=0)
        task.cancel()
        assert task.cancelled
        assert task.run() is None
        assert task.result is None

    def test_task_on_worker_thread(self, triangle):
        graph, (a, b, c, d) = triangle
        task = PathSearchTask(graph.snapshot(), a, c, revision=0)
        worker = threading.Thread(target=task.run)
        worker.start()
        worker.join(timeout=5)
        assert task.result.cost == pytest.approx(7.0)

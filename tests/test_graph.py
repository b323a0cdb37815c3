"""
Graph Store Tests
=================

Node identifiers, edge rules and bulk replacement for GraphStore.
"""

import math

import pytest

from grapheditor.graph import GraphStore, id_suffix


class TestIdentifiers:

    def test_ids_count_up_from_zero(self, graph):
        """New nodes are named N0, N1, ... and default their name to the id."""
        nodes = [graph.add_node(i, i) for i in range(3)]
        assert [n.id for n in nodes] == ["N0", "N1", "N2"]
        assert [n.name for n in nodes] == ["N0", "N1", "N2"]
        assert graph.counter == 3

    def test_clear_keeps_counter(self, graph):
        """Identifiers keep increasing after the graph is cleared."""
        graph.add_node(0, 0)
        graph.add_node(1, 1)
        graph.clear()
        assert len(graph) == 0
        assert graph.add_node(0, 0).id == "N2"

    def test_reseed(self, graph):
        graph.reseed(40)
        assert graph.next_id() == "N40"
        assert graph.counter == 41

    def test_reseed_rejects_negative(self, graph):
        with pytest.raises(ValueError):
            graph.reseed(-1)

    def test_id_suffix(self):
        assert id_suffix("N12") == 12
        assert id_suffix("N") is None
        assert id_suffix("X3") is None
        assert id_suffix("N3a") is None

    def test_handles_are_not_reused(self, graph):
        """A removed node's handle never comes back."""
        first = graph.add_node(0, 0)
        graph.remove_node(first.handle)
        second = graph.add_node(0, 0)
        assert second.handle != first.handle
        assert not graph.is_live(first.handle)
        assert graph.is_live(second.handle)


class TestEdges:

    def test_edge_weight_is_distance_at_creation(self, graph):
        a = graph.add_node(0, 0)
        b = graph.add_node(3, 4)
        edge = graph.add_edge(a.handle, b.handle)
        assert edge.weight == pytest.approx(5.0)

    def test_edge_is_symmetric_and_idempotent(self, graph):
        """Connecting a-b then b-a yields exactly one edge."""
        a = graph.add_node(0, 0)
        b = graph.add_node(1, 0)
        assert graph.add_edge(a.handle, b.handle) is not None
        assert graph.add_edge(b.handle, a.handle) is None
        assert graph.add_edge(a.handle, b.handle) is None
        assert graph.edge_count == 1
        assert graph.has_edge(b.handle, a.handle)

    def test_self_loop_rejected(self, graph):
        a = graph.add_node(0, 0)
        assert graph.add_edge(a.handle, a.handle) is None
        assert graph.edge_count == 0

    def test_unknown_handle_rejected(self, graph):
        a = graph.add_node(0, 0)
        assert graph.add_edge(a.handle, 99) is None
        assert graph.edge_count == 0

    def test_weight_is_not_updated_by_moves(self, graph):
        """Moving an endpoint leaves the stored weight stale."""
        a = graph.add_node(0, 0)
        b = graph.add_node(3, 0)
        graph.add_edge(a.handle, b.handle)
        graph.move_node(b.handle, 30, 0)
        assert graph.edges[0].weight == pytest.approx(3.0)
        assert graph.node(b.handle).x == 30

    def test_neighbors(self, triangle):
        graph, (a, b, c, d) = triangle
        assert [n.handle for n in graph.neighbors(b)] == [a, c]
        assert list(graph.neighbors(d)) == []

    def test_total_weight(self, triangle):
        graph, _ = triangle
        assert graph.total_weight() == pytest.approx(7.0)


class TestRemoval:

    def test_remove_node_drops_incident_edges(self, triangle):
        graph, (a, b, c, d) = triangle
        removed = graph.remove_node(b)
        assert removed.id == "N1"
        assert len(graph) == 3
        assert graph.edge_count == 0
        # The pair index is rebuilt, so a-c can still be connected.
        assert graph.add_edge(a, c) is not None

    def test_remove_unknown_node(self, graph):
        assert graph.remove_node(5) is None

    def test_rename(self, graph):
        node = graph.add_node(0, 0)
        graph.rename_node(node.handle, "Home")
        assert graph.node(node.handle).name == "Home"
        assert graph.node(node.handle).id == "N0"
        assert graph.find_by_id("N0") is graph.node(node.handle)


class TestReset:

    def test_reset_replaces_graph(self, graph):
        graph.add_node(0, 0)
        graph.reset(
            [("N4", "a", 0.0, 0.0), ("N9", "b", 6.0, 8.0), ("hub", "c", 1.0, 1.0)],
            [("N4", "N9")],
        )
        assert [n.id for n in graph.nodes] == ["N4", "N9", "hub"]
        assert graph.edge_count == 1
        assert graph.edges[0].weight == pytest.approx(10.0)

    def test_reset_reseeds_past_largest_suffix(self, graph):
        """New ids never collide with loaded ones, even with gaps."""
        graph.reset([("N4", "a", 0, 0), ("N9", "b", 1, 1), ("hub", "c", 2, 2)], [])
        assert graph.counter == 10
        assert graph.add_node(0, 0).id == "N10"

    def test_reset_without_generated_ids_starts_at_zero(self, graph):
        graph.add_node(0, 0)
        graph.reset([("alpha", "alpha", 0, 0)], [])
        assert graph.counter == 0

    def test_reset_skips_loops_and_duplicate_pairs(self, graph):
        graph.reset(
            [("N0", "a", 0, 0), ("N1", "b", 1, 0)],
            [("N0", "N1"), ("N1", "N0"), ("N0", "N0")],
        )
        assert graph.edge_count == 1

    def test_reset_gives_fresh_handles(self, graph):
        old = graph.add_node(0, 0)
        graph.reset([("N0", "a", 0, 0)], [])
        assert not graph.is_live(old.handle)


class TestSnapshot:

    def test_snapshot_is_detached(self, triangle):
        """Later edits do not show up in an earlier snapshot."""
        graph, (a, b, c, d) = triangle
        snap = graph.snapshot()
        graph.move_node(a, 100, 100)
        graph.remove_node(c)
        assert len(snap.nodes) == 4
        assert len(snap.edges) == 2
        assert snap.nodes[0].x == 0

    def test_adjacency(self, triangle):
        graph, (a, b, c, d) = triangle
        adj = graph.snapshot().adjacency()
        assert adj[a] == [(b, pytest.approx(3.0))]
        assert sorted(h for h, _ in adj[b]) == [a, c]
        assert adj[d] == []
        assert math.isclose(sum(w for _, w in adj[c]), 4.0)

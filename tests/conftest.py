"""Shared fixtures for the graph editor tests."""

import pytest

from grapheditor.camera import Camera
from grapheditor.controller import InteractionController
from grapheditor.graph import GraphStore


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep settings, backups and exports out of the real home directory."""
    data_dir = tmp_path / "data"
    monkeypatch.setenv("GRAPHEDITOR_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def graph():
    return GraphStore()


@pytest.fixture
def triangle():
    """A(0,0), B(3,0), C(3,4) with edges A-B (3) and B-C (4), plus isolated D."""
    g = GraphStore()
    a = g.add_node(0, 0)
    b = g.add_node(3, 0)
    c = g.add_node(3, 4)
    d = g.add_node(50, 50)
    g.add_edge(a.handle, b.handle)
    g.add_edge(b.handle, c.handle)
    return g, (a.handle, b.handle, c.handle, d.handle)


@pytest.fixture
def controller():
    """Controller over an empty graph with an unmoved 1000x700 camera."""
    return InteractionController(GraphStore(), Camera(width=1000, height=700))

"""
Command Line Tests
==================

grapheditor-tool subcommands run against files on disk.
"""

import json

import pytest

from grapheditor import codec
from grapheditor.cli import main


@pytest.fixture
def graph_file(triangle, tmp_path):
    graph, (a, b, c, d) = triangle
    graph.rename_node(c, "Gate")
    return codec.save(graph, tmp_path / "triangle.json")


class TestInfo:

    def test_info(self, graph_file, capsys):
        assert main(["info", str(graph_file)]) == 0
        out = capsys.readouterr().out
        assert "Nodes: 4" in out
        assert "Edges: 2" in out
        assert "Isolated nodes: 1" in out
        assert "Total weight: 7.000" in out


class TestPath:

    def test_path_by_id(self, graph_file, capsys):
        assert main(["path", str(graph_file), "N0", "N2"]) == 0
        out = capsys.readouterr().out
        assert "N0 -> N1 -> Gate" in out
        assert "Cost: 7.000" in out

    def test_path_by_name(self, graph_file, capsys):
        assert main(["path", str(graph_file), "Gate", "N0"]) == 0
        assert "Gate -> N1 -> N0" in capsys.readouterr().out

    def test_no_path(self, graph_file, capsys):
        assert main(["path", str(graph_file), "N0", "N3"]) == 1
        assert "No path from N0 to N3" in capsys.readouterr().out

    def test_unknown_node(self, graph_file, capsys):
        assert main(["path", str(graph_file), "N0", "N99"]) == 2
        assert "Unknown node: N99" in capsys.readouterr().err


class TestVerify:

    def test_verify_ok(self, graph_file, capsys):
        assert main(["verify", str(graph_file)]) == 0
        assert "Graph file OK: 4 nodes, 2 edges" in capsys.readouterr().out

    def test_verify_reports_dropped_edges(self, tmp_path, capsys):
        path = tmp_path / "g.json"
        path.write_text(json.dumps({
            "nodes": [{"id": "N0", "x": 0, "y": 0}],
            "edges": [{"aId": "N0", "bId": "N5"}],
        }))
        assert main(["verify", str(path)]) == 0
        assert "Dropped edges: 1" in capsys.readouterr().out

    def test_bad_file(self, tmp_path, capsys):
        path = tmp_path / "g.json"
        path.write_text("[]")
        assert main(["verify", str(path)]) == 2
        assert capsys.readouterr().err.startswith("Error:")

    def test_undecodable_file(self, tmp_path, capsys):
        path = tmp_path / "g.json"
        path.write_bytes(b'{"nodes": [{"id": "\xff", "x": 0, "y": 0}]}')
        assert main(["verify", str(path)]) == 2
        assert capsys.readouterr().err.startswith("Error:")

    def test_missing_file(self, tmp_path, capsys):
        assert main(["info", str(tmp_path / "missing.json")]) == 2


class TestExport:

    def test_unsupported_format(self, graph_file, tmp_path, capsys):
        pytest.importorskip("cairo")
        assert main(["export", str(graph_file), "--out", str(tmp_path / "g.bmp")]) == 2
        assert "Unsupported export format" in capsys.readouterr().err

    def test_export_png(self, graph_file, tmp_path):
        pytest.importorskip("cairo")
        out = tmp_path / "g.png"
        assert main(["export", str(graph_file), "--out", str(out), "--scale", "1"]) == 0
        assert out.read_bytes().startswith(b"\x89PNG")

    def test_requires_subcommand(self):
        with pytest.raises(SystemExit):
            main([])

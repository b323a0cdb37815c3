"""
Database Tests
==============

Editor settings, recent files and backup rotation.
"""

import json
import sqlite3
from pathlib import Path

import pytest

from grapheditor import codec
from grapheditor.database import Database, EditorSettings, get_data_dir, get_db_path


@pytest.fixture
def db(isolated_data_dir):
    database = Database()
    yield database
    database.close()


class TestDataDir:

    def test_env_override(self, isolated_data_dir):
        assert get_data_dir() == isolated_data_dir
        assert (isolated_data_dir / "backups").is_dir()
        assert (isolated_data_dir / "exports").is_dir()
        assert get_db_path() == isolated_data_dir / "grapheditor.db"


class TestSettings:

    def test_defaults(self, db):
        settings = db.get_editor_settings()
        assert settings == EditorSettings()
        assert settings.hit_radius == 10.0

    def test_set_and_get(self, db):
        db.set_setting("show_grid", False)
        db.set_setting("hit_radius", 14.0)
        settings = db.get_editor_settings()
        assert settings.show_grid is False
        assert settings.hit_radius == 14.0
        assert db.get_setting("missing", "fallback") == "fallback"

    def test_save_editor_settings(self, db):
        db.save_editor_settings(EditorSettings(autosave_interval=0, backup_count=3))
        assert db.get_setting("autosave_interval") == 0
        assert db.get_editor_settings().backup_count == 3

    def test_settings_persist_across_connections(self, db, isolated_data_dir):
        db.set_setting("backup_count", 4)
        db.close()
        other = Database(isolated_data_dir / "grapheditor.db")
        assert other.get_setting("backup_count") == 4
        other.close()

    def test_numbers_stored_by_older_schema(self, isolated_data_dir):
        """Rows from a table whose value column had numeric affinity still read back."""
        legacy = sqlite3.connect(str(get_db_path()))
        legacy.execute("CREATE TABLE settings (key TEXT PRIMARY KEY, value JSON)")
        legacy.execute("INSERT INTO settings VALUES (?, ?)", ("hit_radius", json.dumps(14.0)))
        legacy.execute("INSERT INTO settings VALUES (?, ?)", ("backup_count", json.dumps(3)))
        legacy.commit()
        legacy.close()

        database = Database()
        settings = database.get_editor_settings()
        database.close()
        assert settings.hit_radius == 14.0
        assert settings.backup_count == 3

    def test_from_json_ignores_unknown_fields(self):
        settings = EditorSettings.from_json(json.dumps({"show_grid": False, "retired": 1}))
        assert settings.show_grid is False

    @pytest.mark.parametrize("raw", [None, "", "not json", "[1, 2]"])
    def test_from_json_falls_back_to_defaults(self, raw):
        assert EditorSettings.from_json(raw) == EditorSettings()


class TestRecentFiles:

    def test_newest_first(self, db, tmp_path):
        first = tmp_path / "a.json"
        second = tmp_path / "b.json"
        db.add_recent_file(first)
        db.add_recent_file(second)
        assert db.get_recent_files() == [second.resolve(), first.resolve()]

    def test_reopening_moves_to_front(self, db, tmp_path):
        db.add_recent_file(tmp_path / "a.json")
        db.add_recent_file(tmp_path / "b.json")
        db.add_recent_file(tmp_path / "a.json")
        assert [p.name for p in db.get_recent_files()] == ["a.json", "b.json"]

    def test_list_is_capped(self, db, tmp_path):
        for i in range(Database.MAX_RECENT + 5):
            db.add_recent_file(tmp_path / f"g{i}.json")
        files = db.get_recent_files()
        assert len(files) == Database.MAX_RECENT
        assert files[0].name == f"g{Database.MAX_RECENT + 4}.json"


class TestBackups:

    def test_empty_graph_is_not_backed_up(self, db, graph, tmp_path):
        assert db.create_backup(graph, tmp_path) is None
        assert list(tmp_path.glob("graph_*.json")) == []

    def test_backup_is_loadable(self, db, triangle, tmp_path):
        graph, _ = triangle
        path = db.create_backup(graph, tmp_path)
        assert path.parent == tmp_path
        decoded = codec.load(path)
        assert len(decoded.nodes) == 4
        assert len(decoded.edges) == 2

    def test_default_backup_dir(self, db, triangle, isolated_data_dir):
        graph, _ = triangle
        path = db.create_backup(graph)
        assert path.parent == isolated_data_dir / "backups"

    def test_old_backups_pruned(self, db, triangle, tmp_path):
        graph, _ = triangle
        db.set_setting("backup_count", 2)
        for name in ("graph_20240101_000000_000000.json",
                     "graph_20240102_000000_000000.json",
                     "graph_20240103_000000_000000.json"):
            (tmp_path / name).write_text("{}")
        newest = db.create_backup(graph, tmp_path)
        remaining = sorted(p.name for p in tmp_path.glob("graph_*.json"))
        assert remaining == ["graph_20240103_000000_000000.json", newest.name]

    def test_zero_backup_count_writes_nothing(self, db, triangle, tmp_path):
        graph, _ = triangle
        db.set_setting("backup_count", 0)
        kept = tmp_path / "graph_20240101_000000_000000.json"
        kept.write_text("{}")
        assert db.create_backup(graph, tmp_path) is None
        assert list(tmp_path.glob("graph_*.json")) == [kept]

    def test_prune_failure_keeps_new_backup(self, db, triangle, tmp_path, monkeypatch):
        graph, _ = triangle
        db.set_setting("backup_count", 1)
        (tmp_path / "graph_20240101_000000_000000.json").write_text("{}")

        def refuse(self, missing_ok=False):
            raise PermissionError("read-only")

        monkeypatch.setattr(Path, "unlink", refuse)
        newest = db.create_backup(graph, tmp_path)
        assert newest is not None and newest.exists()

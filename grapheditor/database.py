"""SQLite-backed settings, recent files and backups for the graph editor."""

import json
import logging
import os
import sqlite3
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from grapheditor import codec
from grapheditor.graph import GraphStore

logger = logging.getLogger(__name__)


def get_data_dir() -> Path:
    """Get the application data directory."""
    override = os.environ.get("GRAPHEDITOR_DATA_DIR")
    data_dir = Path(override) if override else Path.home() / ".local" / "share" / "grapheditor"
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "exports").mkdir(exist_ok=True)
    (data_dir / "backups").mkdir(exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the database file path."""
    return get_data_dir() / "grapheditor.db"


@dataclass
class EditorSettings:
    """User preferences for the editor window."""
    show_grid: bool = True
    hit_radius: float = 10.0
    autosave_interval: int = 30     # seconds, 0 disables backups
    backup_count: int = 10
    async_path_threshold: int = 5000  # nodes + edges before searching off-thread

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: Optional[str]) -> "EditorSettings":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            # Filter to only known fields to handle schema evolution
            known = {f.name for f in cls.__dataclass_fields__.values()}
            return cls(**{k: v for k, v in d.items() if k in known})
        except (json.JSONDecodeError, TypeError, AttributeError):
            return cls()


class Database:
    """Database manager for editor preferences."""

    MAX_RECENT = 10

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or get_db_path()
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def _init_db(self):
        """Initialize the database schema."""
        cursor = self.conn.cursor()
        cursor.executescript("""
            -- App settings table
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT
            );

            -- Recently opened or saved graph files
            CREATE TABLE IF NOT EXISTS recent_files (
                path TEXT PRIMARY KEY,
                opened_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)
        self.conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # ==================== Settings Operations ====================

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get an application setting."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = cursor.fetchone()

        if not row:
            return default

        value = row["value"]
        if not isinstance(value, str):
            # Rows written under the old JSON column type were stored as numbers
            return value
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return default

    def set_setting(self, key: str, value: Any):
        """Set an application setting."""
        cursor = self.conn.cursor()
        cursor.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, json.dumps(value))
        )
        self.conn.commit()

    def get_editor_settings(self) -> EditorSettings:
        """Build EditorSettings from the individually stored keys."""
        defaults = EditorSettings()
        values = {
            name: self.get_setting(name, getattr(defaults, name))
            for name in asdict(defaults)
        }
        return EditorSettings.from_json(json.dumps(values))

    def save_editor_settings(self, settings: EditorSettings):
        for key, value in asdict(settings).items():
            self.set_setting(key, value)

    # ==================== Recent Files ====================

    def add_recent_file(self, path: Path):
        """Remember a graph file, keeping only the newest entries."""
        cursor = self.conn.cursor()
        now = datetime.now().isoformat()
        cursor.execute(
            "INSERT OR REPLACE INTO recent_files (path, opened_at) VALUES (?, ?)",
            (str(Path(path).resolve()), now)
        )
        cursor.execute(
            """DELETE FROM recent_files WHERE path NOT IN (
                   SELECT path FROM recent_files ORDER BY opened_at DESC LIMIT ?
               )""",
            (self.MAX_RECENT,)
        )
        self.conn.commit()

    def get_recent_files(self) -> List[Path]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT path FROM recent_files ORDER BY opened_at DESC")
        return [Path(row["path"]) for row in cursor.fetchall()]

    # ==================== Backup Operations ====================

    def create_backup(self, graph: GraphStore, backup_dir: Optional[Path] = None) -> Optional[Path]:
        """Write a timestamped copy of the graph and prune old copies."""
        backup_dir = backup_dir or get_data_dir() / "backups"
        backup_count = self.get_setting("backup_count", 10)
        if len(graph) == 0 or backup_count < 1:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_file = codec.save(graph, backup_dir / f"graph_{timestamp}.json")

        # Clean old backups (keep last N)
        backups = sorted(backup_dir.glob("graph_*.json"), reverse=True)
        for old_backup in backups[backup_count:]:
            try:
                old_backup.unlink()
            except OSError as exc:
                logger.warning("Could not remove old backup %s: %s", old_backup, exc)
        logger.debug("Wrote backup %s", backup_file)
        return backup_file

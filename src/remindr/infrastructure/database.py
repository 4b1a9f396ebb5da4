"""SQLite database schema, migrations, and AppDatabase composition root."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from remindr.infrastructure.config import STORE_DIR
from remindr.infrastructure.logger import logger

if TYPE_CHECKING:
    from remindr.reminders.repository import TaskRepository


def create_schema(db: sqlite3.Connection) -> None:
    """Create all tables and indexes. Safe to call multiple times (IF NOT EXISTS)."""
    db.executescript("""
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT,
            priority TEXT NOT NULL DEFAULT 'medium',
            task_type TEXT NOT NULL DEFAULT 'public',
            trigger_at TEXT NOT NULL,
            email_recipients TEXT NOT NULL DEFAULT '',
            created_by TEXT,
            updated_by TEXT,
            updated_at TEXT,
            created_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_tasks_trigger_at ON tasks(trigger_at);
    """)

    _run_schema_migrations(db)


def _columns(db: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in db.execute(f"PRAGMA table_info({table})").fetchall()}


def _run_schema_migrations(db: sqlite3.Connection) -> None:
    """Add recurrence columns to task tables created before cadence support."""
    cols = _columns(db, "tasks")

    if "cadence" not in cols:
        db.execute("ALTER TABLE tasks ADD COLUMN cadence TEXT NOT NULL DEFAULT 'none'")
        logger.info("Schema migration: added column", table="tasks", column="cadence")

    if "last_notified_at" not in cols:
        db.execute("ALTER TABLE tasks ADD COLUMN last_notified_at TEXT")
        logger.info("Schema migration: added column", table="tasks", column="last_notified_at")

    if "sent_once" not in cols:
        db.execute("ALTER TABLE tasks ADD COLUMN sent_once INTEGER NOT NULL DEFAULT 0")
        logger.info("Schema migration: added column", table="tasks", column="sent_once")
        # Older stores tracked one-shot delivery in is_reminded.
        if "is_reminded" in cols:
            db.execute("UPDATE tasks SET sent_once = is_reminded")

    db.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(sent_once, trigger_at)")
    db.commit()


class AppDatabase:
    """Composition root that opens the DB and exposes the task repository.

    One connection is shared between the event loop and repository worker
    threads; the repository serializes access through self.lock.
    """

    def __init__(self) -> None:
        self._db: sqlite3.Connection | None = None
        self.lock = threading.RLock()
        self.task_repo: TaskRepository | None = None

    @property
    def db(self) -> sqlite3.Connection:
        assert self._db is not None, "Database not initialized. Call init() first."
        return self._db

    def init(self, db_path: Path | None = None) -> None:
        """Open (or create) the database file, defaulting to the store directory."""
        path = db_path or STORE_DIR / "tasks.db"
        path.parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(path), check_same_thread=False, timeout=5.0)
        self._db.row_factory = sqlite3.Row
        self._db.execute("PRAGMA journal_mode=WAL")
        self._init_repos()
        logger.info("Database ready", path=str(path))

    def _init_test(self) -> None:
        """For tests only. Creates a fresh in-memory database."""
        self._db = sqlite3.connect(":memory:", check_same_thread=False)
        self._db.row_factory = sqlite3.Row
        self._init_repos()

    def _init_repos(self) -> None:
        assert self._db is not None
        create_schema(self._db)

        # Import here to avoid circular imports
        from remindr.reminders.repository import TaskRepository

        self.task_repo = TaskRepository(self._db, self.lock)

    def close(self) -> None:
        # Waits for a repository call still running in a worker thread.
        with self.lock:
            if self._db is not None:
                self._db.close()
                self._db = None

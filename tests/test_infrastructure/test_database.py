"""Tests for database initialization, schema and migrations."""

import sqlite3
import threading

from remindr.infrastructure.database import AppDatabase, create_schema


def _columns(conn: sqlite3.Connection) -> set[str]:
    return {row[1] for row in conn.execute("PRAGMA table_info(tasks)").fetchall()}


class TestAppDatabase:
    def test_init_creates_schema(self, db):
        tables = [row[0] for row in db.db.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()]
        assert "tasks" in tables
        assert {"cadence", "sent_once", "last_notified_at", "trigger_at", "priority"} <= _columns(db.db)

    def test_repo_initialized(self, db):
        assert db.task_repo is not None

    def test_multiple_init_is_safe(self):
        app_db = AppDatabase()
        app_db._init_test()
        app_db._init_test()
        assert app_db.task_repo is not None

    def test_init_on_disk(self, tmp_path):
        app_db = AppDatabase()
        app_db.init(tmp_path / "store" / "tasks.db")
        try:
            assert (tmp_path / "store" / "tasks.db").exists()
        finally:
            app_db.close()

    def test_close_is_idempotent(self, db):
        db.close()
        db.close()

    def test_close_waits_for_running_repository_call(self, db):
        holding = threading.Event()
        finish = threading.Event()

        def long_query():
            with db.lock:
                holding.set()
                finish.wait(2)

        worker = threading.Thread(target=long_query)
        worker.start()
        holding.wait(2)
        closer = threading.Thread(target=db.close)
        closer.start()
        closer.join(0.05)
        assert closer.is_alive()

        finish.set()
        closer.join(2)
        worker.join(2)
        assert not closer.is_alive()
        assert db._db is None


class TestMigrations:
    def test_legacy_table_gains_recurrence_columns(self):
        conn = sqlite3.connect(":memory:")
        conn.execute(
            """CREATE TABLE tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                priority TEXT NOT NULL DEFAULT 'medium',
                task_type TEXT NOT NULL DEFAULT 'public',
                trigger_at TEXT NOT NULL,
                email_recipients TEXT NOT NULL,
                is_reminded INTEGER NOT NULL DEFAULT 0,
                created_by TEXT,
                updated_by TEXT,
                updated_at TEXT,
                created_at TEXT NOT NULL
            )"""
        )
        conn.execute(
            "INSERT INTO tasks (name, trigger_at, email_recipients, is_reminded, created_at) "
            "VALUES ('sent', '2024-01-01T00:00:00', 'a@example.com', 1, '2024-01-01T00:00:00')"
        )
        conn.execute(
            "INSERT INTO tasks (name, trigger_at, email_recipients, is_reminded, created_at) "
            "VALUES ('pending', '2024-01-01T00:00:00', 'a@example.com', 0, '2024-01-01T00:00:00')"
        )
        conn.commit()

        create_schema(conn)

        assert {"cadence", "sent_once", "last_notified_at"} <= _columns(conn)
        rows = dict(conn.execute("SELECT name, sent_once FROM tasks").fetchall())
        assert rows == {"sent": 1, "pending": 0}
        cadences = {row[0] for row in conn.execute("SELECT cadence FROM tasks").fetchall()}
        assert cadences == {"none"}

    def test_schema_creation_is_idempotent(self, db):
        create_schema(db.db)
        create_schema(db.db)
        assert "sent_once" in _columns(db.db)

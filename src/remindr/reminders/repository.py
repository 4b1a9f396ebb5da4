"""Task persistence: CRUD, due-candidate prefilter, and notification records."""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from collections.abc import Iterator
from datetime import UTC, datetime

from pydantic import ValidationError

from remindr.infrastructure.logger import logger
from remindr.reminders.errors import RepositoryError
from remindr.reminders.types import Task, TaskDraft, as_utc

_EDITABLE_FIELDS = frozenset({
    "name",
    "description",
    "priority",
    "task_type",
    "trigger_at",
    "email_recipients",
    "cadence",
    "sent_once",
    "updated_by",
})

# Passing None for one of these clears it; the other fields are NOT NULL.
_CLEARABLE_FIELDS = frozenset({"description", "updated_by"})


def _ts(value: datetime) -> str:
    # Fixed-width UTC text keeps SQL string comparison in time order.
    return as_utc(value).isoformat(timespec="microseconds")


class TaskRepository:
    def __init__(self, db: sqlite3.Connection, lock: threading.RLock | None = None) -> None:
        self._db = db
        self._lock = lock or threading.RLock()

    @contextlib.contextmanager
    def _guarded(self, op: str) -> Iterator[sqlite3.Connection]:
        """Serialize access and translate sqlite3 failures into RepositoryError."""
        with self._lock:
            try:
                yield self._db
            except sqlite3.OperationalError as err:
                self._db.rollback()
                raise RepositoryError("transient", f"{op}: {err}") from err
            except sqlite3.DatabaseError as err:
                self._db.rollback()
                raise RepositoryError("permanent", f"{op}: {err}") from err

    def create_task(self, draft: TaskDraft, now: datetime | None = None) -> int:
        created_at = _ts(now or datetime.now(UTC))
        with self._guarded("create_task") as db:
            cur = db.execute(
                """INSERT INTO tasks
                   (name, description, priority, task_type, trigger_at, email_recipients,
                    cadence, sent_once, last_notified_at, created_by, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, 0, NULL, ?, ?)""",
                (
                    draft.name, draft.description, draft.priority, draft.task_type,
                    _ts(draft.trigger_at), draft.email_recipients, draft.cadence,
                    draft.created_by, created_at,
                ),
            )
            db.commit()
            if cur.lastrowid is None:
                raise RepositoryError("permanent", "create_task: no row id returned")
            return int(cur.lastrowid)

    def get_task_by_id(self, id: int) -> Task | None:
        with self._guarded("get_task_by_id") as db:
            row = db.execute("SELECT * FROM tasks WHERE id = ?", (id,)).fetchone()
        if not row:
            return None
        return self._row_to_task(row)

    def get_all_tasks(self) -> list[Task]:
        with self._guarded("get_all_tasks") as db:
            rows = db.execute("SELECT * FROM tasks ORDER BY trigger_at ASC, created_at DESC").fetchall()
        return [self._row_to_task(row) for row in rows]

    def update_task(self, id: int, now: datetime | None = None, **updates: object) -> bool:
        """Apply an authoring edit. Returns False when the task does not exist.

        A task that has been notified before and ends up with cadence 'none'
        is marked sent_once in the same transaction, so a downgrade never
        re-arms it.
        """
        unknown = set(updates) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        required = {key for key, value in updates.items() if value is None} - _CLEARABLE_FIELDS
        if required:
            raise ValueError(f"Task fields cannot be cleared: {', '.join(sorted(required))}")

        fields: list[str] = []
        values: list[object] = []
        for key, value in updates.items():
            if isinstance(value, datetime):
                value = _ts(value)
            elif isinstance(value, bool):
                value = int(value)
            fields.append(f"{key} = ?")
            values.append(value)
        fields.append("updated_at = ?")
        values.append(_ts(now or datetime.now(UTC)))
        values.append(id)

        with self._guarded("update_task") as db:
            cur = db.execute(f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?", values)
            db.execute(
                """UPDATE tasks SET sent_once = 1
                   WHERE id = ? AND cadence = 'none' AND last_notified_at IS NOT NULL""",
                (id,),
            )
            db.commit()
            return cur.rowcount > 0

    def delete_task(self, id: int) -> None:
        with self._guarded("delete_task") as db:
            db.execute("DELETE FROM tasks WHERE id = ?", (id,))
            db.commit()

    def list_due_candidates(self, now: datetime) -> list[Task]:
        """Tasks whose trigger time has passed, minus one-shots already sent.

        Cadence periods and the renotify gap are applied by the selector.
        """
        with self._guarded("list_due_candidates") as db:
            rows = db.execute(
                """SELECT * FROM tasks
                   WHERE trigger_at <= ? AND NOT (cadence = 'none' AND sent_once = 1)
                   ORDER BY trigger_at""",
                (_ts(now),),
            ).fetchall()
        tasks: list[Task] = []
        for row in rows:
            try:
                tasks.append(self._row_to_task(row))
            except RepositoryError as err:
                # One corrupt row must not hide the other due tasks.
                logger.error("Skipping unreadable task", task_id=row["id"], error=err.detail)
        return tasks

    def record_notification(self, id: int, notified_at: datetime) -> bool:
        """Record a successful notification in one atomic statement.

        Returns False when the task was deleted while being notified.
        """
        with self._guarded("record_notification") as db:
            cur = db.execute(
                """UPDATE tasks
                   SET last_notified_at = ?,
                       sent_once = CASE WHEN cadence = 'none' THEN 1 ELSE sent_once END
                   WHERE id = ?""",
                (_ts(notified_at), id),
            )
            db.commit()
            return cur.rowcount > 0

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        try:
            return Task(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                priority=row["priority"],
                task_type=row["task_type"],
                trigger_at=row["trigger_at"],
                email_recipients=row["email_recipients"] or "",
                cadence=row["cadence"],
                sent_once=bool(row["sent_once"]),
                last_notified_at=row["last_notified_at"],
                created_by=row["created_by"],
                updated_by=row["updated_by"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
        except ValidationError as err:
            raise RepositoryError("permanent", f"task {row['id']} is unreadable: {err}") from err

"""Task manager: authoring-side task lifecycle."""

from __future__ import annotations

from datetime import datetime

from remindr.reminders.cadence import next_eligible_at
from remindr.reminders.repository import TaskRepository
from remindr.reminders.types import CADENCES, PRIORITIES, Task, TaskDraft


class TaskManager:
    def __init__(self, task_repo: TaskRepository) -> None:
        self._task_repo = task_repo

    # --- CRUD ---

    def create(
        self,
        name: str,
        trigger_at: datetime,
        email_recipients: str = "",
        cadence: str = "none",
        priority: str = "medium",
        task_type: str = "public",
        description: str | None = None,
        created_by: str | None = None,
    ) -> int:
        draft = TaskDraft(
            name=name,
            trigger_at=trigger_at,
            email_recipients=email_recipients,
            cadence=self._check("cadence", cadence, CADENCES),  # type: ignore[arg-type]
            priority=self._check("priority", priority, PRIORITIES),  # type: ignore[arg-type]
            task_type=_normalize_task_type(task_type),  # type: ignore[arg-type]
            description=description,
            created_by=created_by,
        )
        return self._task_repo.create_task(draft)

    def get_by_id(self, id: int) -> Task | None:
        return self._task_repo.get_task_by_id(id)

    def get_all(self) -> list[Task]:
        return self._task_repo.get_all_tasks()

    def update(self, id: int, **updates: object) -> Task:
        """Edit a task and return its stored state.

        Downgrading a notified task to cadence 'none' marks it as sent.
        """
        if "name" in updates and updates["name"] is not None:
            name = str(updates["name"]).strip()
            if not name:
                raise ValueError("name is required")
            updates["name"] = name
        if updates.get("cadence") is not None:
            self._check("cadence", str(updates["cadence"]), CADENCES)
        if updates.get("priority") is not None:
            self._check("priority", str(updates["priority"]), PRIORITIES)
        if updates.get("task_type") is not None:
            updates["task_type"] = _normalize_task_type(str(updates["task_type"]))

        if not self._task_repo.update_task(id, **updates):
            raise ValueError(f"Task not found: {id}")
        task = self._task_repo.get_task_by_id(id)
        assert task is not None
        return task

    def delete(self, id: int) -> None:
        self._task_repo.delete_task(id)

    # --- Introspection ---

    def next_reminder_at(self, id: int) -> datetime | None:
        """When the task's cadence next allows a reminder; None if it never will."""
        task = self._task_repo.get_task_by_id(id)
        if not task:
            raise ValueError(f"Task not found: {id}")
        return next_eligible_at(task)

    # --- Internal ---

    @staticmethod
    def _check(field: str, value: str, allowed: tuple[str, ...]) -> str:
        if value not in allowed:
            raise ValueError(f"Invalid {field}: {value}")
        return value


def _normalize_task_type(value: str | None) -> str:
    # Anything other than an explicit 'private' is public.
    return "private" if value and value.lower() == "private" else "public"

"""Due-task selection: eligibility predicate and dispatch ordering."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from remindr.reminders.cadence import CADENCE_RANK, cadence_gate_open
from remindr.reminders.errors import RepositoryError
from remindr.reminders.repository import TaskRepository
from remindr.reminders.types import Task, as_utc

PRIORITY_RANK: dict[str, int] = {"high": 2, "medium": 1, "low": 0}


def renotify_gap_elapsed(task: Task, now: datetime, min_renotify_gap: timedelta) -> bool:
    """Absorbs duplicate ticks; applies to every cadence."""
    if task.last_notified_at is None:
        return True
    return now - task.last_notified_at >= min_renotify_gap


def is_due(task: Task, now: datetime, min_renotify_gap: timedelta) -> bool:
    return (
        task.trigger_at <= now
        and renotify_gap_elapsed(task, now, min_renotify_gap)
        and cadence_gate_open(task, now)
    )


def dispatch_order(task: Task) -> tuple[int, int, datetime, int]:
    """Shortest cadence first, then higher priority, then earlier trigger."""
    return (CADENCE_RANK[task.cadence], -PRIORITY_RANK[task.priority], task.trigger_at, task.id)


class DueSelector:
    def __init__(
        self,
        task_repo: TaskRepository,
        min_renotify_gap: float,
        repository_timeout: float | None = None,
    ) -> None:
        self._task_repo = task_repo
        self._min_gap = timedelta(seconds=min_renotify_gap)
        self._timeout = repository_timeout

    async def select(self, now: datetime) -> list[Task]:
        """Return tasks due at `now`, in dispatch order.

        Raises RepositoryError when the candidate read fails or times out.
        """
        now = as_utc(now)
        try:
            candidates = await asyncio.wait_for(
                asyncio.to_thread(self._task_repo.list_due_candidates, now),
                timeout=self._timeout,
            )
        except TimeoutError as err:
            raise RepositoryError("transient", f"list_due_candidates timed out after {self._timeout}s") from err

        due = [task for task in candidates if is_due(task, now, self._min_gap)]
        return sorted(due, key=dispatch_order)

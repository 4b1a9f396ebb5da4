"""Dispatch loop: one pass over the due tasks per scheduler tick."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from remindr.infrastructure.config import DispatchConfig
from remindr.infrastructure.logger import logger
from remindr.infrastructure.poll_loop import utc_now
from remindr.notifications.types import Notifier
from remindr.reminders.errors import NotifyError, RepositoryError
from remindr.reminders.in_flight import InFlightGuard
from remindr.reminders.repository import TaskRepository
from remindr.reminders.selector import DueSelector
from remindr.reminders.types import Task, as_utc


@dataclass
class TickReport:
    started_at: datetime
    aborted: bool = False
    selected: list[int] = field(default_factory=list)
    skipped_in_flight: list[int] = field(default_factory=list)
    notified: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    record_failed: list[int] = field(default_factory=list)


class DispatchLoop:
    """Selects due tasks, notifies each one once, and records the result.

    Safe to run concurrently with itself: overlapping ticks are serialized per
    task by the in-flight guard. No per-task error escapes run_tick().
    """

    def __init__(
        self,
        task_repo: TaskRepository,
        notifier: Notifier,
        guard: InFlightGuard,
        config: DispatchConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._config = config or DispatchConfig()
        self._task_repo = task_repo
        self._notifier = notifier
        self._guard = guard
        self._clock = clock
        self._selector = DueSelector(
            task_repo,
            min_renotify_gap=self._config.min_renotify_gap,
            repository_timeout=self._config.repository_timeout,
        )

    @property
    def guard(self) -> InFlightGuard:
        return self._guard

    async def run_tick(self, now: datetime | None = None) -> TickReport:
        now = as_utc(now) if now else self._clock()
        report = TickReport(started_at=now)

        try:
            due = await self._selector.select(now)
        except RepositoryError as err:
            log = logger.warning if err.transient else logger.error
            log("Due task selection failed", kind=err.kind, error=err.detail)
            report.aborted = True
            return report

        if not due:
            return report
        logger.info("Found due tasks", count=len(due))

        for task in due:
            report.selected.append(task.id)
            logger.debug("Task selected", task_id=task.id, cadence=task.cadence, priority=task.priority)

            if not self._guard.try_acquire(task.id):
                logger.info("Task already in flight, skipping", task_id=task.id)
                report.skipped_in_flight.append(task.id)
                continue

            try:
                await self._dispatch(task, now, report)
            finally:
                self._guard.schedule_release(task.id, self._config.in_flight_release_delay)

        return report

    async def _dispatch(self, task: Task, now: datetime, report: TickReport) -> None:
        try:
            await asyncio.wait_for(self._notifier.notify(task), timeout=self._config.notify_timeout)
        except NotifyError as err:
            self._notify_failed(task, err.reason, report)
            return
        except TimeoutError:
            self._notify_failed(task, f"notifier timed out after {self._config.notify_timeout}s", report)
            return
        except Exception as err:
            logger.exception("Notifier raised unexpectedly", task_id=task.id)
            self._notify_failed(task, str(err) or type(err).__name__, report)
            return

        report.notified.append(task.id)

        try:
            recorded = await asyncio.wait_for(
                asyncio.to_thread(self._task_repo.record_notification, task.id, now),
                timeout=self._config.repository_timeout,
            )
        except TimeoutError:
            report.record_failed.append(task.id)
            logger.warning("Failed to record notification", task_id=task.id, kind="transient", error="timed out")
            return
        except RepositoryError as err:
            report.record_failed.append(task.id)
            log = logger.warning if err.transient else logger.error
            log("Failed to record notification", task_id=task.id, kind=err.kind, error=err.detail)
            return

        if not recorded:
            logger.info("Task deleted during dispatch", task_id=task.id)
            return

        logger.info(
            "Reminder sent",
            task_id=task.id,
            cadence=task.cadence,
            notifier=self._notifier.name,
        )

    def _notify_failed(self, task: Task, reason: str, report: TickReport) -> None:
        # Task state is left as-is; the next eligible tick re-selects it.
        report.failed.append(task.id)
        logger.error("Reminder failed", task_id=task.id, error=reason)

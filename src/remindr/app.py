"""Orchestrator class: composes services, wires subsystems."""

from __future__ import annotations

from pathlib import Path

from remindr.infrastructure.config import (
    SMTP_FROM,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_SECURE,
    SMTP_USER,
    DispatchConfig,
)
from remindr.infrastructure.database import AppDatabase
from remindr.infrastructure.logger import logger
from remindr.notifications.email import ConsoleNotifier, EmailNotifier
from remindr.notifications.types import Notifier
from remindr.reminders.dispatcher import DispatchLoop
from remindr.reminders.in_flight import InFlightGuard
from remindr.reminders.scheduler import ReminderScheduler
from remindr.reminders.task_service import TaskManager


def build_notifier(config: DispatchConfig) -> Notifier:
    """E-mail when SMTP_HOST is configured, console logging otherwise."""
    if not SMTP_HOST:
        logger.warning("SMTP_HOST is not set; reminders will only be logged")
        return ConsoleNotifier(tz=config.tzinfo())
    return EmailNotifier(
        host=SMTP_HOST,
        port=SMTP_PORT,
        sender=SMTP_FROM,
        username=SMTP_USER,
        password=SMTP_PASS,
        secure=SMTP_SECURE,
        timeout=config.notify_timeout,
        tz=config.tzinfo(),
    )


class Orchestrator:
    """Owns the database, notifier, in-flight guard and scheduler for one process."""

    def __init__(
        self,
        config: DispatchConfig | None = None,
        db: AppDatabase | None = None,
        notifier: Notifier | None = None,
        db_path: Path | None = None,
    ) -> None:
        self._config = config or DispatchConfig()
        self._db = db or AppDatabase()
        self._db_path = db_path
        self._notifier = notifier
        self._guard = InFlightGuard()
        self.task_manager: TaskManager | None = None
        self.dispatcher: DispatchLoop | None = None
        self.scheduler: ReminderScheduler | None = None

    def init(self) -> None:
        """Open storage and build services without starting any timers."""
        if self._db.task_repo is None:
            self._db.init(self._db_path)
        assert self._db.task_repo is not None

        notifier = self._notifier or build_notifier(self._config)
        self.task_manager = TaskManager(self._db.task_repo)
        self.dispatcher = DispatchLoop(self._db.task_repo, notifier, self._guard, self._config)
        self.scheduler = ReminderScheduler(self.dispatcher, self._config)

    async def start(self) -> None:
        logger.info("Starting remindr...")
        if self.scheduler is None:
            self.init()
        assert self.scheduler is not None
        self.scheduler.start()
        logger.info(
            "remindr started",
            fast_tick_s=self._config.fast_tick_interval,
            slow_tick_cron=self._config.slow_tick_cron,
            min_renotify_gap_s=self._config.min_renotify_gap,
        )

    async def shutdown(self) -> None:
        logger.info("Shutting down remindr...")
        if self.scheduler is not None:
            await self.scheduler.stop()
        self._db.close()
        logger.info("remindr stopped")

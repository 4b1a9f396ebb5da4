import asyncio
from datetime import UTC, datetime

import pytest

from remindr.infrastructure.config import DispatchConfig
from remindr.infrastructure.database import AppDatabase
from remindr.reminders.errors import NotifyError
from remindr.reminders.types import Task

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


class FakeNotifier:
    """Records notify calls; can fail for chosen ids or stall for `delay` seconds."""

    name = "fake"

    def __init__(self, fail_ids: set[int] | None = None, delay: float = 0.0) -> None:
        self.calls: list[int] = []
        self.fail_ids = fail_ids or set()
        self.delay = delay

    async def notify(self, task: Task) -> None:
        self.calls.append(task.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if task.id in self.fail_ids:
            raise NotifyError(f"smtp refused task {task.id}")


@pytest.fixture
def db() -> AppDatabase:
    """Create an in-memory database for testing."""
    app_db = AppDatabase()
    app_db._init_test()
    return app_db


@pytest.fixture
def task_repo(db):
    return db.task_repo


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config() -> DispatchConfig:
    return DispatchConfig(
        fast_tick_interval=60,
        slow_tick_cron="0 9 * * *",
        min_renotify_gap=120,
        in_flight_release_delay=0,
        repository_timeout=5,
        notify_timeout=1,
        timezone="UTC",
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def make_task():
    def _make(id: int = 1, **fields) -> Task:
        values = {
            "name": f"Task {id}",
            "trigger_at": NOW.replace(hour=11),
            "email_recipients": "ops@example.com",
            "created_at": NOW.replace(hour=9),
        }
        values.update(fields)
        return Task(id=id, **values)

    return _make


@pytest.fixture
def make_notifier():
    return FakeNotifier

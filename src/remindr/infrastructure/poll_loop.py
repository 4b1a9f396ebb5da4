"""Async tickers: fixed-interval and cron-driven polling loops."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Callable, Awaitable, Protocol
from zoneinfo import ZoneInfo

from croniter import croniter

from remindr.infrastructure.logger import logger


def utc_now() -> datetime:
    return datetime.now(UTC)


class Schedule(Protocol):
    def next_fire(self, after: datetime) -> datetime: ...
    def describe(self) -> str: ...


class IntervalSchedule:
    """Fires every interval_s seconds."""

    def __init__(self, interval_s: float) -> None:
        if interval_s <= 0:
            raise ValueError(f"Invalid interval: {interval_s}")
        self.interval_s = interval_s

    def next_fire(self, after: datetime) -> datetime:
        return after + timedelta(seconds=self.interval_s)

    def describe(self) -> str:
        return f"every {self.interval_s:g}s"


class CronSchedule:
    """Fires on a cron expression evaluated in a fixed time zone."""

    def __init__(self, expression: str, tz: ZoneInfo | None = None) -> None:
        if not croniter.is_valid(expression):
            raise ValueError(f"Invalid cron expression: {expression}")
        self.expression = expression
        self.tz = tz or ZoneInfo("UTC")

    def next_fire(self, after: datetime) -> datetime:
        cron = croniter(self.expression, after.astimezone(self.tz))
        return cron.get_next(datetime).astimezone(UTC)

    def describe(self) -> str:
        return f"cron '{self.expression}' ({self.tz.key})"


class PollLoop:
    """Calls an async function on a schedule until stopped.

    Each firing runs as its own asyncio task, so a slow firing does not delay
    the next one and firings may overlap. tick_now() runs the function inline
    for callers that need a deterministic tick.
    """

    def __init__(
        self,
        name: str,
        schedule: Schedule,
        fn: Callable[[], Awaitable[object]],
        *,
        run_on_start: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._name = name
        self._schedule = schedule
        self._fn = fn
        self._run_on_start = run_on_start
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._firings: set[asyncio.Task[None]] = set()
        self._last_fire_at: datetime | None = None
        self._stopped = True

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return not self._stopped

    @property
    def active_firings(self) -> int:
        return len(self._firings)

    def start(self) -> None:
        """Start the loop as a background task."""
        if self._task and not self._task.done():
            return
        self._stopped = False
        self._task = asyncio.create_task(self._loop())
        logger.info(f"{self._name} loop started", schedule=self._schedule.describe())

    async def stop(self) -> None:
        """Stop the loop, cancel firings that are still running and wait for them to unwind."""
        self._stopped = True
        tasks = list(self._firings)
        if self._task:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._firings.clear()
        logger.info(f"{self._name} loop stopped")

    async def tick_now(self) -> None:
        await self._run_once()

    def _launch(self) -> None:
        firing = asyncio.create_task(self._run_once())
        self._firings.add(firing)
        firing.add_done_callback(self._firings.discard)

    async def _run_once(self) -> None:
        try:
            await self._fn()
        except Exception:
            logger.exception(f"Error in {self._name} loop")

    async def _loop(self) -> None:
        if self._run_on_start:
            self._last_fire_at = self._clock()
            self._launch()
        while not self._stopped:
            now = self._clock()
            # Never compute from before the last firing, or a cron slot could fire twice.
            after = max(now, self._last_fire_at) if self._last_fire_at else now
            fire_at = self._schedule.next_fire(after)
            try:
                await asyncio.sleep(max(0.0, (fire_at - now).total_seconds()))
            except asyncio.CancelledError:
                break
            if self._stopped:
                break
            self._last_fire_at = fire_at
            self._launch()


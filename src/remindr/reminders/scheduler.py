"""Reminder scheduler: drives the dispatch loop from two independent tickers."""

from __future__ import annotations

from remindr.infrastructure.config import DispatchConfig
from remindr.infrastructure.logger import logger
from remindr.infrastructure.poll_loop import CronSchedule, IntervalSchedule, PollLoop
from remindr.reminders.dispatcher import DispatchLoop, TickReport


class ReminderScheduler:
    """Fast interval tick for prompt delivery, slow cron tick as a daily catch-up.

    Both tickers call the same DispatchLoop and may fire at the same time.
    """

    def __init__(self, dispatcher: DispatchLoop, config: DispatchConfig | None = None) -> None:
        config = config or DispatchConfig()
        self._dispatcher = dispatcher
        self.fast = PollLoop(
            "Fast reminder tick",
            IntervalSchedule(config.fast_tick_interval),
            self._fast_tick,
            run_on_start=True,
        )
        self.slow = PollLoop(
            "Daily reminder tick",
            CronSchedule(config.slow_tick_cron, config.tzinfo()),
            self._slow_tick,
            run_on_start=False,
        )

    @property
    def running(self) -> bool:
        return self.fast.running or self.slow.running

    def start(self) -> None:
        self.fast.start()
        self.slow.start()

    async def stop(self) -> None:
        """Stop both tickers, wait for interrupted ticks, then drop pending in-flight releases."""
        await self.fast.stop()
        await self.slow.stop()
        self._dispatcher.guard.cancel_pending()

    async def tick_now(self) -> TickReport:
        return await self._dispatcher.run_tick()

    async def _fast_tick(self) -> None:
        await self._dispatcher.run_tick()

    async def _slow_tick(self) -> None:
        logger.info("Daily reminder check started")
        await self._dispatcher.run_tick()


def start_reminder_scheduler(dispatcher: DispatchLoop, config: DispatchConfig | None = None) -> ReminderScheduler:
    """Create and start the scheduler. Returns a handle to stop it."""
    scheduler = ReminderScheduler(dispatcher, config)
    scheduler.start()
    return scheduler

"""One-shot delayed callback with a cancellable handle."""

from __future__ import annotations

import asyncio
from typing import Callable, Awaitable


class DelayedCall:
    """Runs callback once, delay_s seconds after start().

    cancel() drops the pending call without running it. The handle can be
    awaited through wait() to observe completion in tests.
    """

    def __init__(self, callback: Callable[[], Awaitable[None] | None], delay_s: float) -> None:
        self._callback = callback
        self._delay = max(0.0, delay_s)
        self._task: asyncio.Task[None] | None = None
        self._fired = False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self) -> DelayedCall:
        """Start the countdown. Restarting cancels the previous countdown."""
        if self._task:
            self._task.cancel()
        self._task = asyncio.create_task(self._fire())
        return self

    async def _fire(self) -> None:
        await asyncio.sleep(self._delay)
        self._fired = True
        result = self._callback()
        if asyncio.iscoroutine(result):
            await result

    def cancel(self) -> None:
        """Cancel the call without running the callback."""
        if self._task:
            self._task.cancel()
            self._task = None

    async def wait(self) -> None:
        if self._task is None:
            return
        await asyncio.wait({self._task})


def call_later(callback: Callable[[], Awaitable[None] | None], delay_s: float) -> DelayedCall:
    """Create and start a delayed call. Returns a handle to cancel it."""
    return DelayedCall(callback, delay_s).start()

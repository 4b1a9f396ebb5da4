"""Process-local set of task ids currently being dispatched."""

from __future__ import annotations

import threading

from remindr.infrastructure.delayed_call import DelayedCall, call_later


class InFlightGuard:
    """Keeps overlapping ticks in one process from notifying the same task twice.

    Only covers this process. The renotify gap stored with each task is what
    protects against restarts and other processes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: set[int] = set()
        self._pending: dict[int, DelayedCall] = {}

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def try_acquire(self, task_id: int) -> bool:
        with self._lock:
            if task_id in self._ids:
                return False
            self._ids.add(task_id)
            return True

    def release(self, task_id: int) -> None:
        with self._lock:
            self._ids.discard(task_id)
            self._pending.pop(task_id, None)

    def schedule_release(self, task_id: int, delay_s: float) -> DelayedCall:
        """Release after delay_s, once the durable record is visible to other ticks."""
        handle = call_later(lambda: self.release(task_id), delay_s)
        with self._lock:
            previous = self._pending.pop(task_id, None)
            self._pending[task_id] = handle
        if previous:
            previous.cancel()
        return handle

    def pending_releases(self) -> int:
        with self._lock:
            return len(self._pending)

    def cancel_pending(self) -> None:
        """Drop every scheduled release and clear the set (shutdown)."""
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
            self._ids.clear()
        for handle in pending:
            handle.cancel()

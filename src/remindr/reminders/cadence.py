"""Cadence periods and the recurrence gate."""

from __future__ import annotations

from datetime import datetime

from dateutil.relativedelta import relativedelta

from remindr.reminders.types import Task

# Calendar-aware: Jan 31 + 1 month lands on the last day of February.
PERIODS: dict[str, relativedelta] = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
}

# Shortest period first; one-shot tasks last.
CADENCE_RANK: dict[str, int] = {"daily": 0, "weekly": 1, "monthly": 2, "none": 3}


def period(cadence: str) -> relativedelta:
    try:
        return PERIODS[cadence]
    except KeyError:
        raise ValueError(f"Cadence has no period: {cadence}") from None


def next_eligible_at(task: Task) -> datetime | None:
    """Earliest time the cadence gate reopens, ignoring the renotify gap.

    None means the gate never reopens (a one-shot task that was already sent).
    """
    if task.cadence == "none":
        return None if task.sent_once else task.trigger_at
    if task.last_notified_at is None:
        return task.trigger_at
    return max(task.trigger_at, task.last_notified_at + period(task.cadence))


def cadence_gate_open(task: Task, now: datetime) -> bool:
    if task.cadence == "none":
        return not task.sent_once
    if task.last_notified_at is None:
        return True
    return now >= task.last_notified_at + period(task.cadence)

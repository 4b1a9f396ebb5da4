"""Notifier protocol and the rendered reminder payload."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from remindr.reminders.types import Task


class Reminder(BaseModel):
    subject: str
    body: str
    recipients: list[str]


@runtime_checkable
class Notifier(Protocol):
    """Delivers one reminder for a task.

    Raises NotifyError on transport or formatting failure. Never changes
    task state; the dispatch loop owns state transitions.
    """

    name: str

    async def notify(self, task: Task) -> None: ...

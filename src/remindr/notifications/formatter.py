"""Reminder formatting transforms."""

from __future__ import annotations

from datetime import datetime, tzinfo

from remindr.notifications.types import Reminder
from remindr.reminders.types import Task

_CADENCE_LABELS = {
    "none": "One-time",
    "daily": "Daily",
    "weekly": "Weekly",
    "monthly": "Monthly",
}


def format_reminder(task: Task, tz: tzinfo | None = None) -> Reminder:
    """Render the subject and plain-text body for a task reminder.

    Timestamps are shown in `tz` (UTC when omitted) as YYYY-MM-DD HH:MM.
    """
    description = (task.description or "").strip() or "No description provided."
    lines = [
        f'This is a reminder for the task "{task.name}".',
        "",
        f"Task Name: {task.name}",
        f"Task Description: {description}",
        f"Created At: {format_datetime(task.created_at, tz)}",
        f"Created By: {task.created_by or '-'}",
        f"Trigger At: {format_datetime(task.trigger_at, tz)}",
        f"Repeats: {_CADENCE_LABELS[task.cadence]}",
        f"Priority: {_capitalize(task.priority)}",
        f"Type: {_capitalize(task.task_type)}",
        f"Updated At: {format_datetime(task.updated_at, tz) or '-'}",
        f"Updated By: {task.updated_by or '-'}",
    ]
    return Reminder(
        subject=f"Reminder: {task.name}",
        body="\n".join(lines) + "\n",
        recipients=task.recipients(),
    )


def format_datetime(value: datetime | None, tz: tzinfo | None = None) -> str:
    if value is None:
        return ""
    if tz is not None:
        value = value.astimezone(tz)
    return value.strftime("%Y-%m-%d %H:%M")


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]

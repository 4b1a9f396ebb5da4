"""Reminder domain types."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Cadence = Literal["none", "daily", "weekly", "monthly"]
Priority = Literal["high", "medium", "low"]
TaskType = Literal["public", "private"]

CADENCES: tuple[str, ...] = ("none", "daily", "weekly", "monthly")
PRIORITIES: tuple[str, ...] = ("high", "medium", "low")
TASK_TYPES: tuple[str, ...] = ("public", "private")


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Task(BaseModel):
    id: int
    name: str
    description: str | None = None
    priority: Priority = "medium"
    task_type: TaskType = "public"
    trigger_at: datetime
    email_recipients: str = ""
    cadence: Cadence = "none"
    sent_once: bool = False
    last_notified_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @field_validator("trigger_at", "last_notified_at", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    def recipients(self) -> list[str]:
        return [addr.strip() for addr in self.email_recipients.split(",") if addr.strip()]


class TaskDraft(BaseModel):
    """Fields supplied by the authoring flow when a task is created."""

    name: str
    description: str | None = None
    priority: Priority = "medium"
    task_type: TaskType = "public"
    trigger_at: datetime
    email_recipients: str = ""
    cadence: Cadence = "none"
    created_by: str | None = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name is required")
        return value.strip()

    @field_validator("trigger_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return as_utc(value)

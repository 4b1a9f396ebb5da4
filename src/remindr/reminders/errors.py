"""Errors raised across the repository and notifier boundaries."""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["transient", "permanent"]


class RemindrError(Exception):
    pass


class RepositoryError(RemindrError):
    """Task store failure.

    transient: connectivity / lock contention, safe to retry next tick.
    permanent: schema or data corruption.
    """

    def __init__(self, kind: ErrorKind, detail: str) -> None:
        super().__init__(f"{kind} repository error: {detail}")
        self.kind: ErrorKind = kind
        self.detail = detail

    @property
    def transient(self) -> bool:
        return self.kind == "transient"


class NotifyError(RemindrError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

"""SMTP e-mail notifier using aiosmtplib, plus a console fallback."""

from __future__ import annotations

from datetime import tzinfo
from email.message import EmailMessage

import aiosmtplib

from remindr.infrastructure.logger import logger
from remindr.notifications.formatter import format_reminder
from remindr.notifications.types import Reminder
from remindr.reminders.errors import NotifyError
from remindr.reminders.types import Task


def build_message(reminder: Reminder, sender: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = ", ".join(reminder.recipients)
    message["Subject"] = reminder.subject
    message.set_content(reminder.body)
    return message


class EmailNotifier:
    """Sends one reminder e-mail per task.

    secure=True uses implicit TLS (usually port 465); otherwise STARTTLS is
    used when the server offers it.
    """

    name = "email"

    def __init__(
        self,
        host: str,
        port: int = 587,
        sender: str | None = None,
        username: str | None = None,
        password: str | None = None,
        secure: bool = False,
        timeout: float = 30.0,
        tz: tzinfo | None = None,
    ) -> None:
        if not host:
            raise ValueError("SMTP host is required for the e-mail notifier")
        sender = sender or username
        if not sender:
            raise ValueError("SMTP_FROM or SMTP_USER must be set for the e-mail notifier")
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username or None
        self._password = password or None
        self._secure = secure
        self._timeout = timeout
        self._tz = tz

    async def notify(self, task: Task) -> None:
        try:
            reminder = format_reminder(task, self._tz)
        except (KeyError, ValueError) as err:
            raise NotifyError(f"could not format reminder: {err}") from err

        if not reminder.recipients:
            # Nothing to deliver; counts as satisfied so the task does not retry forever.
            logger.warning("Task has no recipients, skipping e-mail", task_id=task.id)
            return

        message = build_message(reminder, self._sender)
        try:
            await aiosmtplib.send(
                message,
                hostname=self._host,
                port=self._port,
                username=self._username,
                password=self._password,
                use_tls=self._secure,
                start_tls=False if self._secure else None,
                timeout=self._timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as err:
            raise NotifyError(f"SMTP delivery failed: {err}") from err

        logger.debug("Reminder e-mail accepted", task_id=task.id, recipients=len(reminder.recipients))


class ConsoleNotifier:
    """Logs reminders instead of sending them. Used when SMTP is not configured."""

    name = "console"

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz
        self.delivered = 0

    async def notify(self, task: Task) -> None:
        reminder = format_reminder(task, self._tz)
        self.delivered += 1
        logger.info(
            "Reminder (console)",
            task_id=task.id,
            subject=reminder.subject,
            recipients=reminder.recipients,
        )

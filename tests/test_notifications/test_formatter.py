"""Tests for reminder formatting."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from remindr.notifications.formatter import format_datetime, format_reminder


class TestFormatReminder:
    def test_subject_and_recipients(self, make_task):
        reminder = format_reminder(make_task(name="Pay rent", email_recipients="a@x.io, b@x.io,"))
        assert reminder.subject == "Reminder: Pay rent"
        assert reminder.recipients == ["a@x.io", "b@x.io"]

    def test_body_fields(self, make_task):
        task = make_task(
            name="Pay rent",
            description="Transfer to landlord",
            created_by="alice",
            priority="high",
            task_type="private",
            cadence="monthly",
        )
        body = format_reminder(task).body
        assert 'This is a reminder for the task "Pay rent".' in body
        assert "Task Description: Transfer to landlord" in body
        assert "Created At: 2025-03-10 09:00" in body
        assert "Created By: alice" in body
        assert "Trigger At: 2025-03-10 11:00" in body
        assert "Repeats: Monthly" in body
        assert "Priority: High" in body
        assert "Type: Private" in body

    def test_placeholders_for_missing_fields(self, make_task):
        body = format_reminder(make_task(description="   ")).body
        assert "Task Description: No description provided." in body
        assert "Created By: -" in body
        assert "Updated At: -" in body
        assert "Updated By: -" in body
        assert "Repeats: One-time" in body

    def test_timestamps_in_display_timezone(self, make_task):
        body = format_reminder(make_task(), ZoneInfo("Asia/Kolkata")).body
        assert "Trigger At: 2025-03-10 16:30" in body


class TestFormatDatetime:
    def test_none(self):
        assert format_datetime(None) == ""

    def test_minute_precision(self):
        assert format_datetime(datetime(2025, 1, 2, 3, 4, 59, tzinfo=UTC)) == "2025-01-02 03:04"

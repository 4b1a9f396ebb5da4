"""Tests for cadence periods and the recurrence gate."""

from datetime import UTC, datetime, timedelta

import pytest

from remindr.reminders.cadence import cadence_gate_open, next_eligible_at, period


class TestPeriod:
    def test_daily_and_weekly(self):
        base = datetime(2025, 3, 10, tzinfo=UTC)
        assert base + period("daily") == base + timedelta(days=1)
        assert base + period("weekly") == base + timedelta(days=7)

    def test_monthly_is_calendar_month(self):
        assert datetime(2025, 1, 31, tzinfo=UTC) + period("monthly") == datetime(2025, 2, 28, tzinfo=UTC)
        assert datetime(2024, 1, 31, tzinfo=UTC) + period("monthly") == datetime(2024, 2, 29, tzinfo=UTC)
        assert datetime(2025, 3, 15, tzinfo=UTC) + period("monthly") == datetime(2025, 4, 15, tzinfo=UTC)

    def test_one_shot_has_no_period(self):
        with pytest.raises(ValueError, match="no period"):
            period("none")


class TestCadenceGate:
    def test_one_shot_open_until_sent(self, make_task, now):
        assert cadence_gate_open(make_task(cadence="none"), now)
        assert not cadence_gate_open(make_task(cadence="none", sent_once=True), now)

    def test_recurring_never_notified_is_open(self, make_task, now):
        assert cadence_gate_open(make_task(cadence="weekly"), now)

    @pytest.mark.parametrize("cadence,last", [
        ("daily", datetime(2025, 3, 9, 12, 0, tzinfo=UTC)),
        ("weekly", datetime(2025, 3, 3, 12, 0, tzinfo=UTC)),
        ("monthly", datetime(2025, 2, 10, 12, 0, tzinfo=UTC)),
    ])
    def test_recurring_reopens_after_period(self, make_task, now, cadence, last):
        task = make_task(cadence=cadence, trigger_at=last - timedelta(hours=1), last_notified_at=last)
        assert cadence_gate_open(task, now)
        assert not cadence_gate_open(task, now - timedelta(seconds=1))

    def test_recurring_ignores_sent_once(self, make_task, now):
        task = make_task(cadence="daily", sent_once=True)
        assert cadence_gate_open(task, now)


class TestNextEligibleAt:
    def test_one_shot_pending(self, make_task):
        task = make_task(cadence="none")
        assert next_eligible_at(task) == task.trigger_at

    def test_one_shot_sent(self, make_task):
        assert next_eligible_at(make_task(cadence="none", sent_once=True)) is None

    def test_recurring_after_notification(self, make_task, now):
        task = make_task(cadence="weekly", trigger_at=now - timedelta(days=30), last_notified_at=now)
        assert next_eligible_at(task) == now + timedelta(days=7)

    def test_recurring_trigger_moved_forward(self, make_task, now):
        later = now + timedelta(days=30)
        task = make_task(cadence="daily", trigger_at=later, last_notified_at=now)
        assert next_eligible_at(task) == later

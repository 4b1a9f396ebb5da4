"""Tests for the in-flight guard."""

import asyncio
import threading

import pytest

from remindr.reminders.in_flight import InFlightGuard


class TestAcquireRelease:
    def test_acquire_once(self):
        guard = InFlightGuard()
        assert guard.try_acquire(7) is True
        assert guard.try_acquire(7) is False
        assert 7 in guard

    def test_release_allows_reacquire(self):
        guard = InFlightGuard()
        guard.try_acquire(7)
        guard.release(7)
        assert 7 not in guard
        assert guard.try_acquire(7) is True

    def test_independent_ids(self):
        guard = InFlightGuard()
        assert guard.try_acquire(1)
        assert guard.try_acquire(2)
        assert len(guard) == 2

    def test_release_unknown_id_is_noop(self):
        InFlightGuard().release(99)

    def test_exactly_one_thread_wins(self):
        guard = InFlightGuard()
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def contend():
            barrier.wait()
            results.append(guard.try_acquire(7))

        threads = [threading.Thread(target=contend) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1


class TestScheduledRelease:
    @pytest.mark.asyncio
    async def test_held_until_delay_elapses(self):
        guard = InFlightGuard()
        guard.try_acquire(7)
        handle = guard.schedule_release(7, 0.05)
        await asyncio.sleep(0.01)
        assert 7 in guard
        await handle.wait()
        assert 7 not in guard
        assert guard.pending_releases() == 0

    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending_release(self):
        guard = InFlightGuard()
        guard.try_acquire(7)
        first = guard.schedule_release(7, 0.02)
        second = guard.schedule_release(7, 0.05)
        await asyncio.sleep(0.03)
        assert not first.fired
        assert 7 in guard
        await second.wait()
        assert 7 not in guard

    @pytest.mark.asyncio
    async def test_cancel_pending_clears_everything(self):
        guard = InFlightGuard()
        guard.try_acquire(1)
        guard.try_acquire(2)
        h1 = guard.schedule_release(1, 10)
        h2 = guard.schedule_release(2, 10)
        guard.cancel_pending()
        assert len(guard) == 0
        assert guard.pending_releases() == 0
        assert not h1.pending
        assert not h2.pending

"""Tests for per-claim locks and in-flight tracking."""

from __future__ import annotations

import threading

from bucket_claim_operator.utils.locks import InflightTracker, KeyedLocks


class TestKeyedLocks:
    """Test cases for KeyedLocks."""

    def test_locks_are_dropped_when_unused(self):
        """Test that no lock outlives its holders."""
        locks = KeyedLocks()

        with locks.hold("a"):
            assert len(locks) == 1

        assert len(locks) == 0

    def test_same_key_blocks(self):
        """Test that a second holder of the same key waits."""
        locks = KeyedLocks()
        entered = threading.Event()

        def worker():
            with locks.hold("a"):
                entered.set()

        with locks.hold("a"):
            thread = threading.Thread(target=worker)
            thread.start()
            assert not entered.wait(0.1)

        thread.join(5)
        assert entered.is_set()

    def test_different_keys_do_not_block(self):
        """Test that holders of different keys proceed independently."""
        locks = KeyedLocks()
        entered = threading.Event()

        def worker():
            with locks.hold("b"):
                entered.set()

        with locks.hold("a"):
            thread = threading.Thread(target=worker)
            thread.start()
            assert entered.wait(5)

        thread.join(5)


class TestInflightTracker:
    """Test cases for InflightTracker."""

    def test_enter_and_exit(self):
        """Test counting running work."""
        tracker = InflightTracker()

        assert tracker.enter("a")
        assert tracker.enter("a")
        assert tracker.count == 2
        tracker.exit("a")
        tracker.exit("a")

        assert tracker.count == 0

    def test_closed_tracker_refuses_work(self):
        """Test that nothing enters once closed."""
        tracker = InflightTracker()
        tracker.close()

        assert tracker.closed
        assert not tracker.enter("a")

    def test_wait_idle_returns_pending_keys(self):
        """Test that wait_idle reports keys still running at the timeout."""
        tracker = InflightTracker()
        tracker.enter("a")

        assert tracker.wait_idle(0.05) == ["a"]

    def test_wait_idle_wakes_on_exit(self):
        """Test that wait_idle returns once running work finishes."""
        tracker = InflightTracker()
        tracker.enter("a")
        timer = threading.Timer(0.05, tracker.exit, args=("a",))
        timer.start()

        assert tracker.wait_idle(5) == []
        timer.join()

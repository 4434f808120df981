"""Unit tests for the login lockout tracker."""
import threading

import pytest

from telemetry_gate.infrastructure.auth.bruteforce import (
    LOCK_SECONDS,
    MAX_ATTEMPTS,
    LockoutTracker,
)
from tests.conftest import FakeClock


@pytest.fixture
def tracker(clock):
    return LockoutTracker(clock=clock)


def fail(tracker, identity, times):
    for _ in range(times):
        tracker.register(identity, False)


class TestCheck:
    def test_unknown_identity_is_unlocked(self, tracker):
        status = tracker.check("1.2.3.4")
        assert not status.locked
        assert status.seconds_remaining == 0

    def test_no_entry_created_by_check(self, tracker):
        tracker.check("1.2.3.4")
        assert tracker.snapshot("1.2.3.4") is None
        assert tracker.size == 0

    def test_locked_after_max_attempts(self, tracker):
        fail(tracker, "ip", MAX_ATTEMPTS)
        status = tracker.check("ip")
        assert status.locked
        assert status.seconds_remaining == LOCK_SECONDS

    def test_one_below_max_not_locked(self, tracker):
        fail(tracker, "ip", MAX_ATTEMPTS - 1)
        assert not tracker.check("ip")

    def test_seconds_remaining_counts_down(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        clock.advance(90.5)
        assert tracker.check("ip").seconds_remaining == LOCK_SECONDS - 90


class TestRegister:
    def test_failure_creates_entry_lazily(self, tracker):
        tracker.register("ip", False)
        entry = tracker.snapshot("ip")
        assert entry.attempts == 1
        assert entry.locked_until is None

    def test_lock_resets_attempts_to_zero(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        entry = tracker.snapshot("ip")
        assert entry.attempts == 0
        assert entry.locked_until == clock.now + LOCK_SECONDS

    def test_success_removes_entry(self, tracker):
        fail(tracker, "ip", MAX_ATTEMPTS)
        tracker.register("ip", True)
        assert tracker.snapshot("ip") is None
        assert not tracker.check("ip")

    def test_success_on_unknown_identity_is_safe(self, tracker):
        tracker.register("ghost", True)  # should not raise
        assert tracker.size == 0

    def test_success_clears_history(self, tracker):
        fail(tracker, "ip", 2)
        tracker.register("ip", True)
        fail(tracker, "ip", 2)
        assert not tracker.check("ip")
        assert tracker.snapshot("ip").attempts == 2

    def test_different_identities_are_independent(self, tracker):
        fail(tracker, "a", MAX_ATTEMPTS)
        assert tracker.check("a").locked
        assert not tracker.check("b").locked
        assert tracker.snapshot("b") is None


class TestExpiry:
    def test_lock_expires(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        clock.advance(LOCK_SECONDS + 1)
        assert not tracker.check("ip").locked

    def test_expired_entry_is_evicted_on_check(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        clock.advance(LOCK_SECONDS)
        tracker.check("ip")
        assert tracker.snapshot("ip") is None

    def test_single_failure_after_expiry_does_not_relock(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        clock.advance(LOCK_SECONDS + 1)
        assert not tracker.check("ip").locked
        tracker.register("ip", False)
        assert not tracker.check("ip").locked
        assert tracker.snapshot("ip").attempts == 1

    def test_failure_after_expiry_without_check_starts_fresh(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS)
        clock.advance(LOCK_SECONDS + 1)
        tracker.register("ip", False)
        entry = tracker.snapshot("ip")
        assert entry.attempts == 1
        assert entry.locked_until is None


class TestConfiguration:
    def test_custom_policy(self):
        clock = FakeClock()
        tracker = LockoutTracker(max_attempts=5, lock_seconds=30, clock=clock)
        fail(tracker, "ip", 4)
        assert not tracker.check("ip")
        tracker.register("ip", False)
        assert tracker.check("ip").seconds_remaining == 30

    def test_invalid_max_attempts_rejected(self):
        with pytest.raises(ValueError):
            LockoutTracker(max_attempts=0)

    def test_clear_drops_everything(self, tracker):
        fail(tracker, "a", 1)
        fail(tracker, "b", MAX_ATTEMPTS)
        tracker.clear()
        assert tracker.size == 0


class TestConcurrency:
    def _storm(self, tracker, identity, failures, barrier):
        barrier.wait()
        for _ in range(failures):
            tracker.register(identity, False)

    def test_same_identity_updates_are_serialized(self, tracker):
        # 8 threads x 3 failures = 24 failures = exactly 8 lock cycles, 0 left over.
        threads_n = 8
        barrier = threading.Barrier(threads_n)
        threads = [
            threading.Thread(target=self._storm, args=(tracker, "same", MAX_ATTEMPTS, barrier))
            for _ in range(threads_n)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        entry = tracker.snapshot("same")
        assert entry.attempts == 0
        assert tracker.check("same").locked

    def test_storms_on_different_identities_do_not_cross(self):
        tracker = LockoutTracker(max_attempts=1000, clock=FakeClock())
        barrier = threading.Barrier(2)
        a = threading.Thread(target=self._storm, args=(tracker, "10.0.0.1", 400, barrier))
        b = threading.Thread(target=self._storm, args=(tracker, "10.0.0.2", 250, barrier))
        a.start()
        b.start()
        a.join()
        b.join()
        assert tracker.snapshot("10.0.0.1").attempts == 400
        assert tracker.snapshot("10.0.0.2").attempts == 250


class TestStaleEntries:
    def test_failure_records_time(self, tracker, clock):
        tracker.register("ip", False)
        assert tracker.snapshot("ip").last_failure == clock.now

    def test_old_failures_are_forgotten_on_check(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS - 1)
        clock.advance(LOCK_SECONDS)
        assert not tracker.check("ip")
        assert tracker.snapshot("ip") is None

    def test_old_failures_do_not_count_toward_lock(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS - 1)
        clock.advance(LOCK_SECONDS + 1)
        tracker.register("ip", False)
        assert not tracker.check("ip")
        assert tracker.snapshot("ip").attempts == 1

    def test_recent_failures_still_count(self, tracker, clock):
        fail(tracker, "ip", MAX_ATTEMPTS - 1)
        clock.advance(LOCK_SECONDS - 1)
        tracker.register("ip", False)
        assert tracker.check("ip").locked

    def test_spoofed_identities_do_not_accumulate(self, clock):
        tracker = LockoutTracker(shards=1, clock=clock)
        for i in range(50):
            tracker.register(f"203.0.113.{i}", False)
        assert tracker.size == 50
        clock.advance(LOCK_SECONDS + 1)
        tracker.register("198.51.100.1", False)
        assert tracker.size == 1

    def test_active_lock_survives_sweep(self, clock):
        tracker = LockoutTracker(shards=1, clock=clock)
        fail(tracker, "locked", MAX_ATTEMPTS)
        tracker.register("other", False)
        clock.advance(LOCK_SECONDS - 5)
        tracker.register("newcomer", False)
        assert tracker.check("locked").locked
        assert tracker.snapshot("other") is None
        assert tracker.snapshot("newcomer").attempts == 1

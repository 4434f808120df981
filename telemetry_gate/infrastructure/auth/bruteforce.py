"""In-memory brute-force protection for the login endpoint.

Process-local. Each client identity (usually the source address) gets a
failure counter; reaching MAX_ATTEMPTS locks the identity for LOCK_SECONDS
and starts a fresh counting cycle. Failures older than LOCK_SECONDS with no
lock behind them are forgotten.

Entries are spread over a fixed number of shards, each guarded by its own
lock, so attempts for one identity are serialized while unrelated identities
proceed in parallel. Stale entries are swept from a shard whenever a failure
lands on it, so the map stays bounded by recent activity.
"""
import logging
import math
import threading
import time
import zlib
from typing import Callable

MAX_ATTEMPTS = 3
LOCK_SECONDS = 10 * 60
SHARD_COUNT = 16

log = logging.getLogger("telemetry_gate.auth")


class LockoutEntry:
    """Failure state for one identity."""

    __slots__ = ("identity", "attempts", "locked_until", "last_failure")

    def __init__(
        self,
        identity: str,
        attempts: int = 0,
        locked_until: float | None = None,
        last_failure: float | None = None,
    ):
        self.identity = identity
        self.attempts = attempts
        self.locked_until = locked_until
        self.last_failure = last_failure

    def is_stale(self, now: float, window: float) -> bool:
        """True when the entry no longer affects any decision."""
        if self.locked_until is not None:
            return self.locked_until <= now
        return self.last_failure is None or self.last_failure + window <= now

    def copy(self) -> "LockoutEntry":
        return LockoutEntry(self.identity, self.attempts, self.locked_until, self.last_failure)

    def __repr__(self) -> str:
        return (
            f"LockoutEntry(identity={self.identity!r}, attempts={self.attempts}, "
            f"locked_until={self.locked_until!r}, last_failure={self.last_failure!r})"
        )


class LockStatus:
    """Result of a lockout check."""

    __slots__ = ("locked", "seconds_remaining")

    def __init__(self, locked: bool, seconds_remaining: int = 0):
        self.locked = locked
        self.seconds_remaining = seconds_remaining

    def __bool__(self) -> bool:
        return self.locked

    def __repr__(self) -> str:
        return f"LockStatus(locked={self.locked}, seconds_remaining={self.seconds_remaining})"


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self):
        self.lock = threading.Lock()
        self.entries: dict[str, LockoutEntry] = {}


class LockoutTracker:
    """Per-identity failed-login counter with a timed lock."""

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        lock_seconds: float = LOCK_SECONDS,
        shards: int = SHARD_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self.max_attempts = max_attempts
        self.lock_seconds = lock_seconds
        self._clock = clock
        self._shards = tuple(_Shard() for _ in range(shards))

    def _shard(self, identity: str) -> _Shard:
        return self._shards[zlib.crc32(identity.encode("utf-8")) % len(self._shards)]

    def _sweep(self, shard: _Shard, now: float) -> None:
        stale = [k for k, e in shard.entries.items() if e.is_stale(now, self.lock_seconds)]
        for key in stale:
            del shard.entries[key]
        if stale:
            log.debug("swept %d stale lockout entries", len(stale))

    def check(self, identity: str) -> LockStatus:
        """Is ``identity`` locked right now? Evicts a stale entry as a side effect."""
        shard = self._shard(identity)
        with shard.lock:
            entry = shard.entries.get(identity)
            if entry is None:
                return LockStatus(False)
            now = self._clock()
            if entry.locked_until is not None and entry.locked_until > now:
                return LockStatus(True, math.ceil(entry.locked_until - now))
            if entry.is_stale(now, self.lock_seconds):
                # Lock expired or failures aged out: start over as if it never failed.
                del shard.entries[identity]
            return LockStatus(False)

    def register(self, identity: str, success: bool) -> None:
        """Record the outcome of one login attempt."""
        shard = self._shard(identity)
        with shard.lock:
            if success:
                shard.entries.pop(identity, None)
                return

            now = self._clock()
            self._sweep(shard, now)
            entry = shard.entries.get(identity)
            if entry is None:
                entry = LockoutEntry(identity)
                shard.entries[identity] = entry

            entry.attempts += 1
            entry.last_failure = now
            if entry.attempts >= self.max_attempts:
                entry.locked_until = now + self.lock_seconds
                entry.attempts = 0
                log.warning(
                    "identity=%s locked for %ds after %d failed attempts",
                    identity, self.lock_seconds, self.max_attempts,
                )

    def snapshot(self, identity: str) -> LockoutEntry | None:
        """Copy of the current entry for ``identity``, or None."""
        shard = self._shard(identity)
        with shard.lock:
            entry = shard.entries.get(identity)
            return entry.copy() if entry else None

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    @property
    def size(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total

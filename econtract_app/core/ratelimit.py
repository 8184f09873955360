"""Fixed-window request counters.

A window opens on the first counted request for a key and lasts
``window_seconds``.  Requests beyond ``limit`` inside the window are rejected
and not counted.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from econtract_app.repositories.tables import RateLimitCounterRow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


class CounterStore(Protocol):
    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        """Atomically check the window for ``key`` and count the request if allowed."""
        ...


def _decide(
    count: int, start: float, limit: int, window_seconds: int, now: float
) -> Tuple[bool, int, float]:
    """Return (allowed, new_count, window_start) for one request."""
    if now - start >= window_seconds:
        count, start = 0, now
    if count >= limit:
        return False, count, start
    return True, count + 1, start


class MemoryCounterStore:
    def __init__(self, max_keys: int = 10_000) -> None:
        self._windows: Dict[str, Tuple[int, float, int]] = {}
        self._lock = threading.Lock()
        self._max_keys = max_keys

    def _purge(self, now: float) -> None:
        expired = [k for k, (_, start, win) in self._windows.items() if now - start >= win]
        for k in expired:
            self._windows.pop(k, None)

    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        with self._lock:
            count, start, _ = self._windows.get(key, (0, now, window_seconds))
            allowed, count, start = _decide(count, start, limit, window_seconds, now)
            if count:
                self._windows[key] = (count, start, window_seconds)
            if len(self._windows) > self._max_keys:
                self._purge(now)
            return RateLimitResult(allowed, max(0, limit - count), start + window_seconds)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class SqlCounterStore:
    def __init__(self, Session: sessionmaker) -> None:
        self.Session = Session

    def hit(self, key: str, limit: int, window_seconds: int, now: float) -> RateLimitResult:
        with self.Session() as session:
            with session.begin():
                stmt = (
                    select(RateLimitCounterRow)
                    .where(RateLimitCounterRow.key == key)
                    .with_for_update()
                )
                row = session.execute(stmt).scalar_one_or_none()
                if row is None:
                    allowed, count, start = _decide(0, now, limit, window_seconds, now)
                    if count:
                        session.add(
                            RateLimitCounterRow(
                                key=key,
                                count=count,
                                window_start=start,
                                window_seconds=window_seconds,
                            )
                        )
                else:
                    allowed, count, start = _decide(
                        row.count, row.window_start, limit, window_seconds, now
                    )
                    row.count = count
                    row.window_start = start
                    row.window_seconds = window_seconds
        return RateLimitResult(allowed, max(0, limit - count), start + window_seconds)


class RateLimiter:
    """Front for a counter store applying the store-failure policy."""

    def __init__(
        self,
        store: CounterStore,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.fail_open = fail_open
        self.clock = clock

    def check_limit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self.clock()
        try:
            return self.store.hit(key, limit, window_seconds, now)
        except Exception as exc:
            if self.fail_open:
                log.warning("rate limit store failed, allowing %s: %s", key, exc)
                return RateLimitResult(True, limit, now + window_seconds)
            log.warning("rate limit store failed, rejecting %s: %s", key, exc)
            return RateLimitResult(False, 0, now + window_seconds)


__all__ = [
    "RateLimitResult",
    "CounterStore",
    "MemoryCounterStore",
    "SqlCounterStore",
    "RateLimiter",
]

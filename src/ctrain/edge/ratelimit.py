"""Fixed-window per-client rate limiting.

:class:`RateLimiter` owns its window map behind a single lock and exposes
only :meth:`RateLimiter.allow`.  Expired windows are removed by a periodic
sweep so that one-shot clients do not accumulate forever.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from ctrain.edge.client import client_identity

logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window counter keyed by client identity.

    Thread-safe.  The lock is held only for the read-modify-write of one
    window, never across I/O.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window <= 0:
            raise ValueError("window must be positive")
        self._limit = limit
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, RateWindow] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> float:
        return self._window

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def allow(self, identity: str) -> bool:
        """Count one request from *identity* and return whether it may proceed."""
        now = self._clock()
        with self._lock:
            current = self._windows.get(identity)
            if current is None or now >= current.reset_at:
                self._windows[identity] = RateWindow(count=1, reset_at=now + self._window)
                return True
            if current.count >= self._limit:
                return False
            current.count += 1
            return True

    def retry_after(self, identity: str) -> int:
        """Whole seconds until *identity*'s window resets (at least 1)."""
        now = self._clock()
        with self._lock:
            current = self._windows.get(identity)
            remaining = current.reset_at - now if current is not None else 0.0
        return max(1, math.ceil(remaining))

    def sweep(self) -> int:
        """Delete every expired window and return how many were removed."""
        with self._lock:
            snapshot = list(self._windows.items())

        now = self._clock()
        expired = [identity for identity, w in snapshot if now >= w.reset_at]
        if not expired:
            return 0

        removed = 0
        with self._lock:
            for identity in expired:
                current = self._windows.get(identity)
                # A request may have opened a fresh window since the snapshot.
                if current is not None and now >= current.reset_at:
                    del self._windows[identity]
                    removed += 1
        return removed

    async def run_sweeper(self, interval: float) -> None:
        """Sweep every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter swept %d expired window(s)", removed)


class RateLimitMiddleware:
    """Reject over-limit clients with 429 before any handler runs."""

    def __init__(self, app: ASGIApp, limiter: RateLimiter) -> None:
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        identity = client_identity(scope)
        if self.limiter.allow(identity):
            await self.app(scope, receive, send)
            return

        logger.info("Rate limit exceeded for %s", identity)
        response = JSONResponse(
            {"error": "Too many requests"},
            status_code=429,
            headers={"Retry-After": str(self.limiter.retry_after(identity))},
        )
        await response(scope, receive, send)

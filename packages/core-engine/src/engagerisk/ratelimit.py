"""Fixed-window request limiter for EngageRisk submissions.

Windows live in a ``WindowStore``. ``MemoryWindowStore`` suits a single
long-lived process; ``AssessmentStore`` keeps them in SQLite so limits
hold across separate CLI runs.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

# Default: 10 requests per 10 minutes per identifier
_DEFAULT_MAX_REQUESTS = 10
_DEFAULT_WINDOW_SECONDS = 600.0
_DEFAULT_MAX_TRACKED = 10_000


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass(frozen=True)
class Window:
    count: int
    reset_at: float


class WindowStore(Protocol):
    """Where fixed windows are kept between checks."""

    def get_window(self, identifier: str) -> Optional[Window]: ...

    def put_window(self, identifier: str, window: Window) -> None: ...

    def purge_windows(self, now: float) -> int: ...

    def window_count(self) -> int: ...


class MemoryWindowStore:
    """Process-local windows in a dict."""

    def __init__(self):
        self._windows: dict[str, Window] = {}

    def get_window(self, identifier: str) -> Optional[Window]:
        return self._windows.get(identifier)

    def put_window(self, identifier: str, window: Window) -> None:
        self._windows[identifier] = window

    def purge_windows(self, now: float) -> int:
        expired = [key for key, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def window_count(self) -> int:
        return len(self._windows)


class RateLimiter:
    """Counts requests per identifier inside a fixed time window.

    The first request from an identifier opens a window; once
    ``max_requests`` have been seen, further requests are refused until
    the window expires. Expired windows are purged whenever more than
    ``max_tracked`` identifiers are held.
    """

    def __init__(
        self,
        max_requests: int = _DEFAULT_MAX_REQUESTS,
        window_seconds: float = _DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
        windows: WindowStore | None = None,
        max_tracked: int = _DEFAULT_MAX_TRACKED,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_tracked = max_tracked
        self._clock = clock
        self._windows = windows if windows is not None else MemoryWindowStore()

    def check(self, identifier: str) -> RateLimitResult:
        """Record a request and report whether it is allowed."""
        now = self._clock()
        if self._windows.window_count() >= self.max_tracked:
            self._purge(now)

        window = self._windows.get_window(identifier)

        if window is None or now > window.reset_at:
            window = Window(count=1, reset_at=now + self.window_seconds)
            self._windows.put_window(identifier, window)
            return RateLimitResult(
                allowed=True,
                remaining=self.max_requests - 1,
                reset_at=window.reset_at,
            )

        if window.count >= self.max_requests:
            logger.info("Rate limit hit for %s", identifier)
            return RateLimitResult(allowed=False, remaining=0, reset_at=window.reset_at)

        window = Window(count=window.count + 1, reset_at=window.reset_at)
        self._windows.put_window(identifier, window)
        return RateLimitResult(
            allowed=True,
            remaining=self.max_requests - window.count,
            reset_at=window.reset_at,
        )

    def purge_expired(self) -> int:
        """Drop windows that have expired.

        Returns:
            Number of identifiers removed.
        """
        return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        removed = self._windows.purge_windows(now)
        if removed:
            logger.debug("Purged %d expired rate limit windows", removed)
        return removed

    def __len__(self) -> int:
        return self._windows.window_count()

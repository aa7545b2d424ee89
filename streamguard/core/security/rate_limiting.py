"""
Rate Limiting Module

Thread-safe in-memory sliding window log rate limiter.

Each client key owns its own window and lock, so the filter-count-append
sequence for one key is linearizable while different keys never wait on
each other during a check. A registry lock only guards creating and
evicting windows.

Stale keys are kept forever unless eviction is requested, either
explicitly through ``evict_stale`` or every ``cleanup_interval`` checks.
"""

import math
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, List, Optional

from fastapi import Request

from streamguard import config
from streamguard.core.security.secure_logger import secure_logger


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def describe_window(window_ms: int) -> str:
    """Human-readable retry hint for a window, e.g. ``"15 minutes"``."""
    for unit_ms, unit in ((3_600_000, "hour"), (60_000, "minute"), (1000, "second")):
        if window_ms >= unit_ms and window_ms % unit_ms == 0:
            count = window_ms // unit_ms
            return f"{count} {unit}" + ("s" if count != 1 else "")
    return f"{window_ms} milliseconds"


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # seconds


@dataclass
class ClientWindow:
    """Timestamps (ms) of admitted requests for a single key."""
    timestamps: List[float] = field(default_factory=list)
    lock: Lock = field(default_factory=Lock)
    evicted: bool = False


class RateLimiter:
    """
    Sliding window log rate limiter keyed by client identity.

    A request at ``now`` is admitted when fewer than ``max_requests``
    timestamps fall in ``(now - window_ms, now]``. Rejected requests are not
    recorded and do not consume a slot.
    """

    def __init__(
        self,
        window_ms: int = config.RATE_LIMIT_WINDOW_MS,
        max_requests: int = config.RATE_LIMIT_MAX_REQUESTS,
        clock: Callable[[], float] = monotonic_ms,
        cleanup_interval: int = config.RATE_LIMIT_CLEANUP_INTERVAL,
        trust_proxy_headers: bool = config.TRUST_PROXY_HEADERS,
    ):
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.trust_proxy_headers = trust_proxy_headers
        self._clock = clock
        self._windows: Dict[str, ClientWindow] = {}
        self._registry_lock = Lock()
        self._cleanup_interval = cleanup_interval
        self._check_counter = 0

    @property
    def retry_after(self) -> int:
        """Retry hint in whole seconds."""
        return max(math.ceil(self.window_ms / 1000), 1)

    @property
    def retry_after_text(self) -> str:
        return describe_window(self.window_ms)

    def _window_for(self, key: str) -> ClientWindow:
        with self._registry_lock:
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = ClientWindow()
            return window

    def _maybe_cleanup(self, now: float) -> None:
        if self._cleanup_interval <= 0:
            return
        with self._registry_lock:
            self._check_counter += 1
            if self._check_counter < self._cleanup_interval:
                return
            self._check_counter = 0
        self.evict_stale(now)

    def check(self, key: str, now: Optional[float] = None) -> RateLimitDecision:
        if now is None:
            now = self._clock()
        self._maybe_cleanup(now)
        window_start = now - self.window_ms

        while True:
            window = self._window_for(key)
            with window.lock:
                # Evicted between lookup and lock; fetch the replacement
                if window.evicted:
                    continue
                live = [ts for ts in window.timestamps if ts > window_start]
                if len(live) >= self.max_requests:
                    window.timestamps = live
                    return RateLimitDecision(
                        allowed=False,
                        limit=self.max_requests,
                        remaining=0,
                        retry_after=self.retry_after,
                    )
                live.append(now)
                window.timestamps = live
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - len(live),
                    retry_after=self.retry_after,
                )

    def allow(self, key: str, now: Optional[float] = None) -> bool:
        """Admit or reject one request for ``key``. Never raises."""
        try:
            return self.check(key, now).allowed
        except Exception as exc:
            secure_logger.error("RateLimiter: Error checking rate limit", exc)
            return False

    def evict_stale(self, now: Optional[float] = None) -> int:
        """Drop keys without live timestamps. Returns the number evicted."""
        if now is None:
            now = self._clock()
        window_start = now - self.window_ms
        evicted = 0
        with self._registry_lock:
            for key in list(self._windows):
                window = self._windows[key]
                with window.lock:
                    if any(ts > window_start for ts in window.timestamps):
                        continue
                    window.evicted = True
                    del self._windows[key]
                    evicted += 1
        if evicted:
            secure_logger.debug("RateLimiter: Evicted stale clients", {"count": evicted})
        return evicted

    def reset(self, key: Optional[str] = None) -> None:
        with self._registry_lock:
            keys = [key] if key is not None else list(self._windows)
            for k in keys:
                window = self._windows.pop(k, None)
                if window is not None:
                    with window.lock:
                        window.evicted = True

    def tracked_keys(self) -> List[str]:
        with self._registry_lock:
            return list(self._windows)

    def get_key_for_request(self, request: Request) -> str:
        """Rate limit key for a request: the client address."""
        if self.trust_proxy_headers:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                # Take first IP in chain (client IP)
                return f"ip:{forwarded.split(',')[0].strip()}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"


# Global rate limiter
_rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    """Get the global API rate limiter."""
    return _rate_limiter

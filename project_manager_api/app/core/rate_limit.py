"""
Fixed-window request rate limiting.

Two interchangeable limiters count requests per client key (the
caller's IP address) inside windows of ``window`` seconds:

* :class:`InMemoryRateLimiter` keeps the counters in a dictionary
  guarded by one lock.  Counters are local to the process, so several
  server processes each enforce the limit independently.
* :class:`RedisRateLimiter` keeps them in Redis with an atomic
  ``INCR`` and a key expiry, so every process shares one count.

Both answer with a :class:`RateLimitDecision`.  A limiter is built
once by :func:`build_rate_limiter` and handed to
:class:`~project_manager_api.app.core.middleware.RateLimitMiddleware`;
nothing here is module-global state.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import redis

from .config import Settings
from .errors import CacheUnavailableError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    # Seconds until the current window closes; 0 when allowed.
    retry_after: int = 0


class InMemoryRateLimiter:
    """Per-process fixed-window counter.

    Parameters
    ----------
    limit : int
        Requests admitted per key and window.
    window : float
        Window length in seconds.
    clock : Callable[[], float], optional
        Monotonic time source, replaceable in tests.
    """

    def __init__(self, limit: int, window: float, clock: Callable[[], float] = time.monotonic) -> None:
        if limit < 1 or window <= 0:
            raise ValueError("limit must be >= 1 and window > 0")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start, hits in window)
        self._counters: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            started, count = self._counters.get(key, (now, 0))
            if now - started >= self.window:
                started, count = now, 0
            count += 1
            self._counters[key] = (started, count)
            self._evict_expired(now)
        if count > self.limit:
            remaining = self.window - (now - started)
            return RateLimitDecision(False, max(1, math.ceil(remaining)))
        return RateLimitDecision(True)

    def _evict_expired(self, now: float) -> None:
        # Called with the lock held.
        if len(self._counters) < 1024:
            return
        stale = [k for k, (started, _) in self._counters.items() if now - started >= self.window]
        for k in stale:
            del self._counters[k]

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


class RedisRateLimiter:
    """Fixed-window counter shared through Redis.

    The first hit of a window creates the key and sets its expiry to
    the window length; the key's TTL then tells a rejected caller how
    long to wait.  When Redis cannot be reached the request is admitted
    and a warning is logged.
    """

    def __init__(self, client: "redis.Redis", limit: int, window: int, prefix: str = "rate_limit:") -> None:
        if limit < 1 or window < 1:
            raise ValueError("limit must be >= 1 and window >= 1")
        self.client = client
        self.limit = limit
        self.window = int(window)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def ping(self) -> None:
        """Check the store is reachable.

        Raises
        ------
        CacheUnavailableError
            If Redis does not answer.
        """
        try:
            self.client.ping()
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"rate limiter store unreachable: {exc}") from exc

    def hit(self, key: str) -> RateLimitDecision:
        redis_key = self._key(key)
        try:
            count = int(self.client.incr(redis_key))
            if count == 1:
                self.client.expire(redis_key, self.window)
            if count <= self.limit:
                return RateLimitDecision(True)
            ttl = int(self.client.ttl(redis_key))
            if ttl < 0:
                # The key lost its expiry (e.g. EXPIRE failed after INCR); restore it.
                self.client.expire(redis_key, self.window)
                ttl = self.window
        except redis.RedisError as exc:
            logger.warning("Rate limiter store unavailable, admitting request for %s: %s", key, exc)
            return RateLimitDecision(True)
        return RateLimitDecision(False, max(1, ttl))


def build_rate_limiter(settings: Settings) -> Optional[object]:
    """Create the limiter selected by ``settings.rate_limit_backend``.

    Returns ``None`` when rate limiting is disabled.
    """
    if not settings.rate_limit_enabled:
        return None
    backend = settings.rate_limit_backend.lower()
    if backend == "redis":
        client = redis.Redis.from_url(settings.redis_url, socket_timeout=1, socket_connect_timeout=1)
        logger.info("Using Redis rate limiter at %s (%d req / %ds)", settings.redis_url, settings.rate_limit_limit, settings.rate_limit_window)
        return RedisRateLimiter(client, settings.rate_limit_limit, settings.rate_limit_window, settings.rate_limit_prefix)
    if backend != "memory":
        raise ValueError(f"unknown rate limit backend: {settings.rate_limit_backend!r}")
    logger.info("Using in-memory rate limiter (%d req / %ds)", settings.rate_limit_limit, settings.rate_limit_window)
    return InMemoryRateLimiter(settings.rate_limit_limit, settings.rate_limit_window)

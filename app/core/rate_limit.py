"""
Per-user, per-action request throttling.

Routes depend on ``rate_limit(action, limit)``; the limiter behind it only has
to answer ``allow(key) -> bool``. The in-process sliding window is the default
and only throttles a single instance; set REDIS_URL to share counters.
"""

import logging
import time
from collections import deque
from threading import Lock
from typing import Callable, Optional, Protocol

import redis
from fastapi import Depends

from app.core import config
from app.core.errors import RateLimitedError
from app.core.security import get_current_user
from app.db.models.user import User

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def allow(self, key: str) -> bool:
        ...


class SlidingWindowRateLimiter:
    """Admits at most ``limit`` requests per key within any ``window_seconds`` span."""

    CLEANUP_INTERVAL = 60

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._cleanup(now)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def _cleanup(self, now: float):
        if now - self._last_cleanup < self.CLEANUP_INTERVAL:
            return
        idle = [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
        for k in idle:
            del self._hits[k]
        if idle:
            logger.debug(f"Cleaned up {len(idle)} idle rate limit keys")
        self._last_cleanup = now


class RedisRateLimiter:
    """Fixed window counter shared across instances. Fails open when Redis is unreachable."""

    def __init__(self, client: redis.Redis, limit: int, window_seconds: int, prefix: str = "olma:ratelimit:"):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def allow(self, key: str) -> bool:
        window = int(time.time() // self.window_seconds)
        redis_key = f"{self.prefix}{key}:{window}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.expire(redis_key, self.window_seconds)
            count, _ = pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Rate limit check failed, allowing request: {e}")
            return True
        return int(count) <= self.limit


_redis_client: Optional[redis.Redis] = None
_limiters: dict[str, RateLimiter] = {}
_limiters_lock = Lock()


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        logger.info("Initializing Redis connection for rate limiting...")
        _redis_client = redis.from_url(config.REDIS_URL, decode_responses=True, socket_connect_timeout=5)
    return _redis_client


def get_rate_limiter(action: str, limit: int, window_seconds: int) -> RateLimiter:
    """One limiter per action, created on first use."""
    with _limiters_lock:
        limiter = _limiters.get(action)
        if limiter is None:
            if config.REDIS_URL:
                limiter = RedisRateLimiter(get_redis_client(), limit, window_seconds)
            else:
                limiter = SlidingWindowRateLimiter(limit, window_seconds)
            _limiters[action] = limiter
        return limiter


def reset_rate_limiters():
    with _limiters_lock:
        _limiters.clear()


def rate_limit(action: str, limit: int, window_seconds: Optional[int] = None):
    """Dependency factory throttling the current user on ``action``."""

    def dependency(current_user: User = Depends(get_current_user)) -> None:
        if not config.RATE_LIMIT_ENABLED:
            return
        limiter = get_rate_limiter(action, limit, window_seconds or config.RATE_LIMIT_WINDOW_SECONDS)
        if not limiter.allow(f"{current_user.id}:{action}"):
            logger.warning(f"Rate limit exceeded: user={current_user.id} action={action}")
            raise RateLimitedError()

    return dependency

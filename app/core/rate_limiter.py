import logging
import threading
import time
from abc import ABC, abstractmethod

import redis

from app.core.config import settings

logger = logging.getLogger("app.rate_limit")


class RateLimiter(ABC):
    """Fixed-window request counter keyed by caller."""

    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        """Record one request; return (allowed, retry_after_seconds)."""
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


def _current_window(window_seconds: int, now: float) -> tuple[int, int]:
    window = int(now // window_seconds)
    retry_after = max(1, int((window + 1) * window_seconds - now))
    return window, retry_after


class InMemoryRateLimiter(RateLimiter):
    def __init__(self) -> None:
        self._counters: dict[str, tuple[int, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        window, retry_after = _current_window(window_seconds, time.time())
        with self._lock:
            counted_window, count = self._counters.get(key, (window, 0))
            if counted_window != window:
                count = 0
            if count >= limit:
                self._counters[key] = (window, count)
                return False, retry_after
            self._counters[key] = (window, count + 1)
            return True, 0

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


class RedisRateLimiter(RateLimiter):
    def __init__(self, redis_url: str, prefix: str = "rl") -> None:
        self._client = redis.Redis.from_url(
            redis_url,
            socket_connect_timeout=0.2,
            socket_timeout=0.2,
        )
        self._prefix = prefix

    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        window, retry_after = _current_window(window_seconds, time.time())
        redis_key = f"{self._prefix}:{key}:{window}"

        pipe = self._client.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, window_seconds + 1)
        count, _ = pipe.execute()

        if count > limit:
            return False, retry_after
        return True, 0

    def reset(self) -> None:
        keys = self._client.keys(f"{self._prefix}:*")
        if keys:
            self._client.delete(*keys)


class FallbackRateLimiter(RateLimiter):
    def __init__(self, primary: RateLimiter, fallback: RateLimiter) -> None:
        self._primary = primary
        self._fallback = fallback

    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        try:
            return self._primary.hit(key=key, limit=limit, window_seconds=window_seconds)
        except redis.RedisError:
            logger.warning("rate_limit_backend_unavailable key=%s", key)
            return self._fallback.hit(key=key, limit=limit, window_seconds=window_seconds)

    def reset(self) -> None:
        try:
            self._primary.reset()
        except redis.RedisError:
            logger.warning("rate_limit_backend_unavailable action=reset")
        self._fallback.reset()


def _build_rate_limiter() -> RateLimiter:
    backend = settings.rate_limit_backend.strip().lower()
    memory = InMemoryRateLimiter()
    if backend == "redis":
        return FallbackRateLimiter(
            primary=RedisRateLimiter(redis_url=settings.rate_limit_redis_url),
            fallback=memory,
        )
    return memory


rate_limiter: RateLimiter = _build_rate_limiter()

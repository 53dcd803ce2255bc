"""Fixed-window per-user rate limiting for vote submissions.

``RateLimiter`` keeps counters in process memory. When ``REDIS_URL`` is set,
``RedisRateLimiter`` keeps them in Redis so every server instance shares
the same window.
"""

import logging
import threading
import time

from app.services.redis_client import get_redis

logger = logging.getLogger(__name__)

VOTE_KEY_PREFIX = "ratelimit:vote:"


class RateLimiter:
    """Allow at most ``max_requests`` hits per ``window_seconds`` per key."""

    def __init__(self, max_requests=10, window_seconds=60, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # key -> [count, window_start]
        self._counters = {}
        self._last_prune = clock()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._counters)

    def hit(self, key) -> bool:
        """Record a request for ``key``. Returns False when the limit is exceeded."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            counter = self._counters.get(key)
            if counter is None or now - counter[1] >= self.window_seconds:
                self._counters[key] = [1, now]
                return True
            if counter[0] >= self.max_requests:
                return False
            counter[0] += 1
            return True

    def _prune(self, now):
        """Drop counters whose window has expired. Caller holds the lock."""
        if now - self._last_prune < self.window_seconds:
            return
        self._last_prune = now
        expired = [k for k, (_, start) in self._counters.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._counters[k]

    def reset(self):
        with self._lock:
            self._counters.clear()


class RedisRateLimiter:
    """Same contract as ``RateLimiter`` backed by Redis INCR/EXPIRE.

    Redis errors fail open: a request is allowed when the counter store is
    unreachable.
    """

    def __init__(self, client, max_requests=10, window_seconds=60, prefix=VOTE_KEY_PREFIX):
        self.client = client
        self.max_requests = max_requests
        self.window_seconds = int(window_seconds)
        self.prefix = prefix

    def hit(self, key) -> bool:
        redis_key = f"{self.prefix}{key}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.expire(redis_key, self.window_seconds, nx=True)
            count, _ = pipe.execute()
            return int(count) <= self.max_requests
        except Exception as e:
            logger.error(f"Redis rate limit error: {e}")
            return True

    def reset(self):
        try:
            for redis_key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(redis_key)
        except Exception as e:
            logger.error(f"Redis rate limit reset error: {e}")


def create_vote_rate_limiter(config):
    """Pick a Redis-backed limiter when Redis is configured and reachable."""
    max_requests = config.get('VOTE_RATE_LIMIT', 10)
    window = config.get('VOTE_RATE_WINDOW_SECONDS', 60)

    client = get_redis(config.get('REDIS_URL'))
    if client is not None:
        logger.info("Vote rate limiting backed by Redis")
        return RedisRateLimiter(client, max_requests=max_requests, window_seconds=window)

    return RateLimiter(max_requests=max_requests, window_seconds=window)

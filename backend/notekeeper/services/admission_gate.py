"""
Notekeeper Backend — Admission Gate
=====================================

What:  Shared request-rate limiter consulted before every note operation.
Why:   Caps total load on the Note Store across every server instance.
How:   Sliding window counter kept in Redis, so all instances share one budget
       and expiry is handled by Redis TTLs (no cleanup task here).
Who:   Called by RateLimitMiddleware; knows nothing about notes.

Algorithm: Sliding Window on a Redis sorted set
    One sorted set per key; member = unique request tag, score = arrival time.
    A single Lua script runs atomically on the Redis server:
    1. ZREMRANGEBYSCORE drops entries older than the window
    2. ZCARD counts requests already in the window
    3. ZRANGE 0 0 fetches the oldest entry (for the Retry-After hint)
    4. Below the limit: ZADD records this request, EXPIRE keeps the key
       alive for one window after the last request
    A rejected request is never written, so rejected traffic does not
    extend the block and concurrent callers never see a phantom entry.

Key derivation:
    The key comes from a key strategy chosen by configuration.
    - global:    every request shares one key (one noisy caller throttles all)
    - client_ip: one key per remote address
"""

import logging
import time
import uuid
from typing import Callable, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.requests import Request

from notekeeper.exceptions import CounterStoreError, RateLimitExceededError

logger = logging.getLogger(__name__)

KeyStrategy = Callable[[Request], str]

GLOBAL_KEY = "global"

# KEYS[1] counter key
# ARGV: cutoff score, arrival score, window seconds, limit, member
# Returns {admitted (0/1), requests in window, oldest score}
ADMIT_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[4])
redis.call('ZREMRANGEBYSCORE', key, '-inf', ARGV[1])
local count = redis.call('ZCARD', key)
if count >= limit then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    return {0, count, oldest[2] or ARGV[2]}
end
redis.call('ZADD', key, ARGV[2], ARGV[5])
redis.call('EXPIRE', key, ARGV[3])
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
return {1, count + 1, oldest[2]}
"""


def global_key(request: Request) -> str:
    """Every caller shares a single budget."""
    return GLOBAL_KEY


def client_ip_key(request: Request) -> str:
    """One budget per remote address (proxy address when behind one)."""
    host = getattr(request.client, "host", None) if request.client else None
    return f"ip:{host or 'unknown'}"


KEY_STRATEGIES: Dict[str, KeyStrategy] = {
    "global": global_key,
    "client_ip": client_ip_key,
}


def resolve_key_strategy(name: str) -> KeyStrategy:
    try:
        return KEY_STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown rate limit key strategy '{name}'. Valid: {sorted(KEY_STRATEGIES)}")


class AdmissionGate:
    """
    Redis-backed sliding window limiter.

    Args:
        redis: redis.asyncio client (shared with nothing note-related)
        limit: requests admitted per window (default 100)
        window: window length in seconds (default 60)
        key_prefix: namespace for counter keys
        clock: seconds-since-epoch source, replaceable in tests
    """

    def __init__(
        self,
        redis: Redis,
        limit: int = 100,
        window: int = 60,
        key_prefix: str = "notekeeper:ratelimit",
        clock: Optional[Callable[[], float]] = None,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window < 1:
            raise ValueError("window must be at least 1 second")
        self.redis = redis
        self.limit = limit
        self.window = window
        self.key_prefix = key_prefix
        self._clock = clock or time.time
        self._admit_script = redis.register_script(ADMIT_SCRIPT)

    def counter_key(self, identity: str) -> str:
        return f"{self.key_prefix}:{identity}"

    async def admit(self, identity: str) -> int:
        """
        Count one request against `identity` or reject it.

        Returns:
            Number of requests in the window, this one included.

        Raises:
            RateLimitExceededError: the window already holds `limit` requests
            CounterStoreError: Redis could not be reached
        """
        key = self.counter_key(identity)
        now = self._clock()
        member = f"{now:.6f}:{uuid.uuid4().hex}"

        try:
            admitted, count, oldest = await self._admit_script(
                keys=[key],
                args=[f"{now - self.window:.6f}", f"{now:.6f}", self.window, self.limit, member],
            )
        except RedisError as e:
            logger.error("Counter store error for key %s: %s", key, str(e), exc_info=True)
            raise CounterStoreError(context={"key": key, "error_type": type(e).__name__})

        if not admitted:
            retry_after = max(1, int(float(oldest) + self.window - now) + 1)
            logger.warning(
                "Rate limit exceeded for key %s: %d requests in %ds window",
                key, count, self.window,
            )
            raise RateLimitExceededError(
                retry_after=retry_after,
                context={"limit": self.limit, "window": self.window},
            )

        return count

    async def reset(self, identity: str) -> None:
        """Drops the counter for `identity`."""
        await self.redis.delete(self.counter_key(identity))

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

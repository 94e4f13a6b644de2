"""
Import rate limiter using a fixed-window counter in Redis.

Caps how many imports one caller may start per window, regardless of
how many API workers are running.

Window Configuration:
- Limit: IMPORT_RATE_LIMIT_MAX runs (default 5)
- Window: IMPORT_RATE_LIMIT_WINDOW_SECONDS (default 3600)
- Storage: Redis with an atomic Lua INCR + EXPIRE

Usage:
    from storefront.utils.rate_limiter import get_import_rate_limiter

    limiter = get_import_rate_limiter()
    decision = limiter.hit(f"import:{user_id}")
    if not decision.allowed:
        ...  # 429 with Retry-After: decision.retry_after
"""

import logging
from typing import NamedTuple, Optional

import redis

from storefront.core.config import settings

logger = logging.getLogger("rate_limiter")

REDIS_KEY_PREFIX = "storefront:rate_limit"

DEFAULT_LIMIT = 5
DEFAULT_WINDOW_SECONDS = 3600

# Returns {count, ttl}. The first hit in a window sets the expiry.
HIT_SCRIPT = """
local key = KEYS[1]
local window = tonumber(ARGV[1])

local count = redis.call('INCR', key)
if count == 1 then
    redis.call('EXPIRE', key, window)
end
local ttl = redis.call('TTL', key)
if ttl < 0 then
    redis.call('EXPIRE', key, window)
    ttl = window
end
return {count, ttl}
"""


class RateLimitDecision(NamedTuple):
    allowed: bool
    remaining: int
    retry_after: int


class ImportRateLimiter:
    """
    Per-identity cooldown for product imports.

    Fails open: if Redis is unreachable the import is allowed and the
    error is logged.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        key_prefix: str = REDIS_KEY_PREFIX,
    ):
        """
        Initialize the rate limiter.

        Args:
            redis_client: Redis client instance
            limit: Maximum hits per identity per window
            window_seconds: Window length in seconds
            key_prefix: Redis key prefix for this limiter
        """
        self._redis = redis_client
        self._limit = limit
        self._window_seconds = window_seconds
        self._key_prefix = key_prefix

        self._hit_script = self._redis.register_script(HIT_SCRIPT)

        logger.info(
            "ImportRateLimiter initialized: limit=%s window=%ss", limit, window_seconds
        )

    def _key(self, identity: str) -> str:
        return f"{self._key_prefix}:{identity}"

    def hit(self, identity: str) -> RateLimitDecision:
        """
        Count one attempt for identity and decide whether it may proceed.

        Returns:
            RateLimitDecision(allowed, remaining, retry_after_seconds)
        """
        try:
            result = self._hit_script(keys=[self._key(identity)], args=[self._window_seconds])
            count = int(result[0])
            ttl = int(result[1])
        except redis.RedisError as e:
            logger.error("Redis error in rate limit hit identity=%s detail=%s", identity, e)
            return RateLimitDecision(True, self._limit, 0)

        if count > self._limit:
            logger.info("rate limit exceeded identity=%s count=%s ttl=%s", identity, count, ttl)
            return RateLimitDecision(False, 0, max(ttl, 1))
        return RateLimitDecision(True, self._limit - count, 0)

    def ping(self) -> bool:
        """True when Redis answers; used by the startup check."""
        try:
            return bool(self._redis.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed detail=%s", e)
            return False

    def reset(self, identity: str) -> None:
        """Clear the counter for identity (admin tooling / tests)."""
        try:
            self._redis.delete(self._key(identity))
        except redis.RedisError as e:
            logger.error("Redis error in reset identity=%s detail=%s", identity, e)


# Singleton instance
_rate_limiter: Optional[ImportRateLimiter] = None


def get_import_rate_limiter() -> ImportRateLimiter:
    """
    Get or create the singleton ImportRateLimiter instance.

    Uses Redis connection from settings.
    """
    global _rate_limiter

    if _rate_limiter is None:
        _rate_limiter = ImportRateLimiter(
            redis_client=redis.from_url(settings.redis_url),
            limit=settings.import_rate_limit_max,
            window_seconds=settings.import_rate_limit_window_seconds,
        )

    return _rate_limiter


def reset_rate_limiter() -> None:
    """Reset the singleton instance (for testing)."""
    global _rate_limiter
    _rate_limiter = None

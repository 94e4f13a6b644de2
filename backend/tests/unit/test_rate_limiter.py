"""
Unit tests for ImportRateLimiter — Redis fixed-window cooldown.

Tests cover:
- hits under the limit are allowed with the remaining allowance
- the hit over the limit is refused with the window TTL as retry-after
- Redis failures fail open
- keys are namespaced per identity
Version: 1.0.0
"""
import pytest
from unittest.mock import MagicMock

import redis

from storefront.utils.rate_limiter import (
    HIT_SCRIPT,
    ImportRateLimiter,
    RateLimitDecision,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.register_script.return_value = MagicMock()
    return client


@pytest.fixture
def limiter(mock_redis):
    return ImportRateLimiter(mock_redis, limit=5, window_seconds=3600)


class TestHit:

    def test_registers_script(self, limiter, mock_redis):
        mock_redis.register_script.assert_called_once_with(HIT_SCRIPT)

    def test_first_hit_allowed(self, limiter, mock_redis):
        mock_redis.register_script.return_value.return_value = [1, 3600]

        decision = limiter.hit("import:user-1")

        assert decision == RateLimitDecision(allowed=True, remaining=4, retry_after=0)
        mock_redis.register_script.return_value.assert_called_once_with(
            keys=["storefront:rate_limit:import:user-1"], args=[3600]
        )

    def test_fifth_hit_allowed_sixth_refused(self, limiter, mock_redis):
        script = mock_redis.register_script.return_value

        script.return_value = [5, 1200]
        assert limiter.hit("import:user-1").remaining == 0

        script.return_value = [6, 1200]
        decision = limiter.hit("import:user-1")

        assert decision.allowed is False
        assert decision.retry_after == 1200

    def test_retry_after_at_least_one_second(self, limiter, mock_redis):
        mock_redis.register_script.return_value.return_value = [9, 0]

        assert limiter.hit("import:user-1").retry_after == 1

    def test_redis_error_fails_open(self, limiter, mock_redis):
        mock_redis.register_script.return_value.side_effect = redis.ConnectionError("down")

        decision = limiter.hit("import:user-1")

        assert decision.allowed is True
        assert decision.remaining == 5


class TestPingAndReset:

    def test_ping(self, limiter, mock_redis):
        mock_redis.ping.return_value = True
        assert limiter.ping() is True

    def test_ping_failure(self, limiter, mock_redis):
        mock_redis.ping.side_effect = redis.ConnectionError("down")
        assert limiter.ping() is False

    def test_reset_deletes_key(self, limiter, mock_redis):
        limiter.reset("import:user-1")
        mock_redis.delete.assert_called_once_with("storefront:rate_limit:import:user-1")

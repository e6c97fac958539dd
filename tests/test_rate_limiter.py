"""
Tests for surveyhook/utils/rate_limiter.py - sliding window webhook rate limits.
"""
import time
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from surveyhook.utils.rate_limiter import check_rate_limit, check_webhook_rate_limits


def _redis_with_count(count: int, oldest_score: float | None = None):
    pipe = MagicMock()
    oldest = [("entry", oldest_score)] if oldest_score is not None else []
    pipe.execute = AsyncMock(return_value=[0, 1, count, oldest, True])
    redis = AsyncMock()
    redis.pipeline = MagicMock(return_value=pipe)
    return redis


class TestCheckRateLimit:
    @pytest.mark.asyncio
    async def test_under_limit_allowed(self):
        redis = _redis_with_count(3)
        with patch("surveyhook.utils.redis_client.get_redis", new_callable=AsyncMock, return_value=redis):
            allowed, retry_after = await check_rate_limit("ip:1.2.3.4", limit=10)
        assert allowed is True
        assert retry_after is None

    @pytest.mark.asyncio
    async def test_over_limit_rejected_with_retry_after(self):
        redis = _redis_with_count(11, oldest_score=time.time() - 30)
        with patch("surveyhook.utils.redis_client.get_redis", new_callable=AsyncMock, return_value=redis):
            allowed, retry_after = await check_rate_limit("ip:1.2.3.4", limit=10)
        assert allowed is False
        assert 1 <= retry_after <= 31

    @pytest.mark.asyncio
    async def test_redis_error_fails_open(self):
        with patch(
            "surveyhook.utils.redis_client.get_redis",
            new_callable=AsyncMock, side_effect=ConnectionError("down"),
        ):
            allowed, retry_after = await check_rate_limit("ip:1.2.3.4", limit=1)
        assert allowed is True
        assert retry_after is None


class TestCheckWebhookRateLimits:
    @pytest.mark.asyncio
    async def test_ip_limit_checked_first(self):
        with patch(
            "surveyhook.utils.rate_limiter.check_rate_limit",
            new_callable=AsyncMock, return_value=(False, 12),
        ) as mock_check:
            allowed, retry_after = await check_webhook_rate_limits("1.2.3.4", "hook_1")
        assert (allowed, retry_after) == (False, 12)
        assert mock_check.await_count == 1
        assert mock_check.call_args.args[0] == "ip:1.2.3.4"

    @pytest.mark.asyncio
    async def test_webhook_limit_applies(self):
        with patch(
            "surveyhook.utils.rate_limiter.check_rate_limit",
            new_callable=AsyncMock, side_effect=[(True, None), (False, 5)],
        ) as mock_check:
            allowed, retry_after = await check_webhook_rate_limits("1.2.3.4", "hook_1")
        assert (allowed, retry_after) == (False, 5)
        assert mock_check.call_args.args[0] == "webhook:hook_1"

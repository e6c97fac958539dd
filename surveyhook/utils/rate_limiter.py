"""
Redis-based rate limiter for the public survey webhook.
Uses sliding window counter pattern for accurate rate limiting.
"""
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
KEY_PREFIX = "surveyhook:ratelimit"


async def check_rate_limit(
    key: str,
    limit: int,
    window: int = WINDOW_SECONDS,
) -> tuple[bool, Optional[int]]:
    """
    Check if a request is within rate limits using Redis sliding window.

    Returns: (allowed: bool, retry_after_seconds: int | None)
    """
    try:
        from surveyhook.utils.redis_client import get_redis
        redis = await get_redis()

        redis_key = f"{KEY_PREFIX}:{key}"
        now = time.time()
        window_start = now - window

        pipe = redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, window_start)
        pipe.zadd(redis_key, {str(now): now})
        pipe.zcard(redis_key)
        pipe.zrange(redis_key, 0, 0, withscores=True)
        pipe.expire(redis_key, window + 1)

        results = await pipe.execute()
        request_count = results[2]

        if request_count > limit:
            oldest = results[3]
            oldest_score = oldest[0][1] if oldest else now
            retry_after = int(oldest_score + window - now)
            logger.warning(
                "Rate limit exceeded: key=%s count=%d limit=%d",
                key, request_count, limit,
            )
            return False, max(retry_after, 1)

        return True, None
    except Exception as e:
        # Redis failure should not block webhooks - allow through
        logger.warning("Rate limiter Redis error: %s. Allowing request.", str(e))
        return True, None


async def check_webhook_rate_limits(
    client_ip: str,
    webhook_id: Optional[str] = None,
) -> tuple[bool, Optional[int]]:
    """
    Check both IP and per-webhook rate limits.
    Returns (allowed, retry_after_seconds).
    """
    from surveyhook.config import get_settings
    settings = get_settings()

    ip_allowed, ip_retry = await check_rate_limit(
        f"ip:{client_ip}", settings.webhook_ip_rate_limit
    )
    if not ip_allowed:
        return False, ip_retry

    if webhook_id:
        hook_allowed, hook_retry = await check_rate_limit(
            f"webhook:{webhook_id}", settings.webhook_rate_limit
        )
        if not hook_allowed:
            return False, hook_retry

    return True, None

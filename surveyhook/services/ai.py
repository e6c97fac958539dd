"""
AI service - Anthropic primary, OpenAI fallback.
Used only for welcome email enrichment, which runs after the survey response
is persisted, so a provider outage never loses a submission.
Daily spending cap via Redis to prevent runaway costs.
"""
import logging
import re
import time
from typing import Optional

from surveyhook.config import get_settings

logger = logging.getLogger(__name__)

# Cost per million tokens (input/output)
COST_TABLE = {
    "claude-haiku-4-5-20251001": {"input": 1.00, "output": 5.00},
    "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
}

DAILY_SPEND_KEY = "surveyhook:ai:daily_spend"
DAILY_SPEND_TTL = 86400  # 24 hours


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Calculate cost in USD for a given model and token count."""
    costs = COST_TABLE.get(model, {"input": 1.0, "output": 5.0})
    return (input_tokens * costs["input"] + output_tokens * costs["output"]) / 1_000_000


def _sanitize_output_text(text: Optional[str]) -> str:
    """Remove hidden reasoning blocks returned by some providers."""
    if not text:
        return ""
    cleaned = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL | re.IGNORECASE)
    return cleaned.strip()


async def _check_daily_budget() -> tuple[bool, float]:
    """Returns (allowed, current_spend). Fails open when Redis is unavailable."""
    try:
        budget = get_settings().ai_daily_budget_usd
        from surveyhook.utils.redis_client import get_redis
        redis = await get_redis()
        current_raw = await redis.get(DAILY_SPEND_KEY)
        current = float(current_raw) if current_raw else 0.0
        return current < budget, current
    except Exception as e:
        logger.debug("Budget check failed (allowing): %s", str(e))
        return True, 0.0


async def _record_spend(cost_usd: float) -> None:
    """Record AI spend in Redis with TTL-based daily reset."""
    if cost_usd <= 0:
        return
    try:
        from surveyhook.utils.redis_client import get_redis
        redis = await get_redis()
        pipe = redis.pipeline()
        pipe.incrbyfloat(DAILY_SPEND_KEY, cost_usd)
        pipe.expire(DAILY_SPEND_KEY, DAILY_SPEND_TTL)
        await pipe.execute()
    except Exception as e:
        logger.debug("Spend recording failed: %s", str(e))


def _error_result(error_msg: str) -> dict:
    """Return a standardized error result dict."""
    return {
        "content": "",
        "provider": "none",
        "model": "none",
        "latency_ms": 0,
        "cost_usd": 0.0,
        "input_tokens": 0,
        "output_tokens": 0,
        "error": error_msg,
    }


async def generate_completion(
    system_prompt: str,
    user_message: str,
    max_tokens: Optional[int] = None,
    temperature: float = 0.6,
) -> dict:
    """
    Generate a completion. Anthropic primary, OpenAI fallback.

    Returns:
        {
            "content": str,
            "provider": str,
            "model": str,
            "latency_ms": int,
            "cost_usd": float,
            "input_tokens": int,
            "output_tokens": int,
            "error": str|None,
        }
    """
    settings = get_settings()

    allowed, current_spend = await _check_daily_budget()
    if not allowed:
        logger.warning(
            "AI daily budget exceeded: $%.4f spent of $%.2f limit",
            current_spend, settings.ai_daily_budget_usd,
        )
        return _error_result(
            f"Daily AI budget exceeded (${current_spend:.2f}/${settings.ai_daily_budget_usd:.2f})"
        )

    if settings.anthropic_api_key:
        try:
            result = await _generate_anthropic(
                system_prompt, user_message, max_tokens, temperature,
            )
            await _record_spend(result.get("cost_usd", 0.0))
            return result
        except Exception as e:
            logger.error("Anthropic failed: %s", str(e))

    if settings.openai_api_key:
        try:
            result = await _generate_openai(
                system_prompt, user_message, max_tokens, temperature,
            )
            await _record_spend(result.get("cost_usd", 0.0))
            return result
        except Exception as e:
            logger.error("OpenAI fallback failed: %s", str(e))

    return _error_result("No AI provider available (check API keys)")


async def _generate_anthropic(
    system_prompt: str,
    user_message: str,
    max_tokens: Optional[int],
    temperature: float,
) -> dict:
    """Generate response using Anthropic Claude API."""
    from anthropic import AsyncAnthropic
    settings = get_settings()

    model = settings.anthropic_model
    client = AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        timeout=settings.anthropic_timeout_seconds,
    )

    start = time.monotonic()
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens or settings.anthropic_max_tokens,
        temperature=temperature,
        system=system_prompt,
        messages=[{"role": "user", "content": user_message}],
    )
    latency_ms = int((time.monotonic() - start) * 1000)

    content = ""
    for block in response.content:
        if block.type == "text":
            content += block.text
    content = _sanitize_output_text(content)

    input_tokens = response.usage.input_tokens if response.usage else 0
    output_tokens = response.usage.output_tokens if response.usage else 0

    return {
        "content": content,
        "provider": "anthropic",
        "model": model,
        "latency_ms": latency_ms,
        "cost_usd": calculate_cost(model, input_tokens, output_tokens),
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "error": None,
    }


async def _generate_openai(
    system_prompt: str,
    user_message: str,
    max_tokens: Optional[int],
    temperature: float,
) -> dict:
    """Generate response using OpenAI API."""
    from openai import AsyncOpenAI
    settings = get_settings()

    model = settings.openai_model
    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.openai_timeout_seconds,
    )

    start = time.monotonic()
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens or settings.openai_max_tokens,
        temperature=temperature,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
    )
    latency_ms = int((time.monotonic() - start) * 1000)

    content = response.choices[0].message.content if response.choices else ""
    content = _sanitize_output_text(content)
    input_tokens = response.usage.prompt_tokens if response.usage else 0
    output_tokens = response.usage.completion_tokens if response.usage else 0

    return {
        "content": content,
        "provider": "openai",
        "model": model,
        "latency_ms": latency_ms,
        "cost_usd": calculate_cost(model, input_tokens, output_tokens),
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "error": None,
    }

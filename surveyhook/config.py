"""
Application configuration using pydantic-settings.
All config is validated at startup - fail fast if anything is missing.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_base_url: str = "http://localhost:8000"
    app_secret_key: str
    log_level: str = "INFO"
    allowed_origins: str = ""  # Comma-separated CORS origins

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 5

    # Redis (rate limiting + AI spend counter)
    redis_url: str = "redis://localhost:6379/0"

    # Anthropic (primary)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    anthropic_max_tokens: int = 1000
    anthropic_timeout_seconds: int = 15

    # OpenAI (fallback)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1000
    openai_timeout_seconds: int = 15

    ai_daily_budget_usd: float = 10.0

    # Welcome email enrichment
    email_generation_timeout_seconds: float = 20.0
    email_generation_temperature: float = 0.6
    email_generation_max_tokens: int = 1000

    # Webhook rate limits (requests per minute)
    webhook_ip_rate_limit: int = 120
    webhook_rate_limit: int = 60

    # Dashboard
    dashboard_jwt_secret: str = ""
    dashboard_jwt_expiry_hours: int = 24

    # Sentry
    sentry_dsn: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()

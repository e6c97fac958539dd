"""
SurveyHook - survey webhook ingestion and field mapping.
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from surveyhook.config import get_settings
from surveyhook.api.router import api_router
from surveyhook.database import dispose_engine
from surveyhook.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)
from surveyhook.utils.redis_client import close_redis

logger = logging.getLogger("surveyhook")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    logger.info("SurveyHook starting up (env=%s)", settings.app_env)

    if not settings.dashboard_jwt_secret:
        logger.warning(
            "DASHBOARD_JWT_SECRET not set - falling back to APP_SECRET_KEY. "
            "Set a dedicated JWT secret for production."
        )
    if not settings.anthropic_api_key and not settings.openai_api_key:
        logger.warning(
            "No AI provider key configured - survey responses will be stored "
            "without generated welcome emails."
        )

    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.app_env,
            )
            logger.info("Sentry initialized")
        except Exception as e:
            logger.warning("Sentry initialization failed: %s", str(e))

    yield

    await close_redis()
    await dispose_engine()
    logger.info("SurveyHook shutdown complete")


def _cors_origins(settings) -> list[str]:
    origins = ["http://localhost:3000", "http://localhost:5173", settings.app_base_url]
    extra = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    return origins + [o for o in extra if o not in origins]


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="SurveyHook",
        description="Survey webhook ingestion and field mapping",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS - allow dashboard origin
    application.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization", "Content-Type", "X-Correlation-ID",
            "Accept", "Origin", "X-Requested-With",
        ],
    )

    # Correlation ID middleware (must be added AFTER CORS so it runs on every request)
    application.add_middleware(CorrelationIdMiddleware)

    application.include_router(api_router)

    return application


app = create_app()

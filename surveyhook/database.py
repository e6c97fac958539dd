"""
Database engine and sessions for SurveyHook.

One lazily-built async engine per process. Sessions never expire loaded rows on
commit, so the ingestion pipeline can keep reading `account.webhook_config`
after storing a test event or a survey response.
"""
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class Base(DeclarativeBase):
    pass


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        from surveyhook.config import get_settings
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            echo=settings.app_env == "development",
        )
        logger.info("Database engine created (env=%s)", settings.app_env)
    return _engine


def _sessions() -> async_sessionmaker[AsyncSession]:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _sessionmaker


def async_session_factory() -> AsyncSession:
    """Open a session outside a request, e.g. from scripts/seed_account.py."""
    return _sessions()()


async def dispose_engine() -> None:
    """Close pooled connections on shutdown. No-op if nothing connected."""
    global _engine, _sessionmaker
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessionmaker = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Commits when the handler returns, rolls back and
    re-raises when it fails. Services that must report a failed write
    (account_store.insert_survey_response) commit on their own first.
    """
    async with _sessions()() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning("Rolling back request session: %s", str(e))
            await session.rollback()
            raise

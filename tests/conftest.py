"""
Test configuration and fixtures.
Uses SQLite in-memory for fast tests. Mocks all external services.
"""
import os

os.environ.setdefault("APP_SECRET_KEY", "test_secret_key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DASHBOARD_JWT_SECRET", "test_jwt_secret")

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.dialects.postgresql import JSONB
from surveyhook.database import Base
import surveyhook.models  # noqa: F401
from surveyhook.models.account import Account


# Register JSONB as JSON for SQLite compatibility in tests
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@pytest.fixture
async def db():
    """In-memory SQLite database for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def mock_redis():
    """Mock for async Redis - prevents real Redis calls in tests."""
    redis_mock = AsyncMock()
    redis_mock.get = AsyncMock(return_value=None)
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.pipeline = MagicMock()
    with patch("surveyhook.utils.redis_client.get_redis", new_callable=AsyncMock, return_value=redis_mock):
        yield redis_mock


@pytest.fixture
def mock_generate_completion():
    """Mock for async generate_completion - prevents real AI API calls in tests."""
    with patch(
        "surveyhook.services.email_generation.generate_completion", new_callable=AsyncMock
    ) as mock:
        mock.return_value = {
            "content": "Subject: Great to meet you\nBody:\nThanks for telling us about Acme Inc.",
            "provider": "anthropic",
            "model": "claude-sonnet-4-5-20250929",
            "latency_ms": 500,
            "cost_usd": 0.001,
            "input_tokens": 100,
            "output_tokens": 50,
            "error": None,
        }
        yield mock


@pytest.fixture
def typeform_payload():
    return {
        "event_id": "01HTEST",
        "event_type": "form_response",
        "form_response": {
            "form_id": "lT4Z3j",
            "definition": {
                "id": "lT4Z3j",
                "title": "Welcome survey",
                "fields": [
                    {"id": "f_company", "ref": "company", "type": "short_text", "title": "Company name"},
                    {"id": "f_email", "ref": "email", "type": "email", "title": "Your email"},
                    {
                        "id": "f_roast",
                        "ref": "roast",
                        "type": "multiple_choice",
                        "title": "Favourite roast",
                        "choices": [{"id": "c1", "label": "Light"}, {"id": "c2", "label": "Dark"}],
                    },
                ],
            },
            "answers": [
                {"type": "text", "text": "Acme Inc", "field": {"id": "f_company", "type": "short_text", "ref": "company"}},
                {"type": "email", "email": "a@b.com", "field": {"id": "f_email", "type": "email", "ref": "email"}},
                {"type": "choice", "choice": {"label": "Dark"}, "field": {"id": "f_roast", "type": "multiple_choice", "ref": "roast"}},
            ],
        },
    }


@pytest.fixture
def tally_payload():
    return {
        "eventId": "evt-1",
        "eventType": "FORM_RESPONSE",
        "data": {
            "fields": [
                {"key": "q_email", "label": "Email", "type": "INPUT_EMAIL", "value": "sam@acme.test"},
                {"key": "q_company", "label": "Company", "type": "INPUT_TEXT", "value": "Acme Inc"},
                {
                    "key": "q_color",
                    "label": "Favourite colour",
                    "type": "MULTIPLE_CHOICE",
                    "value": ["opt1", "opt2"],
                    "options": [{"id": "opt1", "text": "Red"}, {"id": "opt2", "text": "Blue"}],
                },
                {"key": "q_color_opt1", "label": "Favourite colour (Red)", "type": "CHECKBOXES", "value": True},
            ],
        },
    }


@pytest.fixture
async def account(db):
    """An account with no field mapping configured yet."""
    acct = Account(
        email="owner@acme.test",
        business_name="Acme Coffee",
        webhook_id="hook_unmapped_123",
        webhook_config={"provider": "typeform", "field_mappings": {}},
        email_context={"tone": "warm", "welcome_line": "Hi there,"},
    )
    db.add(acct)
    await db.commit()
    return acct


@pytest.fixture
async def mapped_account(db):
    """An account with a Typeform mapping for email and company."""
    acct = Account(
        email="mapped@acme.test",
        business_name="Acme Mapped",
        webhook_id="hook_mapped_456",
        webhook_config={
            "provider": "typeform",
            "field_mappings": {
                "email": "form_response.answers[1]",
                "company": "form_response.answers[0]",
                "roast": "form_response.answers[2]",
            },
        },
        email_context={},
    )
    db.add(acct)
    await db.commit()
    return acct


@pytest.fixture
async def api_client(db):
    """HTTP client over the ASGI app with get_db bound to the test session."""
    from httpx import AsyncClient, ASGITransport
    from surveyhook.database import get_db
    from surveyhook.main import app

    async def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with patch(
        "surveyhook.api.webhooks.check_webhook_rate_limits",
        new_callable=AsyncMock, return_value=(True, None),
    ):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(account):
    from surveyhook.api.auth import create_access_token
    return {"Authorization": f"Bearer {create_access_token(account.id)}"}

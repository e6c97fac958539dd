"""
Account store - the persistence operations the webhook pipeline and the
dashboard need. JSONB columns are always reassigned, never mutated in place,
so SQLAlchemy sees the change.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from surveyhook.models.account import Account, new_webhook_id
from surveyhook.models.survey_response import SurveyResponse
from surveyhook.schemas.webhook_config import (
    EMAIL_FIELD,
    GeneratedEmail,
    NormalizedRecord,
    WebhookConfig,
    normalize_provider,
)
from surveyhook.services.errors import MissingEmailError, PersistenceError, UnknownWebhookError
from surveyhook.services.field_discovery import parse_example_json

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def get_account_by_webhook_id(db: AsyncSession, webhook_id: str) -> Account:
    """Raises UnknownWebhookError when no active account owns `webhook_id`."""
    if not webhook_id:
        raise UnknownWebhookError(webhook_id)
    result = await db.execute(
        select(Account).where(
            Account.webhook_id == webhook_id,
            Account.is_active == True,  # noqa: E712
        )
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise UnknownWebhookError(webhook_id)
    return account


async def get_account(db: AsyncSession, account_id: str | uuid.UUID) -> Optional[Account]:
    try:
        account_uuid = uuid.UUID(str(account_id))
    except ValueError:
        return None
    return await db.get(Account, account_uuid)


async def get_survey_response(
    db: AsyncSession,
    account_id: uuid.UUID,
    response_id: str,
) -> Optional[SurveyResponse]:
    """A response, only if it belongs to `account_id`."""
    try:
        response_uuid = uuid.UUID(str(response_id))
    except ValueError:
        return None
    result = await db.execute(
        select(SurveyResponse).where(
            SurveyResponse.id == response_uuid,
            SurveyResponse.account_id == account_id,
        )
    )
    return result.scalar_one_or_none()


async def store_test_event(db: AsyncSession, account: Account, payload: Any) -> None:
    """Keep an unmapped payload as the account's example and stamp receipt time."""
    config = dict(account.webhook_config or {})
    config["provider"] = normalize_provider(config.get("provider"))
    config.setdefault("field_mappings", {})
    config["test_event"] = payload
    account.webhook_config = config
    account.webhook_last_received = _now()
    await db.commit()


async def insert_survey_response(
    db: AsyncSession,
    account: Account,
    record: NormalizedRecord,
) -> SurveyResponse:
    """
    Durably insert one survey response. Committed before returning so later
    enrichment failures can never roll it back.

    Raises:
        PersistenceError: the insert or commit failed; nothing was stored
    """
    response = SurveyResponse(
        account_id=account.id,
        email=record.email,
        survey_data=dict(record.survey_data),
    )
    try:
        db.add(response)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(str(e)) from e
    return response


async def attach_generated_email(
    db: AsyncSession,
    response: SurveyResponse,
    generated: GeneratedEmail,
) -> None:
    response.ai_subject = generated.subject
    response.ai_email = generated.email
    response.ai_generated_at = _now()
    await db.commit()


async def mark_last_received(db: AsyncSession, account: Account) -> None:
    account.webhook_last_received = _now()
    await db.commit()


async def save_webhook_config(
    db: AsyncSession,
    account: Account,
    provider: str,
    field_mappings: dict[str, str],
    example_json: Optional[str] = None,
) -> WebhookConfig:
    """
    Replace the account's mapping wholesale.

    The pasted example (if any) becomes the new test_event; otherwise the
    previous one is kept.

    Raises:
        MissingEmailError: no usable email path in `field_mappings`
        MalformedExampleJsonError: `example_json` given but not valid JSON
    """
    current = WebhookConfig.from_stored(account.webhook_config)
    test_event = current.test_event
    if example_json is not None and example_json.strip():
        test_event = parse_example_json(example_json)

    config = WebhookConfig(
        provider=provider,
        field_mappings=field_mappings,
        test_event=test_event,
    )
    if not config.email_path:
        raise MissingEmailError(field_mappings.get(EMAIL_FIELD))

    account.webhook_config = config.model_dump()
    await db.commit()
    logger.info(
        "Webhook mapping saved (%d fields)", len(config.field_mappings),
        extra={"account_id": str(account.id), "provider": config.provider},
    )
    return config


async def regenerate_webhook_id(db: AsyncSession, account: Account) -> str:
    """Issue a fresh webhook id; the previous one stops resolving immediately."""
    old_id = account.webhook_id
    account.webhook_id = new_webhook_id()
    await db.commit()
    logger.info(
        "Webhook id regenerated (old=%s...)", (old_id or "")[:8],
        extra={"account_id": str(account.id), "webhook_id": account.webhook_id},
    )
    return account.webhook_id

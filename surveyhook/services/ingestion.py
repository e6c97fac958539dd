"""
Survey webhook ingestion pipeline.

account_lookup -> (no_mapping | mapped) -> persisted -> email_requested -> done

Failures before persistence are returned to the sender (who may retry).
Once the response row is committed the webhook always succeeds: welcome
email generation is awaited with a timeout but its failures are only logged,
and the email can be regenerated from the dashboard later.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from surveyhook.config import get_settings
from surveyhook.models.account import Account
from surveyhook.models.survey_response import SurveyResponse
from surveyhook.schemas.ingestion import (
    INVALID_PAYLOAD_MESSAGE,
    PERSISTENCE_FAILED_MESSAGE,
    PROCESSED_MESSAGE,
    TEST_EVENT_MESSAGE,
    IngestionResult,
)
from surveyhook.schemas.webhook_config import (
    EmailContext,
    GeneratedEmail,
    NormalizedRecord,
    WebhookConfig,
)
from surveyhook.services import account_store
from surveyhook.services.email_generation import generate_welcome_email
from surveyhook.services.errors import (
    MappingNotConfiguredError,
    MissingEmailError,
    PersistenceError,
    UnknownWebhookError,
)
from surveyhook.services.mapping_evaluator import evaluate_mapping

logger = logging.getLogger(__name__)

EmailGenerator = Callable[[str, dict[str, Any], EmailContext], Awaitable[GeneratedEmail]]


def _decode_payload(raw_body: bytes | str) -> Any:
    """Raises ValueError for an empty or non-JSON body, RecursionError for runaway nesting."""
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8")
    return json.loads(raw_body)


async def ingest_survey_webhook(
    db: AsyncSession,
    webhook_id: str,
    raw_body: bytes | str,
    generator: Optional[EmailGenerator] = None,
) -> IngestionResult:
    """
    Run one inbound webhook through the pipeline.

    Args:
        db: Session used for every read/write of this delivery
        webhook_id: Opaque id from the webhook URL
        raw_body: Request body as received
        generator: Welcome email generator (defaults to the AI-backed one)
    """
    log_extra = {"webhook_id": webhook_id}

    # === ACCOUNT LOOKUP ===
    try:
        account = await account_store.get_account_by_webhook_id(db, webhook_id)
    except UnknownWebhookError as e:
        logger.warning(
            "Webhook rejected: unknown id",
            extra={**log_extra, "state": "account_lookup", "error_code": e.error_code},
        )
        return IngestionResult(status="unknown_webhook", message=str(e))

    config = WebhookConfig.from_stored(account.webhook_config)
    account_id = str(account.id)
    log_extra.update({"account_id": account_id, "provider": config.provider})
    logger.info("Webhook account resolved", extra={**log_extra, "state": "account_lookup"})

    try:
        payload = _decode_payload(raw_body)
    except (ValueError, RecursionError):
        logger.warning(
            "Webhook body is not valid JSON",
            extra={**log_extra, "state": "account_lookup", "error_code": "invalid_payload"},
        )
        return IngestionResult(status="invalid_payload", message=INVALID_PAYLOAD_MESSAGE)

    # === MAPPING ===
    try:
        record = evaluate_mapping(config, payload)
    except MappingNotConfiguredError:
        return await _store_example(db, account, payload, log_extra)
    except MissingEmailError as e:
        logger.warning(
            "Webhook dropped: email path %s did not resolve", e.path,
            extra={**log_extra, "state": "mapped", "error_code": e.error_code},
        )
        return IngestionResult(status="missing_email", message=str(e))

    logger.info(
        "Payload mapped (%d survey fields)", len(record.survey_data),
        extra={**log_extra, "state": "mapped"},
    )

    # === PERSIST ===
    try:
        response = await account_store.insert_survey_response(db, account, record)
    except PersistenceError as e:
        logger.error(
            "Survey response insert failed: %s", str(e),
            extra={**log_extra, "state": "persisted", "error_code": e.error_code},
        )
        return IngestionResult(
            status="persistence_failed",
            message=PERSISTENCE_FAILED_MESSAGE,
            details=str(e),
        )

    response_id = str(response.id)
    log_extra["response_id"] = response_id
    logger.info("Survey response persisted", extra={**log_extra, "state": "persisted"})

    # === ENRICH (best effort) ===
    email_generated = await _request_welcome_email(
        db, account, response, record, generator or generate_welcome_email, log_extra,
    )

    # === DONE ===
    try:
        await account_store.mark_last_received(db, account)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(
            "Could not update last received marker: %s", str(e),
            extra={**log_extra, "state": "done"},
        )

    logger.info(
        "Webhook processed (email_generated=%s)", email_generated,
        extra={**log_extra, "state": "done"},
    )
    return IngestionResult(
        status="processed",
        message=PROCESSED_MESSAGE,
        response_id=response_id,
        email_generated=email_generated,
    )


async def _store_example(
    db: AsyncSession,
    account: Account,
    payload: Any,
    log_extra: dict,
) -> IngestionResult:
    try:
        await account_store.store_test_event(db, account, payload)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "Storing test event failed: %s", str(e),
            extra={**log_extra, "state": "no_mapping", "error_code": PersistenceError.error_code},
        )
        return IngestionResult(
            status="persistence_failed",
            message=PERSISTENCE_FAILED_MESSAGE,
            details=str(e),
        )

    logger.info(
        "No mapping configured, payload kept as test event",
        extra={**log_extra, "state": "no_mapping"},
    )
    return IngestionResult(status="test_event_stored", message=TEST_EVENT_MESSAGE)


async def _request_welcome_email(
    db: AsyncSession,
    account: Account,
    response: SurveyResponse,
    record: NormalizedRecord,
    generator: EmailGenerator,
    log_extra: dict,
) -> bool:
    """Generate and attach the welcome email. Returns False on any failure."""
    settings = get_settings()
    context = EmailContext.from_stored(account.email_context)
    extra = {**log_extra, "state": "email_requested"}

    try:
        generated = await asyncio.wait_for(
            generator(record.email, record.survey_data, context),
            timeout=settings.email_generation_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Welcome email generation timed out after %.1fs",
            settings.email_generation_timeout_seconds,
            extra={**extra, "error_code": "enrichment_timeout"},
        )
        return False
    except Exception as e:
        logger.warning(
            "Welcome email generation failed: %s", str(e),
            exc_info=True,
            extra={**extra, "error_code": "enrichment_failed"},
        )
        return False

    try:
        await account_store.attach_generated_email(db, response, generated)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(
            "Generated email could not be saved: %s", str(e),
            extra={**extra, "error_code": "enrichment_failed"},
        )
        return False

    logger.info("Welcome email attached", extra=extra)
    return True

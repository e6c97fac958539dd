"""
Dashboard endpoints for configuring the account's survey webhook:
field discovery, mapping preview/save, webhook id rotation and manual
welcome email regeneration.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from surveyhook.api.auth import get_current_account
from surveyhook.config import get_settings
from surveyhook.database import get_db
from surveyhook.integrations.registry import supported_providers
from surveyhook.models.account import Account
from surveyhook.schemas.api_responses import (
    DiscoverFieldsRequest,
    GeneratedEmailResponse,
    PreviewMappingRequest,
    RegenerateWebhookResponse,
    SaveMappingRequest,
    WebhookSettingsResponse,
)
from surveyhook.schemas.webhook_config import (
    DiscoveryResult,
    EmailContext,
    MappingPreview,
    WebhookConfig,
)
from surveyhook.services import account_store
from surveyhook.services.email_generation import generate_welcome_email
from surveyhook.services.errors import (
    EnrichmentError,
    MalformedExampleJsonError,
    MissingEmailError,
)
from surveyhook.services.field_discovery import discover, discover_from_payload
from surveyhook.services.mapping_evaluator import preview_mapping

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/dashboard", tags=["webhook-settings"])


def webhook_url(webhook_id: str) -> str:
    base = get_settings().app_base_url.rstrip("/")
    return f"{base}/api/v1/webhooks/survey/{webhook_id}"


def _settings_response(account: Account, config: WebhookConfig) -> WebhookSettingsResponse:
    return WebhookSettingsResponse(
        webhook_id=account.webhook_id,
        webhook_url=webhook_url(account.webhook_id),
        provider=config.provider,
        field_mappings=config.field_mappings,
        test_event=config.test_event,
        webhook_last_received=account.webhook_last_received,
        supported_providers=supported_providers(),
    )


@router.get("/webhook", response_model=WebhookSettingsResponse)
async def get_webhook_settings(
    account: Account = Depends(get_current_account),
):
    config = WebhookConfig.from_stored(account.webhook_config)
    return _settings_response(account, config)


@router.post("/webhook/discover", response_model=DiscoveryResult)
async def discover_fields(
    payload: DiscoverFieldsRequest,
    account: Account = Depends(get_current_account),
):
    """List mappable fields from pasted example JSON, or from the last test event."""
    if payload.example_json is not None and payload.example_json.strip():
        return discover(payload.provider, payload.example_json)

    stored = WebhookConfig.from_stored(account.webhook_config)
    if stored.test_event is None:
        return DiscoveryResult(fields=[])
    return discover_from_payload(payload.provider, stored.test_event)


@router.post("/webhook/preview", response_model=MappingPreview)
async def preview_webhook_mapping(
    payload: PreviewMappingRequest,
    account: Account = Depends(get_current_account),
):
    return preview_mapping(payload.provider, payload.example_json, payload.field_mappings)


@router.put("/webhook/mapping", response_model=WebhookSettingsResponse)
async def save_webhook_mapping(
    payload: SaveMappingRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    try:
        config = await account_store.save_webhook_config(
            db,
            account,
            provider=payload.provider,
            field_mappings=payload.field_mappings,
            example_json=payload.example_json,
        )
    except (MissingEmailError, MalformedExampleJsonError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _settings_response(account, config)


@router.post("/webhook/regenerate", response_model=RegenerateWebhookResponse)
async def regenerate_webhook(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    new_id = await account_store.regenerate_webhook_id(db, account)
    return RegenerateWebhookResponse(webhook_id=new_id, webhook_url=webhook_url(new_id))


@router.post(
    "/survey-responses/{response_id}/generate-email",
    response_model=GeneratedEmailResponse,
)
async def regenerate_welcome_email(
    response_id: str,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    """Generate (or regenerate) the welcome email for one stored response."""
    response = await account_store.get_survey_response(db, account.id, response_id)
    if response is None:
        raise HTTPException(status_code=404, detail="Survey response not found")

    try:
        generated = await generate_welcome_email(
            response.email,
            response.survey_data or {},
            EmailContext.from_stored(account.email_context),
        )
    except EnrichmentError as e:
        logger.warning(
            "Manual email generation failed: %s", str(e),
            extra={"account_id": str(account.id), "response_id": response_id,
                   "error_code": e.error_code},
        )
        raise HTTPException(status_code=502, detail="Failed to generate email")

    await account_store.attach_generated_email(db, response, generated)
    return GeneratedEmailResponse(
        response_id=str(response.id),
        subject=generated.subject,
        email=generated.email,
    )

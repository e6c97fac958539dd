"""
Mapping evaluator - applies a saved field mapping to a live payload.

Only a missing/empty email is a hard failure. Any other path that no longer
matches the payload is simply left out of survey_data: an unanswered optional
question or a provider shape change must never drop the whole submission.
The dashboard preview runs the exact same extraction so what users see while
mapping is what production stores.
"""
import logging
from typing import Any, Optional

from surveyhook.integrations.registry import get_adapter
from surveyhook.integrations.survey_base import SurveyProviderAdapter
from surveyhook.schemas.webhook_config import (
    EMAIL_FIELD,
    MappingPreview,
    NormalizedRecord,
    WebhookConfig,
)
from surveyhook.services.errors import (
    MalformedExampleJsonError,
    MappingNotConfiguredError,
    MissingEmailError,
)
from surveyhook.services.field_discovery import parse_example_json
from surveyhook.services.field_paths import NOT_FOUND

logger = logging.getLogger(__name__)


def _safe_extract(adapter: SurveyProviderAdapter, payload: Any, path: Optional[str]) -> Any:
    """Extract one mapped value; adapter failures count as a miss."""
    if not path:
        return NOT_FOUND
    try:
        return adapter.extract_value(payload, path)
    except Exception as e:
        logger.warning(
            "Field extraction failed for path %s: %s", path, str(e),
            extra={"provider": adapter.name},
        )
        return NOT_FOUND


def _coerce_email(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _collect_survey_data(
    adapter: SurveyProviderAdapter,
    payload: Any,
    field_mappings: dict[str, str],
) -> dict[str, Any]:
    survey_data: dict[str, Any] = {}
    for name, path in field_mappings.items():
        if name == EMAIL_FIELD:
            continue
        value = _safe_extract(adapter, payload, path)
        if value is NOT_FOUND:
            logger.debug("Mapped field %s absent from payload", name)
            continue
        survey_data[name] = value
    return survey_data


def evaluate_mapping(config: WebhookConfig, payload: Any) -> NormalizedRecord:
    """
    Produce the normalized {email, survey_data} record for one inbound payload.

    Raises:
        MappingNotConfiguredError: no mapping saved yet (caller keeps the payload as example)
        MissingEmailError: email path unresolvable or empty
    """
    if not config.is_mapped:
        raise MappingNotConfiguredError()

    adapter = get_adapter(config.provider)
    email = _coerce_email(_safe_extract(adapter, payload, config.email_path))
    if not email:
        raise MissingEmailError(config.email_path)

    return NormalizedRecord(
        email=email,
        survey_data=_collect_survey_data(adapter, payload, config.field_mappings),
    )


def preview_mapping(
    provider: str,
    example_json: str,
    field_mappings: dict[str, str],
) -> MappingPreview:
    """Dry-run a draft mapping against pasted example JSON. Never raises for a missing email."""
    try:
        example = parse_example_json(example_json)
    except MalformedExampleJsonError as e:
        return MappingPreview(parse_error=str(e))

    config = WebhookConfig(provider=provider, field_mappings=field_mappings)
    adapter = get_adapter(config.provider)
    return MappingPreview(
        email=_coerce_email(_safe_extract(adapter, example, config.email_path)),
        survey_data=_collect_survey_data(adapter, example, config.field_mappings),
    )

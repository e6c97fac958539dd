"""
Provider adapter lookup - selects the adapter for a stored provider name.
"""
import logging

from surveyhook.integrations.generic import GenericAdapter
from surveyhook.integrations.survey_base import SurveyProviderAdapter
from surveyhook.integrations.tally import TallyAdapter
from surveyhook.integrations.typeform import TypeformAdapter
from surveyhook.schemas.webhook_config import normalize_provider

logger = logging.getLogger(__name__)

# Adapters are stateless; one instance each is shared across requests
_ADAPTERS: dict[str, SurveyProviderAdapter] = {
    "typeform": TypeformAdapter(),
    "tally": TallyAdapter(),
    "other": GenericAdapter(),
}


def get_adapter(provider: str | None) -> SurveyProviderAdapter:
    """Adapter for `provider`; unknown or empty names get the generic adapter."""
    normalized = normalize_provider(provider)
    if provider and normalized != str(provider).strip().lower():
        logger.info("Unknown provider %r, using generic adapter", provider)
    return _ADAPTERS[normalized]


def supported_providers() -> list[str]:
    return list(_ADAPTERS.keys())

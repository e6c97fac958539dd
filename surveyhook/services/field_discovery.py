"""
Field discovery - parse an example payload into the candidate fields a user maps.
Read-only and deterministic: identical input always yields an identical field list.
"""
import json
import logging
from typing import Any

from surveyhook.integrations.registry import get_adapter
from surveyhook.schemas.webhook_config import DiscoveryResult
from surveyhook.services.errors import MalformedExampleJsonError

logger = logging.getLogger(__name__)


def parse_example_json(example_json: str) -> Any:
    """Parse pasted example JSON. Raises MalformedExampleJsonError."""
    try:
        return json.loads(example_json)
    except (TypeError, ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        logger.debug("Example JSON rejected: %s", str(e))
        raise MalformedExampleJsonError() from e


def discover_from_payload(provider: str, example: Any) -> DiscoveryResult:
    """Enumerate fields of an already-parsed example (e.g. a stored test event)."""
    adapter = get_adapter(provider)
    fields = adapter.discover_fields(example)
    logger.debug("Discovered %d fields", len(fields), extra={"provider": adapter.name})
    return DiscoveryResult(fields=fields)


def discover(provider: str, example_json: str) -> DiscoveryResult:
    """
    Parse `example_json` and enumerate its fields with the provider's adapter.

    Malformed JSON is reported in `parse_error` with an empty field list
    rather than raised, so the dashboard can show it inline.
    """
    try:
        example = parse_example_json(example_json)
    except MalformedExampleJsonError as e:
        return DiscoveryResult(fields=[], parse_error=str(e))
    return discover_from_payload(provider, example)

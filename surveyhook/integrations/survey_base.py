"""
Abstract survey provider interface - Typeform, Tally and the generic adapter implement this.

Each provider encodes answers differently (typed envelopes, option-ID indirection,
flat values). Adapters hide that behind two operations so discovery and
evaluation never branch on provider themselves.
"""
from abc import ABC, abstractmethod
from typing import Any

from surveyhook.schemas.webhook_config import ParsedField
from surveyhook.services.field_paths import NOT_FOUND, resolve


class SurveyProviderAdapter(ABC):
    """Abstract base class for survey provider adapters."""

    name: str = ""

    @abstractmethod
    def discover_fields(self, example: Any) -> list[ParsedField]:
        """
        Enumerate candidate fields in an example payload.
        Must be deterministic: the same example always yields the same list.
        """
        ...

    @abstractmethod
    def display_value(self, node: Any) -> Any:
        """
        Turn a resolved raw field node into the value stored in survey data.
        Returns NOT_FOUND when the node carries no answer.
        """
        ...

    def extract_value(self, root: Any, path: str) -> Any:
        """Resolve `path` against `root` and post-process it. Returns NOT_FOUND on a miss."""
        node = resolve(root, path)
        if node is NOT_FOUND:
            return NOT_FOUND
        return self.display_value(node)

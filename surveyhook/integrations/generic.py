"""
Generic ("other") adapter - no fixed schema.

Discovery walks the payload depth-first, without recursion, and treats any object
that looks like a question (has a label/title/name, or a type plus a value/answer)
as a field.
"""
import logging
from typing import Any

from surveyhook.integrations.survey_base import SurveyProviderAdapter
from surveyhook.schemas.webhook_config import ParsedField
from surveyhook.services.field_paths import child_index_path, child_key_path

logger = logging.getLogger(__name__)

LABEL_KEYS = ("label", "title", "name")


def _looks_like_field(node: dict) -> bool:
    if any(key in node for key in LABEL_KEYS):
        return True
    return "type" in node and ("value" in node or "answer" in node)


def _field_label(node: dict, path: str) -> str:
    for key in LABEL_KEYS:
        label = node.get(key)
        if isinstance(label, str) and label:
            return label
    return path


class GenericAdapter(SurveyProviderAdapter):
    name = "other"

    def discover_fields(self, example: Any) -> list[ParsedField]:
        fields: list[ParsedField] = []
        # Explicit stack, children pushed in reverse to keep document order
        stack: list[tuple[Any, str]] = [(example, "")]
        while stack:
            node, path = stack.pop()
            if isinstance(node, dict):
                if path and _looks_like_field(node):
                    field_type = node.get("type")
                    fields.append(ParsedField(
                        path=path,
                        label=_field_label(node, path),
                        type=field_type if isinstance(field_type, str) else None,
                    ))
                    continue
                children = [(child, child_key_path(path, str(key))) for key, child in node.items()]
            elif isinstance(node, list):
                children = [(child, child_index_path(path, index)) for index, child in enumerate(node)]
            else:
                continue
            stack.extend(reversed(children))
        return fields

    def display_value(self, node: Any) -> Any:
        if isinstance(node, dict):
            if node.get("value") is not None:
                return node["value"]
            if node.get("answer") is not None:
                return node["answer"]
        return node

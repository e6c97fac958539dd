"""
Tally adapter.

Payload shape:
    {"data": {"fields": [{"key", "label", "type", "value", "options": [{"id", "text"}]}]}}

Choice answers arrive as option IDs and are resolved to option text. Tally also
explodes checkbox questions into one synthetic boolean field per option, labelled
"Question (Option)"; discovery hides those.
"""
import logging
from typing import Any

from surveyhook.integrations.survey_base import SurveyProviderAdapter
from surveyhook.schemas.webhook_config import FieldOption, ParsedField
from surveyhook.services.field_paths import NOT_FOUND, child_index_path, resolve

logger = logging.getLogger(__name__)

FIELDS_PATH = "data.fields"
CHOICE_TYPES = ("MULTIPLE_CHOICE", "CHECKBOXES")


def _field_options(field: dict) -> list[FieldOption] | None:
    if field.get("type") not in CHOICE_TYPES:
        return None
    options = field.get("options")
    if not isinstance(options, list):
        return None
    return [
        FieldOption(id=str(opt.get("id", "")), text=str(opt.get("text", "")))
        for opt in options if isinstance(opt, dict)
    ]


def _option_text(option_id: Any, by_id: dict) -> Any:
    if not isinstance(option_id, (str, int)):
        return None
    if option_id in by_id:
        return by_id[option_id]
    # No exact id: accept an option id extending the selected one, if unambiguous
    prefixed = [
        text for known_id, text in by_id.items()
        if isinstance(known_id, str) and isinstance(option_id, str)
        and option_id and known_id.startswith(option_id)
    ]
    return prefixed[0] if len(prefixed) == 1 else None


def option_labels(selected: list, options: list) -> str:
    """Map selected option ids to their text (unknown ids pass through), comma-joined."""
    by_id = {
        opt.get("id"): opt.get("text")
        for opt in options if isinstance(opt, dict)
    }
    labels = []
    for option_id in selected:
        text = _option_text(option_id, by_id)
        labels.append(str(text) if text is not None else str(option_id))
    return ", ".join(labels)


class TallyAdapter(SurveyProviderAdapter):
    name = "tally"

    def discover_fields(self, example: Any) -> list[ParsedField]:
        tally_fields = resolve(example, FIELDS_PATH)
        if not isinstance(tally_fields, list):
            return []

        seen_labels: set[str] = set()
        fields: list[ParsedField] = []
        for index, field in enumerate(tally_fields):
            if not isinstance(field, dict):
                continue
            label = field.get("label")
            if not isinstance(label, str) or not label or "(" in label:
                continue
            if label in seen_labels:
                continue
            seen_labels.add(label)
            field_type = field.get("type")
            fields.append(ParsedField(
                path=child_index_path(FIELDS_PATH, index),
                label=label,
                type=field_type if isinstance(field_type, str) else None,
                options=_field_options(field),
            ))
        return fields

    def display_value(self, node: Any) -> Any:
        if not isinstance(node, dict) or "type" not in node:
            # e.g. data.fields[type=HIDDEN_FIELDS&label=email].value resolves to the bare value
            return node
        if "value" not in node:
            return NOT_FOUND

        value = node["value"]
        if node["type"] in CHOICE_TYPES:
            options = node.get("options")
            if isinstance(value, list) and isinstance(options, list):
                return option_labels(value, options)
            if isinstance(value, bool):
                return "Yes" if value else "No"
        # TEXTAREA, TEXT_INPUT, EMAIL, HIDDEN_FIELDS and anything unrecognised
        return value

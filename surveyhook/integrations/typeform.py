"""
Typeform adapter.

Payload shape:
    {"form_response": {"answers": [...], "definition": {"fields": [...]}}}

Each answer is a typed envelope ({"type": "text", "text": "...", "field": {"id": ...}})
and the human question title lives on the matching definition field.
"""
import logging
from typing import Any

from surveyhook.integrations.survey_base import SurveyProviderAdapter
from surveyhook.schemas.webhook_config import FieldOption, ParsedField
from surveyhook.services.field_paths import NOT_FOUND, child_index_path, resolve

logger = logging.getLogger(__name__)

ANSWERS_PATH = "form_response.answers"
DEFINITION_FIELDS_PATH = "form_response.definition.fields"

# Answer type -> path inside the answer envelope holding the value
_VALUE_PATHS = {
    "choice": "choice.label",
    "choices": "choices.labels",
    "email": "email",
    "text": "text",
    "long_text": "text",
}

_CHOICE_FIELD_TYPES = ("multiple_choice", "dropdown", "picture_choice")


def _definition_index(example: Any) -> dict[str, dict]:
    fields = resolve(example, DEFINITION_FIELDS_PATH)
    if not isinstance(fields, list):
        return {}
    return {
        str(f["id"]): f for f in fields
        if isinstance(f, dict) and f.get("id") is not None
    }


def _choice_options(definition: dict) -> list[FieldOption] | None:
    if definition.get("type") not in _CHOICE_FIELD_TYPES:
        return None
    choices = definition.get("choices", resolve(definition, "properties.choices"))
    if not isinstance(choices, list):
        return None
    return [
        FieldOption(id=str(c.get("id", c.get("ref", ""))), text=str(c.get("label", "")))
        for c in choices if isinstance(c, dict)
    ]


class TypeformAdapter(SurveyProviderAdapter):
    name = "typeform"

    def discover_fields(self, example: Any) -> list[ParsedField]:
        answers = resolve(example, ANSWERS_PATH)
        if not isinstance(answers, list):
            return []

        definitions = _definition_index(example)
        fields: list[ParsedField] = []
        for index, answer in enumerate(answers):
            if not isinstance(answer, dict):
                continue
            path = child_index_path(ANSWERS_PATH, index)
            field_id = resolve(answer, "field.id")
            definition = definitions.get(str(field_id), {}) if field_id is not NOT_FOUND else {}

            ref = resolve(answer, "field.ref")
            label = definition.get("title") or (ref if isinstance(ref, str) and ref else path)
            answer_type = answer.get("type")
            fields.append(ParsedField(
                path=path,
                label=str(label),
                type=answer_type if isinstance(answer_type, str) else None,
                options=_choice_options(definition) if definition else None,
            ))
        return fields

    def display_value(self, node: Any) -> Any:
        if not isinstance(node, dict) or "type" not in node:
            # Mapped straight to a value inside the payload rather than an answer envelope
            return node

        answer_type = node["type"]
        if not isinstance(answer_type, str):
            return NOT_FOUND
        value_path = _VALUE_PATHS.get(answer_type)
        if value_path:
            value = resolve(node, value_path)
        else:
            # number, boolean, date, url, phone_number, ... store the value under the type name
            value = node.get(answer_type, NOT_FOUND)
        if value is NOT_FOUND:
            logger.debug("Typeform answer of type %s carries no value", answer_type)
        return value

"""
Tests for field discovery and the mapping evaluator (evaluation + dashboard preview).
"""
import json
from unittest.mock import patch

import pytest

from surveyhook.schemas.webhook_config import WebhookConfig
from surveyhook.services.errors import (
    MalformedExampleJsonError,
    MappingNotConfiguredError,
    MissingEmailError,
)
from surveyhook.services.field_discovery import discover, discover_from_payload, parse_example_json
from surveyhook.services.mapping_evaluator import evaluate_mapping, preview_mapping


# ---------------------------------------------------------------------------
# Field discovery
# ---------------------------------------------------------------------------


class TestDiscover:
    def test_malformed_json_reports_parse_error(self):
        result = discover("tally", "{not json")
        assert result.fields == []
        assert result.parse_error == "Invalid JSON format"

    def test_nesting_too_deep_reports_parse_error(self):
        result = discover("other", "[" * 5000 + "]" * 5000)
        assert result.fields == []
        assert result.parse_error == "Invalid JSON format"

    def test_numeric_field_type_is_not_an_error(self):
        result = discover("tally", '{"data":{"fields":[{"label":"Age","type":3,"value":40}]}}')
        assert result.parse_error is None
        assert [(f.label, f.type) for f in result.fields] == [("Age", None)]

    def test_parse_example_json_raises(self):
        with pytest.raises(MalformedExampleJsonError):
            parse_example_json("[1, 2")

    def test_discovers_with_provider_adapter(self, tally_payload):
        result = discover("tally", json.dumps(tally_payload))
        assert result.parse_error is None
        assert [f.label for f in result.fields] == ["Email", "Company", "Favourite colour"]

    def test_idempotent(self, typeform_payload):
        example = json.dumps(typeform_payload)
        assert discover("typeform", example) == discover("typeform", example)

    def test_from_parsed_payload(self, typeform_payload):
        result = discover_from_payload("typeform", typeform_payload)
        assert len(result.fields) == 3


# ---------------------------------------------------------------------------
# evaluate_mapping
# ---------------------------------------------------------------------------


class TestEvaluateMapping:
    def test_typeform_end_to_end(self):
        payload = {"form_response": {"answers": [
            {"type": "text", "text": "Acme Inc"},
            {"type": "email", "email": "a@b.com"},
        ]}}
        config = WebhookConfig(provider="typeform", field_mappings={
            "company": "form_response.answers[0]",
            "email": "form_response.answers[1]",
        })
        record = evaluate_mapping(config, payload)
        assert record.email == "a@b.com"
        assert record.survey_data == {"company": "Acme Inc"}

    def test_absent_optional_field_omitted(self):
        config = WebhookConfig(provider="other", field_mappings={
            "email": "a.email",
            "company": "a.company",
        })
        record = evaluate_mapping(config, {"a": {"email": "x@y.z"}})
        assert record.email == "x@y.z"
        assert record.survey_data == {}

    def test_json_null_value_kept(self):
        config = WebhookConfig(field_mappings={"email": "email", "phone": "phone"})
        record = evaluate_mapping(config, {"email": "x@y.z", "phone": None})
        assert record.survey_data == {"phone": None}

    def test_email_is_trimmed(self):
        config = WebhookConfig(field_mappings={"email": "email"})
        assert evaluate_mapping(config, {"email": "  x@y.z \n"}).email == "x@y.z"

    @pytest.mark.parametrize("payload", [{}, {"email": ""}, {"email": "   "}, {"email": 12}, {"email": None}])
    def test_missing_email_raises(self, payload):
        config = WebhookConfig(field_mappings={"email": "email", "name": "name"})
        with pytest.raises(MissingEmailError):
            evaluate_mapping(config, payload)

    def test_no_email_mapping_raises(self):
        config = WebhookConfig(field_mappings={"name": "name"})
        with pytest.raises(MissingEmailError):
            evaluate_mapping(config, {"name": "x"})

    def test_empty_mapping_raises_not_configured(self):
        with pytest.raises(MappingNotConfiguredError):
            evaluate_mapping(WebhookConfig(), {"email": "x@y.z"})

    def test_tally_choice_labels(self, tally_payload):
        config = WebhookConfig(provider="tally", field_mappings={
            "email": "data.fields[0]",
            "colour": "data.fields[2]",
        })
        record = evaluate_mapping(config, tally_payload)
        assert record.survey_data == {"colour": "Red, Blue"}

    def test_adapter_exception_treated_as_absent(self, typeform_payload):
        config = WebhookConfig(provider="typeform", field_mappings={
            "email": "form_response.answers[1]",
            "company": "form_response.answers[0]",
        })
        from surveyhook.integrations.typeform import TypeformAdapter
        original = TypeformAdapter.display_value

        def flaky(self, node):
            if node.get("type") == "text":
                raise RuntimeError("boom")
            return original(self, node)

        with patch.object(TypeformAdapter, "display_value", flaky):
            record = evaluate_mapping(config, typeform_payload)
        assert record.email == "a@b.com"
        assert record.survey_data == {}

    def test_stored_config_with_garbage_paths(self):
        config = WebhookConfig.from_stored({
            "provider": "custom",
            "field_mappings": {"email": "email", "bad": 5, "blank": "  "},
        })
        assert config.provider == "other"
        assert config.field_mappings == {"email": "email"}


# ---------------------------------------------------------------------------
# preview_mapping
# ---------------------------------------------------------------------------


class TestPreviewMapping:
    def test_preview_matches_evaluation(self, typeform_payload):
        mappings = {"email": "form_response.answers[1]", "roast": "form_response.answers[2]"}
        preview = preview_mapping("typeform", json.dumps(typeform_payload), mappings)
        record = evaluate_mapping(WebhookConfig(provider="typeform", field_mappings=mappings), typeform_payload)
        assert preview.email == record.email
        assert preview.survey_data == record.survey_data == {"roast": "Dark"}

    def test_preview_without_email_does_not_fail(self):
        preview = preview_mapping("other", '{"a": 1}', {"a": "a"})
        assert preview.email == ""
        assert preview.survey_data == {"a": 1}

    def test_preview_bad_json(self):
        preview = preview_mapping("other", "nope", {"email": "email"})
        assert preview.parse_error == "Invalid JSON format"
        assert preview.survey_data == {}

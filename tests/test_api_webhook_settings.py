"""
Tests for surveyhook/api/webhook_settings.py - dashboard webhook configuration.
"""
import json
import pytest
from unittest.mock import AsyncMock, patch

from surveyhook.api.auth import create_access_token
from surveyhook.models.survey_response import SurveyResponse
from surveyhook.schemas.webhook_config import GeneratedEmail
from surveyhook.services.errors import EnrichmentError

BASE = "/api/v1/dashboard"


class TestAuth:
    @pytest.mark.asyncio
    async def test_invalid_token_401(self, api_client, account):
        resp = await api_client.get(f"{BASE}/webhook", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_missing_account_401(self, api_client, account):
        token = create_access_token("22222222-2222-2222-2222-222222222222")
        resp = await api_client.get(f"{BASE}/webhook", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestWebhookSettings:
    @pytest.mark.asyncio
    async def test_read_settings(self, api_client, account, auth_headers):
        resp = await api_client.get(f"{BASE}/webhook", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["webhook_id"] == account.webhook_id
        assert body["webhook_url"].endswith(f"/api/v1/webhooks/survey/{account.webhook_id}")
        assert body["provider"] == "typeform"
        assert body["field_mappings"] == {}
        assert body["supported_providers"] == ["typeform", "tally", "other"]

    @pytest.mark.asyncio
    async def test_regenerate_webhook_id(self, api_client, account, auth_headers):
        old_id = account.webhook_id
        resp = await api_client.post(f"{BASE}/webhook/regenerate", headers=auth_headers)
        assert resp.status_code == 200
        new_id = resp.json()["webhook_id"]
        assert new_id != old_id
        assert len(new_id) == 32

        stale = await api_client.post(f"/api/v1/webhooks/survey/{old_id}", json={"a": 1})
        assert stale.status_code == 404


class TestDiscoverAndPreview:
    @pytest.mark.asyncio
    async def test_discover_from_pasted_json(self, api_client, auth_headers, tally_payload):
        resp = await api_client.post(
            f"{BASE}/webhook/discover",
            json={"provider": "tally", "example_json": json.dumps(tally_payload)},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["parse_error"] is None
        assert [f["label"] for f in body["fields"]] == ["Email", "Company", "Favourite colour"]
        assert body["fields"][2]["options"][0] == {"id": "opt1", "text": "Red"}

    @pytest.mark.asyncio
    async def test_discover_malformed_json(self, api_client, auth_headers):
        resp = await api_client.post(
            f"{BASE}/webhook/discover",
            json={"provider": "tally", "example_json": "{oops"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {"fields": [], "parse_error": "Invalid JSON format"}

    @pytest.mark.asyncio
    async def test_discover_uses_stored_test_event(self, api_client, db, account, auth_headers, typeform_payload):
        account.webhook_config = {**account.webhook_config, "test_event": typeform_payload}
        await db.commit()
        resp = await api_client.post(
            f"{BASE}/webhook/discover", json={"provider": "typeform"}, headers=auth_headers,
        )
        assert [f["label"] for f in resp.json()["fields"]] == [
            "Company name", "Your email", "Favourite roast",
        ]

    @pytest.mark.asyncio
    async def test_discover_without_any_example(self, api_client, auth_headers):
        resp = await api_client.post(
            f"{BASE}/webhook/discover", json={"provider": "other"}, headers=auth_headers,
        )
        assert resp.json()["fields"] == []

    @pytest.mark.asyncio
    async def test_preview(self, api_client, auth_headers, typeform_payload):
        resp = await api_client.post(
            f"{BASE}/webhook/preview",
            json={
                "provider": "typeform",
                "example_json": json.dumps(typeform_payload),
                "field_mappings": {
                    "email": "form_response.answers[1]",
                    "company": "form_response.answers[0]",
                },
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "email": "a@b.com",
            "survey_data": {"company": "Acme Inc"},
            "parse_error": None,
        }


class TestSaveMapping:
    @pytest.mark.asyncio
    async def test_save_replaces_mapping(self, api_client, account, auth_headers, tally_payload):
        resp = await api_client.put(
            f"{BASE}/webhook/mapping",
            json={
                "provider": "tally",
                "field_mappings": {"email": "data.fields[0]", "colour": "data.fields[2]"},
                "example_json": json.dumps(tally_payload),
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "tally"
        assert body["field_mappings"] == {"email": "data.fields[0]", "colour": "data.fields[2]"}
        assert account.webhook_config["test_event"] == tally_payload

        # Now mapped: the same payload is ingested instead of stored as an example
        with patch(
            "surveyhook.services.ingestion.generate_welcome_email",
            new_callable=AsyncMock, return_value=GeneratedEmail(subject="S", email="B"),
        ):
            ingest = await api_client.post(
                f"/api/v1/webhooks/survey/{account.webhook_id}", json=tally_payload,
            )
        assert ingest.json()["message"] == "Survey data received and processed successfully"

    @pytest.mark.asyncio
    async def test_save_keeps_existing_test_event(self, api_client, db, account, auth_headers):
        account.webhook_config = {**account.webhook_config, "test_event": {"email": "x@y.z"}}
        await db.commit()
        resp = await api_client.put(
            f"{BASE}/webhook/mapping",
            json={"provider": "other", "field_mappings": {"email": "email"}},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["test_event"] == {"email": "x@y.z"}

    @pytest.mark.asyncio
    async def test_save_without_email_rejected(self, api_client, account, auth_headers):
        resp = await api_client.put(
            f"{BASE}/webhook/mapping",
            json={"provider": "other", "field_mappings": {"company": "company"}},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Email field mapping is required"
        assert account.webhook_config["field_mappings"] == {}

    @pytest.mark.asyncio
    async def test_save_with_bad_example_rejected(self, api_client, auth_headers):
        resp = await api_client.put(
            f"{BASE}/webhook/mapping",
            json={"provider": "other", "field_mappings": {"email": "email"}, "example_json": "{"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Invalid JSON format"


class TestRegenerateEmail:
    @pytest.fixture
    async def stored_response(self, db, account):
        response = SurveyResponse(
            account_id=account.id,
            email="c@d.com",
            survey_data={"company": "Acme Inc"},
        )
        db.add(response)
        await db.commit()
        return response

    @pytest.mark.asyncio
    async def test_regenerates_and_saves(self, api_client, auth_headers, stored_response, mock_generate_completion):
        resp = await api_client.post(
            f"{BASE}/survey-responses/{stored_response.id}/generate-email", headers=auth_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["subject"] == "Great to meet you"
        # Account voice settings frame the body
        assert body["email"].startswith("Hi there,\n\n")
        assert stored_response.ai_email == body["email"]

    @pytest.mark.asyncio
    async def test_generation_failure_502(self, api_client, auth_headers, stored_response):
        with patch(
            "surveyhook.api.webhook_settings.generate_welcome_email",
            new_callable=AsyncMock, side_effect=EnrichmentError("budget"),
        ):
            resp = await api_client.post(
                f"{BASE}/survey-responses/{stored_response.id}/generate-email", headers=auth_headers,
            )
        assert resp.status_code == 502
        assert stored_response.ai_email is None

    @pytest.mark.asyncio
    async def test_unknown_response_404(self, api_client, auth_headers):
        resp = await api_client.post(
            f"{BASE}/survey-responses/not-a-uuid/generate-email", headers=auth_headers,
        )
        assert resp.status_code == 404

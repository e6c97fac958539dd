"""
Post a sample Typeform, Tally or custom payload to a running instance.

Usage:
    python scripts/simulate_survey_webhook.py <webhook_id>
    python scripts/simulate_survey_webhook.py <webhook_id> --provider tally
    python scripts/simulate_survey_webhook.py <webhook_id> --base-url https://hooks.example.com
"""
import argparse
import asyncio
import logging

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = "http://localhost:8000"

TYPEFORM_PAYLOAD = {
    "event_id": "01HSIMULATED",
    "event_type": "form_response",
    "form_response": {
        "form_id": "lT4Z3j",
        "definition": {
            "id": "lT4Z3j",
            "title": "Welcome survey",
            "fields": [
                {"id": "f_company", "ref": "company", "type": "short_text", "title": "Company name"},
                {"id": "f_email", "ref": "email", "type": "email", "title": "Your email"},
                {
                    "id": "f_roast", "ref": "roast", "type": "multiple_choice",
                    "title": "Favourite roast",
                    "choices": [{"id": "c1", "label": "Light"}, {"id": "c2", "label": "Dark"}],
                },
            ],
        },
        "answers": [
            {"type": "text", "text": "Acme Inc", "field": {"id": "f_company", "type": "short_text", "ref": "company"}},
            {"type": "email", "email": "jane@acme.test", "field": {"id": "f_email", "type": "email", "ref": "email"}},
            {"type": "choice", "choice": {"label": "Dark"}, "field": {"id": "f_roast", "type": "multiple_choice", "ref": "roast"}},
        ],
    },
}

TALLY_PAYLOAD = {
    "eventId": "sim-tally-1",
    "eventType": "FORM_RESPONSE",
    "data": {
        "formName": "Welcome survey",
        "fields": [
            {"key": "question_email", "label": "Email", "type": "INPUT_EMAIL", "value": "sam@acme.test"},
            {"key": "question_company", "label": "Company", "type": "INPUT_TEXT", "value": "Acme Inc"},
            {
                "key": "question_roast", "label": "Favourite roast", "type": "MULTIPLE_CHOICE",
                "value": ["opt_dark"],
                "options": [{"id": "opt_light", "text": "Light"}, {"id": "opt_dark", "text": "Dark"}],
            },
        ],
    },
}

CUSTOM_PAYLOAD = {
    "respondent": {"email": "lee@acme.test"},
    "questions": [
        {"label": "Company", "type": "text", "value": "Acme Inc"},
        {"label": "Favourite roast", "type": "choice", "value": "Light"},
    ],
}

PAYLOADS = {"typeform": TYPEFORM_PAYLOAD, "tally": TALLY_PAYLOAD, "other": CUSTOM_PAYLOAD}


async def simulate(webhook_id: str, provider: str, base_url: str):
    url = f"{base_url.rstrip('/')}/api/v1/webhooks/survey/{webhook_id}"
    async with httpx.AsyncClient(timeout=30) as client:
        resp = await client.post(url, json=PAYLOADS[provider])
        logger.info("Webhook response: %s %s", resp.status_code, resp.json())
        return resp


def main():
    parser = argparse.ArgumentParser(description="Simulate a survey webhook delivery")
    parser.add_argument("webhook_id")
    parser.add_argument("--provider", choices=sorted(PAYLOADS), default="typeform")
    parser.add_argument("--base-url", default=BASE_URL)
    args = parser.parse_args()
    asyncio.run(simulate(args.webhook_id, args.provider, args.base_url))


if __name__ == "__main__":
    main()

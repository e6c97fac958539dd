"""
Welcome email generation - turns a stored survey response into a personalized
email using the account's voice settings (tone, brand, fixed opening/closing lines).
"""
import json
import logging
from typing import Any

from surveyhook.config import get_settings
from surveyhook.schemas.webhook_config import EmailContext, GeneratedEmail
from surveyhook.services.ai import generate_completion
from surveyhook.services.errors import EnrichmentError

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Welcome to our community!"

LENGTH_GUIDE = "short: 2-3 sentences, medium: 4-6 sentences, long: 7-10 sentences"


def build_prompts(
    customer_email: str,
    survey_data: dict[str, Any],
    context: EmailContext,
) -> tuple[str, str]:
    """Return (system_prompt, user_message) for one welcome email."""
    system_lines = [
        "You are an expert email writer with the following characteristics:",
        context.system_context,
        "Your task is to write a personalized email based on survey data.",
        f"Tone: {context.tone}",
    ]
    if context.brand_info:
        system_lines.append(f"Brand Information: {context.brand_info}")
    system_lines.append(f"Length: {context.email_length} ({LENGTH_GUIDE})")
    system_lines.append(
        "Important: Do not include any greeting or salutation at the start of the "
        "email body as it will be added separately. Stick to the length given."
    )
    system_lines.append(
        "Format your answer as a line starting with 'Subject:' followed by a line "
        "'Body:' and then the email body."
    )

    user_message = (
        f"Write a personalized email for {customer_email} based on their survey responses:\n"
        f"{json.dumps(survey_data, indent=2, ensure_ascii=False, default=str)}\n\n"
        "Generate both a subject line and email body that references their specific "
        "survey responses.\nMake it personal and engaging.\n"
        "Do not include any greeting - the greeting will be handled separately."
    )
    return "\n".join(system_lines), user_message


def parse_generated_email(response: str) -> tuple[str, str]:
    """
    Split a model response into (subject, body).

    Expects "Subject: ..." and "Body:" markers. A missing subject falls back to
    DEFAULT_SUBJECT and a missing body marker makes the whole response the body.
    """
    subject = ""
    body = ""
    lines = response.split("\n")
    for i, line in enumerate(lines):
        marker = line.strip().lower()
        if not subject and marker.startswith("subject:"):
            subject = line.strip()[len("subject:"):].strip()
        elif marker.startswith("body:"):
            first = line.strip()[len("body:"):].strip()
            rest = "\n".join(lines[i + 1:])
            body = f"{first}\n{rest}" if first else rest
            body = body.strip()
            break

    return subject or DEFAULT_SUBJECT, body or response.strip()


def _frame_body(body: str, context: EmailContext) -> str:
    if context.welcome_line:
        body = f"{context.welcome_line}\n\n{body.strip()}"
    if context.end_line:
        body = f"{body}\n\n{context.end_line}"
    return body


async def generate_welcome_email(
    customer_email: str,
    survey_data: dict[str, Any],
    context: EmailContext,
) -> GeneratedEmail:
    """
    Generate subject and body for one customer.

    Raises:
        EnrichmentError: no AI provider answered or the answer was empty
    """
    settings = get_settings()
    system_prompt, user_message = build_prompts(customer_email, survey_data, context)

    result = await generate_completion(
        system_prompt,
        user_message,
        max_tokens=settings.email_generation_max_tokens,
        temperature=settings.email_generation_temperature,
    )
    if result.get("error"):
        raise EnrichmentError(result["error"])
    content = result.get("content") or ""
    if not content.strip():
        raise EnrichmentError("Empty response from AI provider")

    subject, body = parse_generated_email(content)
    logger.debug(
        "Welcome email generated via %s (%dms, $%.4f)",
        result.get("provider"), result.get("latency_ms", 0), result.get("cost_usd", 0.0),
    )
    return GeneratedEmail(subject=subject, email=_frame_body(body, context))

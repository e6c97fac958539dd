"""
Seed a demo account and print its webhook URL and a dashboard token.

Usage:
    python scripts/seed_account.py
    python scripts/seed_account.py --email owner@acme.test --business "Acme Coffee"
"""
import argparse
import asyncio
import logging

from sqlalchemy import select

from surveyhook.api.auth import create_access_token
from surveyhook.api.webhook_settings import webhook_url
from surveyhook.database import async_session_factory
from surveyhook.models.account import Account

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_EMAIL_CONTEXT = {
    "tone": "warm and upbeat",
    "brand_info": "Acme Coffee roasts small-batch beans and ships them fresh every week.",
    "welcome_line": "Hi there,",
    "end_line": "Cheers,\nThe Acme Coffee team",
    "email_length": "short",
}


async def seed(email: str, business_name: str):
    async with async_session_factory() as session:
        result = await session.execute(select(Account).where(Account.email == email))
        account = result.scalar_one_or_none()

        if account:
            logger.info("Account already exists (id=%s). Skipping.", account.id)
        else:
            account = Account(
                email=email,
                business_name=business_name,
                webhook_config={"provider": "other", "field_mappings": {}},
                email_context=DEMO_EMAIL_CONTEXT,
            )
            session.add(account)
            await session.commit()
            logger.info("Created account %s (id=%s)", business_name, account.id)

        logger.info("Webhook URL: %s", webhook_url(account.webhook_id))
        logger.info("Dashboard token: %s", create_access_token(account.id))


def main():
    parser = argparse.ArgumentParser(description="Seed a demo SurveyHook account")
    parser.add_argument("--email", default="owner@acme.test")
    parser.add_argument("--business", default="Acme Coffee")
    args = parser.parse_args()
    asyncio.run(seed(args.email, args.business))


if __name__ == "__main__":
    main()

"""
Dashboard authentication - HS256 JWT bearer tokens carrying the account id.
"""
import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from surveyhook.config import get_settings
from surveyhook.database import get_db
from surveyhook.models.account import Account
from surveyhook.services.account_store import get_account

bearer_scheme = HTTPBearer()


def _jwt_secret() -> str:
    settings = get_settings()
    return settings.dashboard_jwt_secret or settings.app_secret_key


def create_access_token(account_id: str | uuid.UUID) -> str:
    settings = get_settings()
    return pyjwt.encode(
        {
            "account_id": str(account_id),
            "exp": datetime.now(timezone.utc) + timedelta(hours=settings.dashboard_jwt_expiry_hours),
        },
        _jwt_secret(),
        algorithm="HS256",
    )


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """Dependency to extract and verify the account from a JWT Bearer token."""
    try:
        payload = pyjwt.decode(
            credentials.credentials,
            _jwt_secret(),
            algorithms=["HS256"],
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    account_id = payload.get("account_id")
    if not account_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    account = await get_account(db, account_id)
    if account is None or not account.is_active:
        raise HTTPException(status_code=401, detail="Account not found")
    return account

"""
Inbound survey webhook - one URL per account, any provider.

Security layers (in order):
1. Rate limiting (IP + webhook id)
2. Unguessable webhook id lookup
3. Payload processing (ingestion pipeline)
"""
import logging

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from surveyhook.database import get_db
from surveyhook.schemas.ingestion import IngestionResult
from surveyhook.services.ingestion import ingest_survey_webhook
from surveyhook.utils.rate_limiter import check_webhook_rate_limits

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])

_STATUS_CODES = {
    "unknown_webhook": 404,
    "invalid_payload": 400,
    "missing_email": 400,
    "persistence_failed": 500,
    "test_event_stored": 200,
    "processed": 200,
}


async def _enforce_rate_limit(request: Request, webhook_id: str) -> None:
    """Check rate limits and raise 429 if exceeded."""
    client_ip = request.client.host if request.client else "unknown"
    allowed, retry_after = await check_webhook_rate_limits(client_ip, webhook_id)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(retry_after or 60)},
        )


def _to_response(result: IngestionResult) -> JSONResponse:
    if result.ok:
        body = {"success": True, "message": result.message}
    else:
        body = {"error": result.message}
        if result.details is not None:
            body["details"] = result.details
    return JSONResponse(status_code=_STATUS_CODES[result.status], content=body)


@router.post("/survey/{webhook_id}")
async def survey_webhook(
    webhook_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Receive a Typeform, Tally or custom survey submission."""
    await _enforce_rate_limit(request, webhook_id)

    body = await request.body()
    result = await ingest_survey_webhook(db, webhook_id, body)
    return _to_response(result)

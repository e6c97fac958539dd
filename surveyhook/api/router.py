"""
API router - aggregates all route modules.
"""
from fastapi import APIRouter
from surveyhook.api.webhooks import router as webhooks_router
from surveyhook.api.webhook_settings import router as webhook_settings_router
from surveyhook.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(webhooks_router)
api_router.include_router(webhook_settings_router)
api_router.include_router(health_router)

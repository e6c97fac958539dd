"""
API request/response schemas for the dashboard webhook settings endpoints.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class WebhookSettingsResponse(BaseModel):
    webhook_id: str
    webhook_url: str
    provider: str
    field_mappings: dict[str, str] = Field(default_factory=dict)
    test_event: Optional[Any] = None
    webhook_last_received: Optional[datetime] = None
    supported_providers: list[str] = Field(default_factory=list)


class DiscoverFieldsRequest(BaseModel):
    provider: str = "other"
    example_json: Optional[str] = None  # falls back to the stored test event


class PreviewMappingRequest(BaseModel):
    provider: str = "other"
    example_json: str
    field_mappings: dict[str, str] = Field(default_factory=dict)


class SaveMappingRequest(BaseModel):
    provider: str = "other"
    field_mappings: dict[str, str]
    example_json: Optional[str] = None


class RegenerateWebhookResponse(BaseModel):
    webhook_id: str
    webhook_url: str


class GeneratedEmailResponse(BaseModel):
    response_id: str
    subject: str
    email: str

"""
Outcome of one inbound survey webhook, independent of HTTP.
The webhook route turns it into the response the provider sees.
"""
from typing import Literal, Optional
from pydantic import BaseModel

IngestionStatus = Literal[
    "unknown_webhook",
    "invalid_payload",
    "test_event_stored",
    "missing_email",
    "persistence_failed",
    "processed",
]

TEST_EVENT_MESSAGE = (
    "Test event received. Please configure field mappings in your webhook settings."
)
PROCESSED_MESSAGE = "Survey data received and processed successfully"
PERSISTENCE_FAILED_MESSAGE = "Failed to insert customer data"
INVALID_PAYLOAD_MESSAGE = "Invalid JSON payload"


class IngestionResult(BaseModel):
    status: IngestionStatus
    message: str = ""
    details: Optional[str] = None
    response_id: Optional[str] = None
    email_generated: bool = False

    @property
    def ok(self) -> bool:
        return self.status in ("test_event_stored", "processed")

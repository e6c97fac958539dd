"""
Account model - a business onboarding its customers through survey webhooks.
Webhook config and email voice settings are JSONB so providers can evolve freely.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Boolean, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from surveyhook.database import Base


def new_webhook_id() -> str:
    """Opaque, unguessable webhook identifier used in the public webhook URL."""
    return uuid.uuid4().hex


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    business_name: Mapped[Optional[str]] = mapped_column(String(255))

    # Inbound survey webhook
    webhook_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=new_webhook_id
    )
    webhook_config: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=dict
    )  # {provider, field_mappings, test_event}
    webhook_last_received: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Voice for generated welcome emails: tone, brand_info, welcome_line, end_line, ...
    email_context: Mapped[Optional[dict]] = mapped_column(JSONB, default=dict)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_accounts_email", "email"),
    )

    def __repr__(self) -> str:
        return f"<Account {self.email} webhook={self.webhook_id[:8]}>"

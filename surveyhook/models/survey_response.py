"""
Survey response model - one row per mapped webhook submission.
Duplicate deliveries insert another row; there is no content dedup.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from surveyhook.database import Base


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    survey_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    # Filled in after persistence by the welcome email generator (may stay empty)
    ai_subject: Mapped[Optional[str]] = mapped_column(String(500))
    ai_email: Mapped[Optional[str]] = mapped_column(Text)
    ai_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_survey_responses_account_id", "account_id"),
        Index("ix_survey_responses_email", "email"),
    )

    def __repr__(self) -> str:
        return f"<SurveyResponse {self.email} account={str(self.account_id)[:8]}>"

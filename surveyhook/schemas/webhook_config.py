"""
Webhook configuration and field-mapping schemas.
WebhookConfig is stored as JSONB on the account; everything else is produced per call.
"""
import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

PROVIDERS = ("typeform", "tally", "other")
EMAIL_FIELD = "email"


def normalize_provider(value: Optional[str]) -> str:
    """Map stored provider names onto a known adapter name. Legacy "custom" means "other"."""
    if not value:
        return "other"
    value = str(value).strip().lower()
    if value in PROVIDERS:
        return value
    return "other"


class FieldOption(BaseModel):
    """One choice of a multiple-choice/checkbox question."""
    id: str
    text: str


class ParsedField(BaseModel):
    """A candidate field discovered in an example payload."""
    path: str
    label: str
    type: Optional[str] = None
    options: Optional[list[FieldOption]] = None


class WebhookConfig(BaseModel):
    """Per-account webhook settings: which provider, which paths, last example."""
    provider: str = "other"
    field_mappings: dict[str, str] = Field(default_factory=dict)
    test_event: Optional[Any] = None

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value):
        return normalize_provider(value)

    @field_validator("field_mappings", mode="before")
    @classmethod
    def _drop_unusable_paths(cls, value):
        # Stored configs are user data; ignore non-string or blank paths
        if not isinstance(value, dict):
            return {}
        return {
            str(name): path for name, path in value.items()
            if isinstance(path, str) and path.strip()
        }

    @classmethod
    def from_stored(cls, raw: Optional[dict]) -> "WebhookConfig":
        """Build from the JSONB column, tolerating missing or partially corrupt data."""
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored webhook config invalid, using defaults: %s", str(e))
            return cls()

    @property
    def is_mapped(self) -> bool:
        return bool(self.field_mappings)

    @property
    def email_path(self) -> Optional[str]:
        return self.field_mappings.get(EMAIL_FIELD)


class NormalizedRecord(BaseModel):
    """Provider-agnostic result of evaluating a mapping against a payload."""
    email: str
    survey_data: dict[str, Any] = Field(default_factory=dict)


class DiscoveryResult(BaseModel):
    fields: list[ParsedField] = Field(default_factory=list)
    parse_error: Optional[str] = None


class MappingPreview(BaseModel):
    """Dry-run of a draft mapping against the example payload."""
    email: str = ""
    survey_data: dict[str, Any] = Field(default_factory=dict)
    parse_error: Optional[str] = None


EmailLength = Literal["short", "medium", "long"]


class EmailContext(BaseModel):
    """Account-level voice settings for generated welcome emails."""
    tone: str = "professional and friendly"
    brand_info: str = ""
    welcome_line: str = ""
    end_line: str = ""
    system_context: str = ""
    email_length: EmailLength = "medium"

    @field_validator("tone", "email_length", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info):
        if value in (None, ""):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("brand_info", "welcome_line", "end_line", "system_context", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""

    @classmethod
    def from_stored(cls, raw: Optional[dict]) -> "EmailContext":
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored email context invalid, using defaults: %s", str(e))
            return cls()


class GeneratedEmail(BaseModel):
    subject: str
    email: str

"""
Domain exceptions for webhook ingestion and field mapping.

Path misses are NOT exceptions: the resolver returns the NOT_FOUND sentinel
and callers decide whether an absent field matters (only email does).
"""


class SurveyHookError(Exception):
    """Base for all ingestion/mapping errors."""
    error_code = "surveyhook_error"


class UnknownWebhookError(SurveyHookError):
    """No account owns the given webhook id."""
    error_code = "unknown_webhook"

    def __init__(self, webhook_id: str):
        self.webhook_id = webhook_id
        super().__init__("Invalid webhook ID")


class MalformedExampleJsonError(SurveyHookError):
    """Example payload pasted for discovery is not valid JSON."""
    error_code = "malformed_example_json"

    def __init__(self, message: str = "Invalid JSON format"):
        super().__init__(message)


class MappingError(SurveyHookError):
    error_code = "mapping_error"


class MappingNotConfiguredError(MappingError):
    """The account has not saved any field mapping yet."""
    error_code = "mapping_not_configured"

    def __init__(self):
        super().__init__("No field mapping configured")


class MissingEmailError(MappingError):
    """The email path did not resolve to a non-empty string."""
    error_code = "missing_email"

    def __init__(self, path: str | None = None):
        self.path = path
        super().__init__("Email field mapping is required")


class PersistenceError(SurveyHookError):
    """Writing the survey response to the store failed."""
    error_code = "persistence_failed"


class EnrichmentError(SurveyHookError):
    """Welcome email generation failed or timed out."""
    error_code = "enrichment_failed"

"""
Exception hierarchy for the extraction pipeline and usage governance.

Each error carries the HTTP status and the user-facing message the API layer
returns; internal detail stays in the exception chain and the logs.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.usage import UsageDecision


class RecipeCleanerError(Exception):
    """Base class for errors the API layer knows how to render"""
    status_code = 500
    error_code = "internal_error"
    user_message = "An unexpected error occurred"


class ExtractionError(RecipeCleanerError):
    """Raised when a pipeline stage cannot produce a recipe"""
    error_code = "extraction_failed"
    user_message = "We couldn't extract a recipe from this source. Please try again."

    def __init__(self, message: str = "", stage: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.stage = stage


class FetchError(ExtractionError):
    """Source material could not be retrieved; nothing billable has happened yet"""
    status_code = 400
    error_code = "fetch_failed"
    user_message = "Could not fetch recipe page."


class InvalidVideoUrlError(FetchError):
    error_code = "invalid_video_url"
    user_message = "Invalid YouTube URL."


class TranscriptUnavailableError(FetchError):
    error_code = "transcript_unavailable"
    user_message = "Could not extract transcript. Video may not have captions."


class InvalidPhotoError(FetchError):
    error_code = "invalid_photos"
    user_message = "No readable photos were provided. Send images as base64 data URIs."


class NoStructuredJsonError(ExtractionError):
    """The model answered without a parseable JSON object"""
    error_code = "no_structured_json"


class UpstreamProviderError(ExtractionError):
    """The AI provider failed or refused the call"""
    error_code = "upstream_failure"
    user_message = "The recipe service is temporarily unavailable. Please try again later."


class UsageDeniedError(RecipeCleanerError):
    """Quota or spending breaker refused a billable request"""
    status_code = 402
    error_code = "usage_denied"
    user_message = "Upgrade for more recipes!"

    def __init__(self, decision: "UsageDecision"):
        super().__init__(decision.reason or self.error_code)
        self.decision = decision


class UpgradeRequiredError(RecipeCleanerError):
    """Feature reserved for paid tiers"""
    status_code = 402
    error_code = "upgrade_required"
    user_message = "Upgrade to access this feature"

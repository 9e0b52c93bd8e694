"""
Exception handlers rendering the API's JSON error envelope.

Expected outcomes (quota denial, paused spending, paid-only features) are
logged at info level; internal detail of real failures goes to the log and
never into the response.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging

from app.core.exceptions import (
    ExtractionError, RecipeCleanerError, UpgradeRequiredError, UsageDeniedError
)
from app.utils.audit_logger import audit_logger

logger = logging.getLogger(__name__)

def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"

async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"Extraction failed at stage {exc.stage or 'unknown'} for {request.url.path}: "
            f"{exc.__class__.__name__}: {exc}",
            exc_info=exc
        )
    else:
        logger.info(f"Source could not be fetched ({exc.error_code}) for {request.url.path}: {exc}")

    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})

async def usage_denied_handler(request: Request, exc: UsageDeniedError) -> JSONResponse:
    decision = exc.decision
    subject = getattr(request.state, "user_id", None) or getattr(request.state, "fingerprint", None)
    logger.info(f"Usage denied ({decision.reason}) for {subject or _client_ip(request)} on {request.url.path}")
    audit_logger.log_quota_denied(subject, decision.reason, _client_ip(request))

    content = {"error": decision.reason, "message": decision.message}
    if decision.requires_signup:
        content["requiresSignup"] = True
    if decision.upgrade:
        content["upgrade"] = True
    return JSONResponse(status_code=exc.status_code, content=content)

async def upgrade_required_handler(request: Request, exc: UpgradeRequiredError) -> JSONResponse:
    logger.info(f"Paid feature {request.url.path} requested without a paid subscription")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.user_message}
    )

async def recipe_cleaner_error_handler(request: Request, exc: RecipeCleanerError) -> JSONResponse:
    logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})

async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "An unexpected error occurred"}
    )

def register_exception_handlers(app: FastAPI) -> None:
    # Starlette picks the handler registered for the closest class in the MRO
    app.add_exception_handler(ExtractionError, extraction_error_handler)
    app.add_exception_handler(UsageDeniedError, usage_denied_handler)
    app.add_exception_handler(UpgradeRequiredError, upgrade_required_handler)
    app.add_exception_handler(RecipeCleanerError, recipe_cleaner_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

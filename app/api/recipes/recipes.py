from fastapi import APIRouter, Depends, Query, Request
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session
from functools import lru_cache
from typing import Optional
import logging

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import UsageDeniedError
from app.core.security import get_optional_user
from app.core.tier_enforcement import require_paid_subscription
from app.middleware.rate_limit import billable_rate_limit
from app.models.user import User
from app.schemas.recipe import (
    CleanPhotoRequest, CleanRecipeResponse, CleanUrlRequest, CleanYouTubeRequest,
    TranslateRequest, TranslateResponse
)
from app.schemas.usage import UsageDecision
from app.services.extraction_service import ExtractionResult, ExtractionService
from app.services.spending_service import SpendingService
from app.services.translation_service import TranslationService
from app.services.usage_tracking_service import UsageTrackingService, system_limit_decision
from app.utils.audit_logger import audit_logger

logger = logging.getLogger(__name__)

router = APIRouter()

@lru_cache
def get_extraction_service() -> ExtractionService:
    return ExtractionService()

@lru_cache
def get_translation_service() -> TranslationService:
    return TranslationService()

def _authorize_extraction(request: Request, user: Optional[User], fingerprint: Optional[str],
                          db: Session) -> UsageDecision:
    """Refuse the request before any fetch or AI call if the caller has no quota left"""
    request.state.fingerprint = fingerprint
    decision = UsageTrackingService.can_extract(user, fingerprint, get_remote_address(request), db)
    if not decision.allowed:
        raise UsageDeniedError(decision)
    return decision

def _deliver(result: ExtractionResult, user: Optional[User], fingerprint: Optional[str],
             db: Session) -> CleanRecipeResponse:
    """Record spend and commit quota for a successful extraction"""
    SpendingService.record_spend(db, result.cost, operation=f"{result.source_kind.value}_extraction")

    if not UsageTrackingService.commit_extraction(db, user=user, fingerprint=fingerprint):
        # A concurrent request took the last unit; this recipe is already paid for
        logger.warning(f"[{result.extraction_id}] delivered without a quota commit")

    remaining = UsageTrackingService.get_remaining(db, user=user, fingerprint=fingerprint)
    audit_logger.log_extraction_completed(
        subject=user.id if user else fingerprint,
        source_kind=result.source_kind.value,
        path=result.path.value,
        cost=result.cost,
        issues=result.issues,
        repaired=result.repaired
    )
    return CleanRecipeResponse(recipe=result.recipe, recipes_remaining=remaining)

@router.post("/clean-url", response_model=CleanRecipeResponse)
@billable_rate_limit
async def clean_url(
    payload: CleanUrlRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    extraction_service: ExtractionService = Depends(get_extraction_service)
):
    _authorize_extraction(request, current_user, payload.fingerprint, db)
    result = await extraction_service.extract_from_url(payload.url, payload.language)
    return _deliver(result, current_user, payload.fingerprint, db)

@router.post("/clean-photo", response_model=CleanRecipeResponse)
@billable_rate_limit
async def clean_photo(
    payload: CleanPhotoRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    extraction_service: ExtractionService = Depends(get_extraction_service)
):
    _authorize_extraction(request, current_user, payload.fingerprint, db)
    result = await extraction_service.extract_from_photos(payload.photos, payload.language)
    return _deliver(result, current_user, payload.fingerprint, db)

@router.post("/clean-youtube", response_model=CleanRecipeResponse)
@billable_rate_limit
async def clean_youtube(
    payload: CleanYouTubeRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    extraction_service: ExtractionService = Depends(get_extraction_service)
):
    _authorize_extraction(request, current_user, payload.fingerprint, db)
    result = await extraction_service.extract_from_video(payload.url, payload.language)
    return _deliver(result, current_user, payload.fingerprint, db)

@router.post("/translate", response_model=TranslateResponse)
@billable_rate_limit
async def translate_recipe(
    payload: TranslateRequest,
    request: Request,
    current_user: User = Depends(require_paid_subscription),
    db: Session = Depends(get_db),
    translation_service: TranslationService = Depends(get_translation_service)
):
    if SpendingService.is_paused(db):
        raise UsageDeniedError(system_limit_decision())

    translated = await translation_service.translate(payload.recipe, payload.target_language)
    SpendingService.record_spend(db, settings.COST_PER_TRANSLATION, operation="translation")
    return TranslateResponse(recipe=translated)

@router.get("/usage", response_model=UsageDecision)
async def get_usage(
    request: Request,
    fingerprint: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Current allowance for the caller; nothing is consumed"""
    return UsageTrackingService.can_extract(current_user, fingerprint, get_remote_address(request), db)

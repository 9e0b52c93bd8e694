from .recipe import (
    Recipe, RecipeStep, CleanUrlRequest, CleanPhotoRequest, CleanYouTubeRequest,
    TranslateRequest, CleanRecipeResponse, TranslateResponse
)
from .usage import UsageDecision, DenialReason, SpendingStatus, SystemStatus

__all__ = [
    "Recipe", "RecipeStep",
    "CleanUrlRequest", "CleanPhotoRequest", "CleanYouTubeRequest", "TranslateRequest",
    "CleanRecipeResponse", "TranslateResponse",
    "UsageDecision", "DenialReason", "SpendingStatus", "SystemStatus"
]

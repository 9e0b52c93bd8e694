from typing import Optional
from fastapi import Depends

from app.core.config import settings
from app.core.exceptions import UpgradeRequiredError
from app.core.security import get_optional_user
from app.models.user import User, SubscriptionTier

class TierLimits:
    """Define monthly extraction limits for each subscription tier"""

    @staticmethod
    def monthly_limits() -> dict:
        # Read at call time so configuration overrides apply
        return {
            SubscriptionTier.NONE: settings.FREE_RECIPES_PER_MONTH,
            SubscriptionTier.BASIC: settings.BASIC_RECIPES_PER_MONTH,
            SubscriptionTier.PRO: None,  # Unlimited
        }

class TierEnforcement:
    """Helper class for tier enforcement operations"""

    PAID_TIERS = (SubscriptionTier.BASIC, SubscriptionTier.PRO)

    @staticmethod
    def get_tier(user: User) -> SubscriptionTier:
        return user.subscription_tier or SubscriptionTier.NONE

    @staticmethod
    def get_monthly_limit(user: User) -> Optional[int]:
        """Monthly extraction limit for a user, None when unlimited"""
        return TierLimits.monthly_limits()[TierEnforcement.get_tier(user)]

    @staticmethod
    def is_paid_user(user: Optional[User]) -> bool:
        return user is not None and TierEnforcement.get_tier(user) in TierEnforcement.PAID_TIERS

async def require_paid_subscription(current_user: Optional[User] = Depends(get_optional_user)) -> User:
    """Dependency restricting an endpoint to basic and pro subscribers"""
    if not TierEnforcement.is_paid_user(current_user):
        raise UpgradeRequiredError()
    return current_user

from app.core.database import Base
from .user import User, UserSession, SubscriptionTier
from .usage_tracking import AnonymousUsage
from .spending import SpendingLedger, LEDGER_ID

__all__ = ["Base", "User", "UserSession", "SubscriptionTier", "AnonymousUsage", "SpendingLedger", "LEDGER_ID"]

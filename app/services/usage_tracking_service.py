from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
import logging

from app.core.config import settings
from app.core.tier_enforcement import TierEnforcement
from app.models.user import User, SubscriptionTier
from app.models.usage_tracking import AnonymousUsage
from app.schemas.usage import UsageDecision, DenialReason
from app.services.spending_service import SpendingService
from app.utils.period_utils import Period, period_key, rolled_over, utc_now

logger = logging.getLogger(__name__)

def system_limit_decision() -> UsageDecision:
    """Denial returned to every billable request while the spending breaker is tripped"""
    return UsageDecision(
        allowed=False,
        reason=DenialReason.system_limit,
        message="Recipe cleaning is paused for now due to high demand. Please try again later."
    )

class UsageTrackingService:
    """
    Service for tracking and enforcing extraction quotas.

    Quota is checked before an extraction and committed only after it
    succeeds, so failed attempts never consume quota. The commit is a guarded
    increment: once the limit is reached, further commits are refused even if
    several requests passed the check concurrently.
    """

    @staticmethod
    def reset_monthly_usage_if_needed(user: User, db: Session, now: Optional[datetime] = None) -> User:
        """Zero the monthly counter the first time a user is seen in a new month"""
        now = now or utc_now()
        if not rolled_over(user.month_started, now, Period.MONTH):
            return user

        observed = user.month_started
        stmt = update(User).where(User.id == user.id)
        if observed is None:
            stmt = stmt.where(User.month_started.is_(None))
        else:
            stmt = stmt.where(User.month_started == observed)

        db.execute(
            stmt.values(recipes_used_this_month=0, month_started=period_key(now, Period.MONTH))
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(user)
        logger.info(f"Reset monthly usage for user {user.id}, month {user.month_started}")
        return user

    @staticmethod
    def get_anonymous_usage(fingerprint: str, ip: Optional[str], db: Session,
                            now: Optional[datetime] = None) -> AnonymousUsage:
        """Find or create the usage record for a fingerprint, refreshing last_seen and ip"""
        now = now or utc_now()
        usage = db.get(AnonymousUsage, fingerprint)

        if usage is None:
            usage = AnonymousUsage(fingerprint=fingerprint, ip_address=ip, recipes_used=0, last_seen=now)
            db.add(usage)
            try:
                db.commit()
            except IntegrityError:
                # Concurrent first request from the same device
                db.rollback()
                usage = db.get(AnonymousUsage, fingerprint)
            db.refresh(usage)
            return usage

        db.execute(
            update(AnonymousUsage)
            .where(AnonymousUsage.fingerprint == fingerprint)
            .values(last_seen=now, ip_address=ip)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(usage)
        return usage

    @staticmethod
    def can_extract(user: Optional[User], fingerprint: Optional[str], ip: Optional[str],
                    db: Session, now: Optional[datetime] = None) -> UsageDecision:
        """
        Decide whether the caller may trigger another billable extraction.

        Evaluation order, first match wins: spending breaker, authenticated
        tier quota, anonymous lifetime allowance, untrackable caller.
        """
        now = now or utc_now()

        if SpendingService.is_paused(db, now):
            return system_limit_decision()

        if user is not None:
            UsageTrackingService.reset_monthly_usage_if_needed(user, db, now)
            monthly_limit = TierEnforcement.get_monthly_limit(user)

            if monthly_limit is None:
                return UsageDecision(allowed=True, remaining=None)

            used = user.recipes_used_this_month or 0
            if used < monthly_limit:
                return UsageDecision(allowed=True, remaining=monthly_limit - used)

            is_free = TierEnforcement.get_tier(user) == SubscriptionTier.NONE
            return UsageDecision(
                allowed=False,
                remaining=0,
                reason=DenialReason.monthly_limit,
                upgrade=is_free,
                message=f"You've used all {monthly_limit} recipes for this month. Upgrade for more recipes!"
            )

        if fingerprint:
            usage = UsageTrackingService.get_anonymous_usage(fingerprint, ip, db, now)
            if usage.recipes_used < settings.INITIAL_FREE_RECIPES:
                return UsageDecision(
                    allowed=True,
                    remaining=settings.INITIAL_FREE_RECIPES - usage.recipes_used,
                    is_anonymous=True
                )
            return UsageDecision(
                allowed=False,
                remaining=0,
                reason=DenialReason.initial_limit,
                requires_signup=True,
                is_anonymous=True,
                message=(
                    f"You've used your {settings.INITIAL_FREE_RECIPES} free recipes! "
                    f"Sign up free to get {settings.FREE_RECIPES_PER_MONTH} more each month."
                )
            )

        return UsageDecision(
            allowed=False,
            reason=DenialReason.no_tracking,
            message="We couldn't identify your device. Please sign in to continue."
        )

    @staticmethod
    def commit_extraction(db: Session, user: Optional[User] = None, fingerprint: Optional[str] = None,
                          now: Optional[datetime] = None) -> bool:
        """
        Count one successful extraction against the caller's quota.

        Must only be called after the extraction succeeded.

        Returns:
            True if the increment applied, False if the quota was already used up
            (e.g. by a concurrent request) or the caller cannot be tracked.
        """
        if user is not None:
            UsageTrackingService.reset_monthly_usage_if_needed(user, db, now)
            monthly_limit = TierEnforcement.get_monthly_limit(user)

            stmt = update(User).where(User.id == user.id)
            if monthly_limit is not None:
                stmt = stmt.where(User.recipes_used_this_month < monthly_limit)
            result = db.execute(
                stmt.values(
                    recipes_used_this_month=User.recipes_used_this_month + 1,
                    total_recipes_ever=User.total_recipes_ever + 1
                ).execution_options(synchronize_session=False)
            )
            db.commit()
            db.refresh(user)
            applied = result.rowcount == 1
            subject = f"user {user.id}"
        elif fingerprint:
            result = db.execute(
                update(AnonymousUsage)
                .where(
                    AnonymousUsage.fingerprint == fingerprint,
                    AnonymousUsage.recipes_used < settings.INITIAL_FREE_RECIPES
                )
                .values(recipes_used=AnonymousUsage.recipes_used + 1)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            applied = result.rowcount == 1
            subject = f"fingerprint {fingerprint}"
        else:
            return False

        if applied:
            logger.info(f"Committed extraction for {subject}")
        else:
            logger.warning(f"Extraction commit refused for {subject}: quota already exhausted")
        return applied

    @staticmethod
    def get_remaining(db: Session, user: Optional[User] = None, fingerprint: Optional[str] = None) -> Optional[int]:
        """Extractions left for the caller, None when unbounded"""
        if user is not None:
            monthly_limit = TierEnforcement.get_monthly_limit(user)
            if monthly_limit is None:
                return None
            return max(0, monthly_limit - (user.recipes_used_this_month or 0))

        if fingerprint:
            usage = db.get(AnonymousUsage, fingerprint)
            if usage is not None:
                db.refresh(usage)
            used = usage.recipes_used if usage else 0
            return max(0, settings.INITIAL_FREE_RECIPES - used)

        return 0

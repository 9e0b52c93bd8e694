from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from app.core.config import settings
from app.models.spending import SpendingLedger, LEDGER_ID
from app.schemas.usage import SpendingStatus
from app.utils.audit_logger import audit_logger
from app.utils.period_utils import Period, period_key, rolled_over, utc_now

logger = logging.getLogger(__name__)

class SpendingService:
    """
    Durable daily/monthly spend accumulator with a global circuit breaker.

    Periods roll over lazily: every read or write first compares the stored
    period keys against the clock and zeroes stale accumulators. The breaker
    is derived from the accumulators, so a daily rollover cannot clear a
    monthly overrun and vice versa.
    """

    @staticmethod
    def ensure_ledger(db: Session, now: Optional[datetime] = None) -> SpendingLedger:
        """Get the singleton ledger row, creating it on first use"""
        ledger = db.get(SpendingLedger, LEDGER_ID)
        if ledger:
            return ledger

        now = now or utc_now()
        ledger = SpendingLedger(
            id=LEDGER_ID,
            daily_date=period_key(now, Period.DAY),
            daily_amount=Decimal("0"),
            monthly_month=period_key(now, Period.MONTH),
            monthly_amount=Decimal("0"),
            paused=False
        )
        db.add(ledger)
        try:
            db.commit()
            logger.info("Created spending ledger")
        except IntegrityError:
            # Another request created it first
            db.rollback()
            ledger = db.get(SpendingLedger, LEDGER_ID)
        db.refresh(ledger)
        return ledger

    @staticmethod
    def _apply_rollovers(db: Session, now: datetime) -> SpendingLedger:
        ledger = SpendingService.ensure_ledger(db, now)
        changed = False

        if rolled_over(ledger.daily_date, now, Period.DAY):
            # Compare-and-swap on the observed key so concurrent resets happen once
            db.execute(
                update(SpendingLedger)
                .where(SpendingLedger.id == LEDGER_ID, SpendingLedger.daily_date == ledger.daily_date)
                .values(daily_date=period_key(now, Period.DAY), daily_amount=0)
                .execution_options(synchronize_session=False)
            )
            changed = True

        if rolled_over(ledger.monthly_month, now, Period.MONTH):
            db.execute(
                update(SpendingLedger)
                .where(SpendingLedger.id == LEDGER_ID, SpendingLedger.monthly_month == ledger.monthly_month)
                .values(monthly_month=period_key(now, Period.MONTH), monthly_amount=0)
                .execution_options(synchronize_session=False)
            )
            changed = True

        if changed:
            db.commit()
            db.refresh(ledger)
            logger.info(f"Spending ledger rolled over to {ledger.daily_date} / {ledger.monthly_month}")

        return ledger

    @staticmethod
    def _evaluate_pause(db: Session, ledger: SpendingLedger) -> bool:
        """Derive the breaker state from the accumulators and persist any change"""
        daily = float(ledger.daily_amount)
        monthly = float(ledger.monthly_amount)
        should_pause = daily >= settings.DAILY_SPENDING_LIMIT or monthly >= settings.MONTHLY_SPENDING_LIMIT

        if should_pause != ledger.paused:
            db.execute(
                update(SpendingLedger)
                .where(SpendingLedger.id == LEDGER_ID)
                .values(paused=should_pause)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            db.refresh(ledger)

            if should_pause:
                logger.warning(
                    f"Spending breaker tripped: daily ${daily:.4f}/{settings.DAILY_SPENDING_LIMIT}, "
                    f"monthly ${monthly:.4f}/{settings.MONTHLY_SPENDING_LIMIT}"
                )
                audit_logger.log_breaker_tripped(daily, monthly)
            else:
                logger.info("Spending breaker cleared after period rollover")

        return should_pause

    @staticmethod
    def record_spend(db: Session, amount: float, operation: str = "extraction",
                     now: Optional[datetime] = None) -> SpendingStatus:
        """Atomically add ``amount`` to both accumulators and re-evaluate the breaker"""
        if amount < 0:
            raise ValueError("Spend amount cannot be negative")

        now = now or utc_now()
        ledger = SpendingService._apply_rollovers(db, now)

        increment = Decimal(str(amount))
        db.execute(
            update(SpendingLedger)
            .where(SpendingLedger.id == LEDGER_ID)
            .values(
                daily_amount=SpendingLedger.daily_amount + increment,
                monthly_amount=SpendingLedger.monthly_amount + increment
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(ledger)

        paused = SpendingService._evaluate_pause(db, ledger)
        status = SpendingService._to_status(ledger, paused)
        logger.info(f"Recorded ${amount:.4f} for {operation}, daily total ${status.daily:.4f}")
        audit_logger.log_spend_recorded(amount, status.daily, status.monthly, operation)
        return status

    @staticmethod
    def is_paused(db: Session, now: Optional[datetime] = None) -> bool:
        """Current breaker state after applying any pending rollover"""
        ledger = SpendingService._apply_rollovers(db, now or utc_now())
        return SpendingService._evaluate_pause(db, ledger)

    @staticmethod
    def get_status(db: Session, now: Optional[datetime] = None) -> SpendingStatus:
        ledger = SpendingService._apply_rollovers(db, now or utc_now())
        paused = SpendingService._evaluate_pause(db, ledger)
        return SpendingService._to_status(ledger, paused)

    @staticmethod
    def _to_status(ledger: SpendingLedger, paused: bool) -> SpendingStatus:
        return SpendingStatus(
            daily=float(ledger.daily_amount),
            monthly=float(ledger.monthly_amount),
            paused=paused,
            daily_limit=settings.DAILY_SPENDING_LIMIT,
            monthly_limit=settings.MONTHLY_SPENDING_LIMIT
        )

"""
Calendar period keys used by the spending ledger and usage quotas.

All periods are UTC. A period key is the ISO date ("2025-01-31") for daily
periods and the ISO month ("2025-01") for monthly ones; counters stamped with
a key are stale as soon as the current key differs.
"""
import enum
from datetime import datetime, timezone
from typing import Optional


class Period(str, enum.Enum):
    DAY = "day"
    MONTH = "month"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def period_key(now: Optional[datetime] = None, period: Period = Period.MONTH) -> str:
    """
    Get the key identifying the period that contains ``now``.

    Args:
        now: Moment to classify. Naive datetimes are treated as UTC.
        period: Daily or monthly granularity.

    Returns:
        "YYYY-MM-DD" for daily periods, "YYYY-MM" for monthly periods.
    """
    now = now or utc_now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    if period == Period.DAY:
        return now.strftime("%Y-%m-%d")
    return now.strftime("%Y-%m")


def rolled_over(last_period: Optional[str], now: Optional[datetime] = None, period: Period = Period.MONTH) -> bool:
    """
    Check whether a counter stamped with ``last_period`` belongs to an earlier period.

    Args:
        last_period: Period key stored alongside the counter, or None if never stamped.
        now: Current moment.
        period: Granularity of the stored key.

    Returns:
        True if the counter must be reset before it is read or written.
    """
    return last_period != period_key(now, period)

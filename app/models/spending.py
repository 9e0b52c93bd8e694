from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.core.database import Base

LEDGER_ID = 1

class SpendingLedger(Base):
    """Singleton row accumulating AI spend for the spending circuit breaker"""
    __tablename__ = "spending_ledger"
    __table_args__ = (CheckConstraint("id = 1", name="spending_ledger_singleton"),)

    id = Column(Integer, primary_key=True, default=LEDGER_ID)
    daily_date = Column(String(10), nullable=False)  # Format: "2025-01-31"
    daily_amount = Column(Numeric(10, 4), nullable=False, default=0)
    monthly_month = Column(String(7), nullable=False)  # Format: "2025-01"
    monthly_amount = Column(Numeric(10, 4), nullable=False, default=0)
    paused = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

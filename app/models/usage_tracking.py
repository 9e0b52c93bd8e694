from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.sql import func
from app.core.database import Base

class AnonymousUsage(Base):
    """Lifetime extraction count for a device fingerprint that has not signed up"""
    __tablename__ = "anonymous_usage"

    fingerprint = Column(String, primary_key=True)
    recipes_used = Column(Integer, nullable=False, default=0)  # Never reset
    ip_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_seen = Column(DateTime(timezone=True), server_default=func.now())

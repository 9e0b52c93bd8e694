from sqlalchemy import Column, String, Integer, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.utils.id_utils import generate_id
import enum

class SubscriptionTier(enum.Enum):
    NONE = "none"
    BASIC = "basic"
    PRO = "pro"

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Subscription fields (maintained by the payments integration)
    subscription_tier = Column(Enum(SubscriptionTier), nullable=False, default=SubscriptionTier.NONE)

    # Monthly extraction quota; month_started is a "YYYY-MM" period key
    recipes_used_this_month = Column(Integer, nullable=False, default=0)
    month_started = Column(String(7), nullable=True)
    total_recipes_ever = Column(Integer, nullable=False, default=0)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

class UserSession(Base):
    """Bearer token issued by the auth service"""
    __tablename__ = "user_sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="sessions")

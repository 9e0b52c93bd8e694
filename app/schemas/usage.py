from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum

class DenialReason(str, Enum):
    system_limit = "system_limit"
    monthly_limit = "monthly_limit"
    initial_limit = "initial_limit"
    no_tracking = "no_tracking"

class UsageDecision(BaseModel):
    """Outcome of a quota check; remaining is None when the caller is unbounded"""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    allowed: bool
    remaining: Optional[int] = None
    reason: Optional[DenialReason] = None
    requires_signup: bool = Field(False, alias="requiresSignup")
    upgrade: bool = False
    is_anonymous: bool = Field(False, alias="isAnonymous")
    message: Optional[str] = None

class SpendingStatus(BaseModel):
    daily: float
    monthly: float
    paused: bool
    daily_limit: float = Field(alias="dailyLimit")
    monthly_limit: float = Field(alias="monthlyLimit")

    model_config = ConfigDict(populate_by_name=True)

class SystemStatus(BaseModel):
    status: str

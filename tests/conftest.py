import os

# Configure the application before anything imports app.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_USAGE_EVENTS"] = "false"
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from datetime import timedelta

import pytest

from app import models  # noqa: F401
from app.core.database import Base, SessionLocal, engine
from app.models.user import User, UserSession, SubscriptionTier
from app.models.usage_tracking import AnonymousUsage
from app.middleware.rate_limit import limiter
from app.utils.id_utils import generate_id
from app.utils.period_utils import Period, period_key, utc_now


@pytest.fixture
def db():
    """Fresh in-memory schema per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def make_user(db):
    def _make_user(tier=SubscriptionTier.NONE, used=0, month_started=None, token=None):
        user = User(
            email=f"{generate_id(8)}@example.com",
            name="Test Cook",
            subscription_tier=tier,
            recipes_used_this_month=used,
            month_started=month_started or period_key(utc_now(), Period.MONTH),
            total_recipes_ever=used
        )
        db.add(user)
        db.commit()
        if token:
            db.add(UserSession(token=token, user_id=user.id, expires_at=utc_now() + timedelta(days=1)))
            db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_anonymous(db):
    def _make_anonymous(fingerprint="device-123", used=0):
        usage = AnonymousUsage(fingerprint=fingerprint, recipes_used=used, ip_address="127.0.0.1", last_seen=utc_now())
        db.add(usage)
        db.commit()
        return usage
    return _make_anonymous

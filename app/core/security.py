from datetime import datetime, timezone
from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.models.user import User, UserSession
import secrets
import logging

logger = logging.getLogger(__name__)

def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header, if well formed"""
    if not authorization:
        return None

    auth_parts = authorization.split()
    if len(auth_parts) != 2:
        return None

    scheme, token = auth_parts
    if scheme.lower() != "bearer":
        return None
    return token

def resolve_session_user(token: str, db: Session, now: Optional[datetime] = None) -> Optional[User]:
    """Look up the user owning an unexpired session token"""
    now = now or datetime.now(timezone.utc)
    session = db.query(UserSession).filter(
        UserSession.token == token,
        UserSession.expires_at > now
    ).first()
    return session.user if session else None

async def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Resolve the caller from its bearer token.

    Anonymous callers are allowed on extraction routes, so a missing, malformed
    or expired token yields None rather than a 401. The user id is kept on
    ``request.state`` for the per-user rate limit key.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        return None

    try:
        user = resolve_session_user(token, db)
    except Exception as e:
        # Log unexpected errors but treat the caller as anonymous
        logger.error(f"Unexpected session lookup error: {str(e)}")
        return None

    if user:
        request.state.user_id = user.id
    return user

async def require_operator(operator_key: Optional[str] = Header(None, alias="X-Operator-Key")) -> None:
    """
    Restrict operator views to callers presenting OPERATOR_API_KEY.

    Raises:
        HTTPException: 404 when no operator key is configured, 401 when the
            header is missing or wrong.
    """
    if not settings.OPERATOR_API_KEY:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    if not operator_key or not secrets.compare_digest(operator_key, settings.OPERATOR_API_KEY):
        logger.warning("Rejected operator request with a missing or invalid key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid operator key")

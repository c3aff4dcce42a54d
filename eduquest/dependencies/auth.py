import logging
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from eduquest.core.access import has_active_access
from eduquest.db.session import get_db
from eduquest.models.user import User
from eduquest.utils.auth import verify_session_token

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "eduquest_session"


def _token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.replace("Bearer ", "", 1).strip()
    # Frontends sometimes send the literal string for an unset variable
    if token.lower() in ("null", "undefined", "none"):
        return None
    return token or None


def get_current_user_id(
    session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> int:
    """
    Resolve the user id from the session cookie, falling back to a
    Bearer token carrying the same signed session value.
    """
    token = session_token or _token_from_header(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user_id = verify_session_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session"
        )
    return user_id


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        # Session outlived the account row
        logger.warning("Session references missing user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user


def require_active_access(user: User = Depends(get_current_user)) -> User:
    """Gate feature access on an active trial or paid subscription."""
    if not has_active_access(user):
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="Your trial has ended. Please subscribe to continue."
        )
    return user

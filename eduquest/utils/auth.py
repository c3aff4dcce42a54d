from datetime import datetime, timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import jwt, JWTError

from eduquest.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_session_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token carrying the user id in `sub`."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    to_encode = {
        "sub": str(user_id),
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def verify_session_token(token: str) -> Optional[int]:
    """
    Return the user id from a session token, or None when the token is
    missing, expired, tampered with or malformed.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    try:
        return int(user_id)
    except (ValueError, TypeError):
        return None

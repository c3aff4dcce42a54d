import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from eduquest.core.access import trial_end_for
from eduquest.core.config import settings
from eduquest.db.session import get_db
from eduquest.dependencies.auth import SESSION_COOKIE_NAME, get_current_user
from eduquest.models.user import User
from eduquest.schemas.auth import UserCreate, UserLogin, UserResponse
from eduquest.utils.auth import create_session_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid email or password"


def _set_session_cookie(response: Response, user_id: int) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_token(user_id),
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Create an account, start the free trial and log the user in."""
    email = user_data.email.lower().strip()
    logger.info("Registration attempt for %s", email)

    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        logger.info("Registration failed: email already exists: %s", email)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already exists"
        )

    user = User(
        email=email,
        hashed_password=hash_password(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        trial_ends_at=trial_end_for(date.today()),
        is_subscribed=False,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        logger.exception("Failed to create user %s", email)
        raise

    logger.info("User %s created, trial ends %s", user.id, user.trial_ends_at)
    _set_session_cookie(response, user.id)
    return user


@router.post("/login", response_model=UserResponse)
def login(credentials: UserLogin, response: Response, db: Session = Depends(get_db)):
    email = credentials.email.lower().strip()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Login failed for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS
        )

    _set_session_cookie(response, user.id)
    logger.info("User %s logged in", user.id)
    return user


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, samesite="lax")
    return {"message": "Logged out"}


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    return user

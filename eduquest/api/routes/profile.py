from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eduquest.db.session import get_db
from eduquest.dependencies.auth import get_current_user_id
from eduquest.schemas.profile import ProfileCreate, ProfileResponse
from eduquest.services import profile_store

router = APIRouter()


@router.post("/profile", response_model=ProfileResponse)
def create_profile(
    profile_data: ProfileCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Save a child's subjects and grade.
    Submitting the same child name again replaces that child's subjects;
    the delivery time applies to every child on the account.
    """
    return profile_store.save_child_profile(db, user_id, profile_data)


@router.get("/profile", response_model=ProfileResponse)
def read_profile(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    profile = profile_store.get_profile(db, user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile

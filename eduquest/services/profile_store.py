"""
Reads and writes a user's subject enrollments.

Enrollment rows are stored one per (child, subject), but the preferred email
time and the last-sent date belong to the user: every write here keeps those
two columns identical across all of a user's rows.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from eduquest.models.student_subject import StudentSubject, DEFAULT_EMAIL_TIME
from eduquest.models.user import User
from eduquest.schemas.profile import ChildProfile, ProfileCreate, ProfileResponse

logger = logging.getLogger(__name__)


def get_all_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def get_user_subjects(db: Session, user_id: int) -> List[StudentSubject]:
    return (
        db.query(StudentSubject)
        .filter(StudentSubject.user_id == user_id)
        .order_by(StudentSubject.id)
        .all()
    )


def last_sent_date(subjects: List[StudentSubject]) -> Optional[date]:
    """Per-user last-sent date: the most recent date on any of the rows."""
    dates = [s.last_question_date for s in subjects if s.last_question_date]
    return max(dates) if dates else None


def preferred_email_time(subjects: List[StudentSubject]) -> str:
    for s in subjects:
        if s.preferred_email_time:
            return s.preferred_email_time
    return DEFAULT_EMAIL_TIME


def build_profile(user_id: int, subjects: List[StudentSubject]) -> Optional[ProfileResponse]:
    if not subjects:
        return None

    # Group rows by child, keeping first-seen order
    children: Dict[str, ChildProfile] = {}
    for s in subjects:
        child = children.get(s.child_name)
        if child is None:
            child = ChildProfile(child_name=s.child_name, grade=s.grade, subjects=[])
            children[s.child_name] = child
        child.subjects.append(s.subject)

    return ProfileResponse(
        user_id=user_id,
        children=list(children.values()),
        preferred_email_time=preferred_email_time(subjects),
        last_question_date=last_sent_date(subjects),
    )


def get_profile(db: Session, user_id: int) -> Optional[ProfileResponse]:
    return build_profile(user_id, get_user_subjects(db, user_id))


def save_child_profile(db: Session, user_id: int, data: ProfileCreate) -> ProfileResponse:
    """
    Replace one child's enrollments with the submitted subjects and apply the
    submitted delivery time to every row the user has.
    """
    existing = get_user_subjects(db, user_id)
    shared_last_sent = last_sent_date(existing)

    try:
        for row in existing:
            if row.child_name == data.child_name:
                db.delete(row)
            else:
                row.preferred_email_time = data.preferred_email_time

        for subject in data.subjects:
            db.add(StudentSubject(
                user_id=user_id,
                child_name=data.child_name,
                subject=subject,
                grade=data.grade,
                preferred_email_time=data.preferred_email_time,
                last_question_date=shared_last_sent,
            ))

        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to save profile for user %s", user_id)
        raise

    logger.info(
        "Saved profile for user %s: child=%s subjects=%s grade=%s time=%s",
        user_id, data.child_name, ",".join(data.subjects), data.grade, data.preferred_email_time,
    )
    return get_profile(db, user_id)


def mark_sent(db: Session, user_id: int, sent_on: Optional[date]) -> int:
    """Stamp the last-sent date on all of the user's rows (None clears it). Returns rows updated."""
    updated = (
        db.query(StudentSubject)
        .filter(StudentSubject.user_id == user_id)
        .update({StudentSubject.last_question_date: sent_on}, synchronize_session="fetch")
    )
    db.commit()
    return updated

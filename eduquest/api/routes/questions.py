import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eduquest.core.config import settings
from eduquest.db.session import get_db
from eduquest.dependencies.auth import require_active_access
from eduquest.models.user import User
from eduquest.schemas.question import QuestionsResponse
from eduquest.services import profile_store
from eduquest.services.delivery_scheduler import build_daily_questions, recipient_name_for
from eduquest.services.email_dispatcher import EmailDispatcher, EmailDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_email_dispatcher() -> EmailDispatcher:
    return EmailDispatcher()


@router.get("/questions", response_model=QuestionsResponse)
def list_questions(
    send_email: bool = True,
    db: Session = Depends(get_db),
    user: User = Depends(require_active_access),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
):
    """
    Fresh questions for every enrolled subject.
    Also emails the same set to the account address unless send_email=false.
    This on-demand email does not count as the day's scheduled delivery.
    """
    subjects = profile_store.get_user_subjects(db, user.id)
    if not subjects:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )

    questions_by_subject = build_daily_questions(subjects, settings.QUESTIONS_PER_SUBJECT)

    email_sent = False
    if send_email and questions_by_subject:
        try:
            email_sent = dispatcher.send(user.email, recipient_name_for(user, subjects), questions_by_subject)
        except EmailDeliveryError as e:
            logger.error("On-demand email for user %s failed: %s", user.id, e)

    return {"questions": questions_by_subject, "email_sent": email_sent}

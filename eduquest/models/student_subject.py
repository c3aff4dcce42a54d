from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from eduquest.db.base import Base

DEFAULT_EMAIL_TIME = "09:00 AM"


class StudentSubject(Base):
    """
    One subject enrollment for one child of a user.

    preferred_email_time and last_question_date are per-user values; every row
    belonging to a user carries the same pair (see services.profile_store).
    """

    __tablename__ = "student_subjects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    child_name = Column(String, nullable=False)
    subject = Column(String, nullable=False)  # "math" or "english"
    grade = Column(Integer, nullable=False)
    last_question_date = Column(Date, nullable=True)
    preferred_email_time = Column(String, nullable=False, default=DEFAULT_EMAIL_TIME)  # "HH:MM AM/PM"

    user = relationship("User", back_populates="subjects")

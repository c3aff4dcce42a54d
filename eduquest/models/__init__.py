from eduquest.models.user import User
from eduquest.models.student_subject import StudentSubject

__all__ = [
    "User",
    "StudentSubject",
]

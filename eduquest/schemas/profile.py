from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from datetime import date

from eduquest.models.student_subject import DEFAULT_EMAIL_TIME

# 12-hour clock, e.g. "09:00 AM" or "12:30 PM"
PREFERRED_TIME_PATTERN = r"^(0[1-9]|1[0-2]):[0-5][0-9] (AM|PM)$"

Subject = Literal["math", "english"]


class ProfileCreate(BaseModel):
    child_name: str = Field(min_length=1)
    subjects: List[Subject] = Field(min_length=1)
    grade: int = Field(ge=1, le=10)
    preferred_email_time: str = Field(default=DEFAULT_EMAIL_TIME, pattern=PREFERRED_TIME_PATTERN)

    @field_validator("child_name")
    @classmethod
    def child_name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Child's name is required")
        return value

    @field_validator("subjects")
    @classmethod
    def dedupe_subjects(cls, value: List[str]) -> List[str]:
        # Keep submission order, drop repeats
        return list(dict.fromkeys(value))


class ChildProfile(BaseModel):
    child_name: str
    grade: int
    subjects: List[str]


class ProfileResponse(BaseModel):
    user_id: int
    children: List[ChildProfile]
    preferred_email_time: str
    last_question_date: Optional[date] = None

from pydantic import BaseModel
from typing import Dict, List, Optional


class Question(BaseModel):
    """Generated practice question. Never persisted."""

    subject: str
    grade: int
    question: str
    answer: str
    explanation: Optional[str] = None


class QuestionsResponse(BaseModel):
    questions: Dict[str, List[Question]]
    email_sent: bool

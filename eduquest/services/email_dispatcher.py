"""
Send daily question emails through Resend.

A provider error (bad API key, unverified sending domain, rejected recipient)
fails that send: it is logged and raised as EmailDeliveryError. There is no
retry and no fallback queue.
"""
import logging
from html import escape
from typing import Dict, List, Optional

import resend

from eduquest.core.config import settings
from eduquest.schemas.question import Question

logger = logging.getLogger(__name__)

EMAIL_SUBJECT = "Your Daily Learning Questions"


class EmailDeliveryError(Exception):
    """The email provider did not accept the message."""


def _format_questions_html(questions: List[Question]) -> str:
    blocks = []
    for index, q in enumerate(questions, start=1):
        block = (
            '<div style="margin-bottom: 20px; padding: 10px; border: 1px solid #eee; border-radius: 5px;">'
            f"<p><strong>Question {index}:</strong> {escape(q.question)}</p>"
            f"<p><strong>Answer:</strong> {escape(q.answer)}</p>"
        )
        if q.explanation:
            block += f"<p><strong>Explanation:</strong> {escape(q.explanation)}</p>"
        block += "</div>"
        blocks.append(block)
    return "\n".join(blocks)


def build_questions_html(recipient_name: str, questions_by_subject: Dict[str, List[Question]]) -> str:
    """Render the email body: a greeting, then one section per subject."""
    parts = [
        "<html>",
        '<body style="font-family: Arial, sans-serif; line-height: 1.6;">',
        f"<h2>Hello {escape(recipient_name)}!</h2>",
        "<p>Here are your daily learning questions:</p>",
    ]
    for subject, questions in questions_by_subject.items():
        parts.append(f'<h3 style="color: #2563eb; margin-top: 20px;">{escape(subject.upper())}</h3>')
        parts.append(_format_questions_html(questions))
    parts.append('<p style="margin-top: 20px;">Good luck with your learning journey!</p>')
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts)


class EmailDispatcher:
    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.from_email = from_email or settings.EMAIL_FROM

    def send(self, to_address: str, recipient_name: str, questions_by_subject: Dict[str, List[Question]]) -> bool:
        if not self.api_key:
            raise EmailDeliveryError("Email service not configured: RESEND_API_KEY is empty")

        html = build_questions_html(recipient_name, questions_by_subject)
        total = sum(len(qs) for qs in questions_by_subject.values())
        logger.info(
            "Sending %s questions across %s subject(s) to %s (%s bytes)",
            total, len(questions_by_subject), to_address, len(html),
        )

        params = {
            "from": self.from_email,
            "to": [to_address],
            "subject": EMAIL_SUBJECT,
            "html": html,
        }
        try:
            resend.api_key = self.api_key
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", to_address, e)
            raise EmailDeliveryError(str(e)) from e

        email_id = response.get("id") if isinstance(response, dict) else None
        logger.info("Email sent to %s (id=%s)", to_address, email_id)
        return True

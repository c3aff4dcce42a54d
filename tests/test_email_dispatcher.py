import pytest
import resend

from eduquest.schemas.question import Question
from eduquest.services.email_dispatcher import (
    EMAIL_SUBJECT,
    EmailDeliveryError,
    EmailDispatcher,
    build_questions_html,
)


def sample_questions():
    return {
        "math": [
            Question(subject="math", grade=1, question="What is 5 + 3?", answer="8",
                     explanation="Adding 5 and 3 gives us 8"),
            Question(subject="math", grade=1, question="What is 10 - 4?", answer="6"),
        ],
        "english": [
            Question(subject="english", grade=1, question="What is the plural of 'box'?", answer="boxes"),
        ],
    }


def test_html_groups_questions_by_subject():
    html = build_questions_html("Ava", sample_questions())

    assert "Hello Ava!" in html
    assert "MATH" in html and "ENGLISH" in html
    assert html.index("MATH") < html.index("ENGLISH")
    assert "Question 1:</strong> What is 5 + 3?" in html
    assert "Question 2:</strong> What is 10 - 4?" in html
    assert "Explanation:</strong> Adding 5 and 3 gives us 8" in html
    # Questions without an explanation get no explanation line
    assert html.count("Explanation:") == 1


def test_html_escapes_user_text():
    html = build_questions_html("<script>alert(1)</script>", {})

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_send_calls_resend(monkeypatch):
    calls = []

    def fake_send(params):
        calls.append(params)
        return {"id": "email_123"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    dispatcher = EmailDispatcher(api_key="re_key", from_email="EduQuest <edu@eduquest.com>")

    assert dispatcher.send("parent@example.com", "Ava", sample_questions()) is True

    assert len(calls) == 1
    params = calls[0]
    assert params["to"] == ["parent@example.com"]
    assert params["from"] == "EduQuest <edu@eduquest.com>"
    assert params["subject"] == EMAIL_SUBJECT
    assert "Hello Ava!" in params["html"]


def test_provider_error_is_raised(monkeypatch):
    def failing_send(params):
        raise RuntimeError("The eduquest.com domain is not verified")

    monkeypatch.setattr(resend.Emails, "send", failing_send)
    dispatcher = EmailDispatcher(api_key="re_key")

    with pytest.raises(EmailDeliveryError, match="not verified"):
        dispatcher.send("parent@example.com", "Ava", sample_questions())


def test_missing_api_key_is_an_error():
    dispatcher = EmailDispatcher(api_key="")

    with pytest.raises(EmailDeliveryError):
        dispatcher.send("parent@example.com", "Ava", sample_questions())

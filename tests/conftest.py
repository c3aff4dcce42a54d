import os

# Settings are read at import time; set them before anything imports eduquest
os.environ["DATABASE_URL"] = "sqlite:///./eduquest-test.db"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_PRICE_ID"] = "price_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["RESEND_API_KEY"] = "re_test_dummy"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["TRIAL_DAYS"] = "7"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eduquest.api.routes import questions
from eduquest.db.base import Base
from eduquest.db.session import get_db
from eduquest.main import app
from eduquest.models.student_subject import StudentSubject
from eduquest.models.user import User
from eduquest.services.email_dispatcher import EmailDeliveryError
from eduquest.utils.auth import hash_password

TEST_PASSWORD = "secret123"


class FakeDispatcher:
    """Records sends instead of calling the email provider."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to_address, recipient_name, questions_by_subject):
        if to_address in self.fail_for:
            raise EmailDeliveryError(f"Domain not verified for {to_address}")
        self.sent.append((to_address, recipient_name, questions_by_subject))
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def client(session_factory, dispatcher):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[questions.get_email_dispatcher] = lambda: dispatcher
    # Not used as a context manager: startup (migrations, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email="parent@example.com", first_name="Pat", last_name="Parent",
                   trial_ends_at=None, is_subscribed=False, **extra):
        user = User(
            email=email,
            hashed_password=hash_password(TEST_PASSWORD),
            first_name=first_name,
            last_name=last_name,
            trial_ends_at=trial_ends_at if trial_ends_at is not None else date.today() + timedelta(days=7),
            is_subscribed=is_subscribed,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def enroll(db):
    def _enroll(user, subjects=("math",), child_name="Ava", grade=3,
                preferred_email_time="09:00 AM", last_question_date=None):
        rows = []
        for subject in subjects:
            row = StudentSubject(
                user_id=user.id,
                child_name=child_name,
                subject=subject,
                grade=grade,
                preferred_email_time=preferred_email_time,
                last_question_date=last_question_date,
            )
            db.add(row)
            rows.append(row)
        db.commit()
        return rows

    return _enroll


@pytest.fixture
def registered_client(client):
    """Client holding a session cookie for a freshly registered user."""
    response = client.post("/api/register", json={
        "email": "parent@example.com",
        "password": TEST_PASSWORD,
        "first_name": "Pat",
        "last_name": "Parent",
    })
    assert response.status_code == 201
    return client

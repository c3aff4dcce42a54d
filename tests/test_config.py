from datetime import date
from types import SimpleNamespace

import pytest

from eduquest.core.access import has_active_access, is_trial_active, trial_end_for
from eduquest.core.config import REQUIRED_SETTINGS, Settings


def test_missing_required_settings_are_fatal(monkeypatch):
    for name in REQUIRED_SETTINGS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/eduquest")

    settings = Settings()

    assert settings.missing_required() == [
        "SESSION_SECRET", "STRIPE_SECRET_KEY", "STRIPE_PRICE_ID", "RESEND_API_KEY",
    ]
    with pytest.raises(RuntimeError, match="SESSION_SECRET"):
        settings.validate()


def test_complete_settings_validate(monkeypatch):
    for name in REQUIRED_SETTINGS:
        monkeypatch.setenv(name, f"value-for-{name.lower()}")

    Settings().validate()


def test_postgres_scheme_normalized(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@host/db")

    assert Settings().DATABASE_URL == "postgresql://u:p@host/db"


def test_delivery_window_defaults_to_interval(monkeypatch):
    monkeypatch.setenv("SCHEDULER_INTERVAL_MINUTES", "10")
    monkeypatch.delenv("DELIVERY_WINDOW_MINUTES", raising=False)

    settings = Settings()

    assert settings.SCHEDULER_INTERVAL_MINUTES == 10
    assert settings.DELIVERY_WINDOW_MINUTES == 10


def test_bad_integer_setting(monkeypatch):
    monkeypatch.setenv("TRIAL_DAYS", "a week")

    with pytest.raises(RuntimeError, match="TRIAL_DAYS"):
        Settings()


def test_trial_and_subscription_access():
    today = date(2026, 10, 19)
    in_trial = SimpleNamespace(is_subscribed=False, trial_ends_at=date(2026, 10, 19))
    expired = SimpleNamespace(is_subscribed=False, trial_ends_at=date(2026, 10, 18))
    paid = SimpleNamespace(is_subscribed=True, trial_ends_at=date(2026, 10, 1))
    no_trial = SimpleNamespace(is_subscribed=False, trial_ends_at=None)

    assert is_trial_active(in_trial, today)
    assert has_active_access(in_trial, today)
    assert not has_active_access(expired, today)
    assert has_active_access(paid, today)
    assert not has_active_access(no_trial, today)


def test_trial_end_for():
    assert trial_end_for(date(2026, 10, 19)) == date(2026, 10, 26)

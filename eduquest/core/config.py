"""
Environment-driven settings.
Values are read once at import time (after load_dotenv) and exposed on `settings`.
"""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Variables the service refuses to start without
REQUIRED_SETTINGS = (
    "DATABASE_URL",
    "SESSION_SECRET",
    "STRIPE_SECRET_KEY",
    "STRIPE_PRICE_ID",
    "RESEND_API_KEY",
)


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


class Settings:
    def __init__(self):
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
        # Normalize postgres:// -> postgresql:// for SQLAlchemy
        if self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = "postgresql://" + self.DATABASE_URL[10:]

        self.SESSION_SECRET = os.getenv("SESSION_SECRET", "").strip()
        self.STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
        self.STRIPE_PRICE_ID = os.getenv("STRIPE_PRICE_ID", "").strip()
        self.STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
        self.RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
        self.EMAIL_FROM = os.getenv("EMAIL_FROM", "EduQuest Learning <edu@eduquest.com>")

        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
        self.CORS_ORIGINS = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS", "http://localhost:5000,http://localhost:5173"
            ).split(",")
            if origin.strip()
        ]

        self.TRIAL_DAYS = _get_int("TRIAL_DAYS", 7)
        self.SESSION_MAX_AGE_DAYS = _get_int("SESSION_MAX_AGE_DAYS", 30)

        self.SCHEDULER_ENABLED = _get_bool("SCHEDULER_ENABLED", True)
        self.SCHEDULER_INTERVAL_MINUTES = _get_int("SCHEDULER_INTERVAL_MINUTES", 5)
        # Defaults to the scan interval so every preferred time falls inside one tick's window
        self.DELIVERY_WINDOW_MINUTES = _get_int(
            "DELIVERY_WINDOW_MINUTES", self.SCHEDULER_INTERVAL_MINUTES
        )
        self.QUESTIONS_PER_SUBJECT = _get_int("QUESTIONS_PER_SUBJECT", 20)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def missing_required(self) -> List[str]:
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name)]

    def validate(self) -> None:
        """Raise if any required variable is unset. Called on startup."""
        missing = self.missing_required()
        if missing:
            raise RuntimeError(
                "Missing required environment variables: " + ", ".join(missing)
            )


settings = Settings()

from datetime import date, timedelta
from typing import Optional

from eduquest.core.config import settings


def trial_end_for(signup_day: date) -> date:
    """Last day of the free trial for an account created on `signup_day`."""
    return signup_day + timedelta(days=settings.TRIAL_DAYS)


def is_trial_active(user, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return user.trial_ends_at is not None and user.trial_ends_at >= today


def has_active_access(user, today: Optional[date] = None) -> bool:
    """Question access: paid subscription or a trial that has not ended."""
    if user.is_subscribed:
        return True
    return is_trial_active(user, today)

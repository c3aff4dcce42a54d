from pydantic import BaseModel
from typing import Optional
from datetime import date


class SubscriptionResponse(BaseModel):
    subscription_id: str
    client_secret: Optional[str] = None  # Used by the frontend to confirm the first payment


class SubscriptionStatusResponse(BaseModel):
    is_subscribed: bool
    trial_ends_at: Optional[date] = None
    trial_active: bool
    has_access: bool
    stripe_subscription_id: Optional[str] = None

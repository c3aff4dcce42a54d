"""
Stripe subscription routes.
The subscription is created incomplete; the frontend confirms the first
payment with the returned client secret and the webhook flips is_subscribed.
"""
import logging
from datetime import date
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eduquest.core.access import has_active_access, is_trial_active
from eduquest.core.config import settings
from eduquest.db.session import get_db
from eduquest.dependencies.auth import get_current_user
from eduquest.models.user import User
from eduquest.schemas.billing import SubscriptionResponse, SubscriptionStatusResponse
from eduquest.utils.stripe_objects import stripe_field

logger = logging.getLogger(__name__)

router = APIRouter()

# Initialize Stripe
stripe.api_key = settings.STRIPE_SECRET_KEY
# Pinned so latest_invoice.payment_intent stays expandable
stripe.api_version = "2023-10-16"

PAYMENT_PROVIDER_ERROR = "Payment provider error"


def _client_secret(subscription) -> Optional[str]:
    # Expanded latest_invoice.payment_intent; either may come back as a bare id
    invoice = stripe_field(subscription, "latest_invoice")
    payment_intent = stripe_field(invoice, "payment_intent")
    return stripe_field(payment_intent, "client_secret")


def _require_stripe() -> None:
    if not settings.STRIPE_SECRET_KEY or not settings.STRIPE_PRICE_ID:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Subscription service temporarily unavailable"
        )


@router.post("/get-or-create-subscription", response_model=SubscriptionResponse)
def get_or_create_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _require_stripe()

    try:
        if user.stripe_subscription_id:
            subscription = stripe.Subscription.retrieve(
                user.stripe_subscription_id,
                expand=["latest_invoice.payment_intent"],
            )
            return {
                "subscription_id": subscription["id"],
                "client_secret": _client_secret(subscription),
            }

        customer_id = user.stripe_customer_id
        if not customer_id:
            customer = stripe.Customer.create(
                name=f"{user.first_name} {user.last_name}",
                email=user.email,
                metadata={"user_id": str(user.id)},
            )
            customer_id = customer["id"]
            # Keep the customer even if the subscription call below fails
            user.stripe_customer_id = customer_id
            db.commit()
            logger.info("Created Stripe customer %s for user %s", customer_id, user.id)

        subscription = stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": settings.STRIPE_PRICE_ID}],
            payment_behavior="default_incomplete",
            expand=["latest_invoice.payment_intent"],
            metadata={"user_id": str(user.id)},
        )
    except stripe.StripeError as e:
        logger.error("Stripe error creating subscription for user %s: %s", user.id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=PAYMENT_PROVIDER_ERROR
        )

    user.stripe_customer_id = customer_id
    user.stripe_subscription_id = subscription["id"]
    db.commit()
    logger.info("Created subscription %s for user %s", subscription["id"], user.id)

    return {
        "subscription_id": subscription["id"],
        "client_secret": _client_secret(subscription),
    }


@router.post("/cancel-subscription", response_model=SubscriptionStatusResponse)
def cancel_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _require_stripe()

    if not user.stripe_subscription_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active subscription"
        )

    try:
        stripe.Subscription.cancel(user.stripe_subscription_id)
    except stripe.StripeError as e:
        logger.error("Stripe error cancelling subscription %s: %s", user.stripe_subscription_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=PAYMENT_PROVIDER_ERROR
        )

    logger.info("Cancelled subscription %s for user %s", user.stripe_subscription_id, user.id)
    user.is_subscribed = False
    user.stripe_subscription_id = None
    db.commit()
    db.refresh(user)
    return _status_for(user)


@router.get("/subscription-status", response_model=SubscriptionStatusResponse)
def subscription_status(user: User = Depends(get_current_user)):
    return _status_for(user)


def _status_for(user: User) -> dict:
    today = date.today()
    return {
        "is_subscribed": bool(user.is_subscribed),
        "trial_ends_at": user.trial_ends_at,
        "trial_active": is_trial_active(user, today),
        "has_access": has_active_access(user, today),
        "stripe_subscription_id": user.stripe_subscription_id,
    }

"""
Stripe webhook receiver.
Register https://your-backend.com/api/stripe-webhook in the Stripe dashboard
for invoice.payment_succeeded and customer.subscription.deleted.
"""
import logging
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from eduquest.core.config import settings
from eduquest.db.session import get_db
from eduquest.models.user import User
from eduquest.utils.stripe_objects import stripe_field

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_for_customer(db: Session, customer_id: Optional[str]) -> Optional[User]:
    if not customer_id:
        return None
    return db.query(User).filter(User.stripe_customer_id == customer_id).first()


@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook not configured"
        )

    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    except stripe.SignatureVerificationError:
        logger.warning("Stripe webhook signature verification failed")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    event_type = event["type"]
    obj = event["data"]["object"]
    logger.info("Stripe webhook: type=%s id=%s", event_type, stripe_field(event, "id"))

    if event_type == "invoice.payment_succeeded":
        _handle_payment_succeeded(db, obj)
    elif event_type == "customer.subscription.deleted":
        _handle_subscription_deleted(db, obj)

    return {"received": True}


def _handle_payment_succeeded(db: Session, invoice) -> None:
    """A paid invoice activates (or keeps active) the customer's subscription."""
    user = _user_for_customer(db, stripe_field(invoice, "customer"))
    if not user:
        logger.warning("payment_succeeded for unknown customer %s", stripe_field(invoice, "customer"))
        return

    subscription_id = stripe_field(invoice, "subscription")
    if not subscription_id:
        # Newer API versions nest it under parent.subscription_details
        details = stripe_field(stripe_field(invoice, "parent"), "subscription_details")
        subscription_id = stripe_field(details, "subscription")
    if subscription_id:
        user.stripe_subscription_id = subscription_id
    user.is_subscribed = True
    db.commit()
    logger.info("User %s marked subscribed (subscription %s)", user.id, user.stripe_subscription_id)


def _handle_subscription_deleted(db: Session, subscription) -> None:
    user = _user_for_customer(db, stripe_field(subscription, "customer"))
    if not user:
        logger.warning("subscription.deleted for unknown customer %s", stripe_field(subscription, "customer"))
        return

    # Ignore deletions of an older subscription the user has already replaced
    if user.stripe_subscription_id and user.stripe_subscription_id != stripe_field(subscription, "id"):
        logger.info(
            "Ignoring deletion of subscription %s; user %s is on %s",
            stripe_field(subscription, "id"), user.id, user.stripe_subscription_id,
        )
        return

    user.is_subscribed = False
    user.stripe_subscription_id = None
    db.commit()
    logger.info("User %s marked unsubscribed", user.id)

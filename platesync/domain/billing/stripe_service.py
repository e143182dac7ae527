"""Stripe service - Integration with the Stripe API"""

import logging
from datetime import datetime, timezone
from typing import Optional

import stripe

from ...config import STRIPE_ANNUAL_PRICE_ID, STRIPE_MONTHLY_PRICE_ID, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from ...models import SubscriptionPlan, SubscriptionStatus

logger = logging.getLogger(__name__)

STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "unpaid": SubscriptionStatus.EXPIRED,
    "incomplete_expired": SubscriptionStatus.EXPIRED,
}


def _as_dict(stripe_object) -> dict:
    """Plain dict view of a Stripe API object"""
    if isinstance(stripe_object, dict):
        return stripe_object
    return stripe_object.to_dict()


def _from_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def map_stripe_subscription(stripe_subscription) -> dict:
    """Translate a Stripe subscription object into local subscription fields"""
    items = (stripe_subscription.get("items") or {}).get("data") or []
    price_ids = [((item.get("price") or {}).get("id")) for item in items]

    plan = SubscriptionPlan.MONTHLY
    if STRIPE_ANNUAL_PRICE_ID and STRIPE_ANNUAL_PRICE_ID in price_ids:
        plan = SubscriptionPlan.ANNUAL

    # Newer API versions report the period end on the subscription item
    period_end = stripe_subscription.get("current_period_end")
    if not period_end and items:
        period_end = items[0].get("current_period_end")

    return {
        "status": STRIPE_STATUS_MAP.get(stripe_subscription.get("status"), SubscriptionStatus.EXPIRED),
        "plan": plan,
        "end_date": _from_timestamp(period_end),
        "canceled_at": _from_timestamp(stripe_subscription.get("canceled_at")),
        "stripe_subscription_id": stripe_subscription.get("id"),
        "stripe_customer_id": stripe_subscription.get("customer"),
    }


class StripeService:
    """Service for Stripe API operations"""

    def __init__(self):
        self.api_key = STRIPE_SECRET_KEY
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; billing endpoints will fail until configured")
        else:
            stripe.api_key = self.api_key

    def is_available(self) -> bool:
        return bool(self.api_key)

    def price_id_for(self, plan: str) -> Optional[str]:
        return STRIPE_ANNUAL_PRICE_ID if plan == SubscriptionPlan.ANNUAL else STRIPE_MONTHLY_PRICE_ID

    def create_checkout_session(
        self,
        plan: str,
        church_id: str,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
    ) -> dict:
        price_id = self.price_id_for(plan)
        if not price_id:
            raise ValueError(f"No Stripe price configured for plan {plan}")

        params = {
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": church_id,
            "metadata": {"church_id": church_id, "plan": plan},
            "subscription_data": {"metadata": {"church_id": church_id, "plan": plan}},
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = customer_email

        session = _as_dict(stripe.checkout.Session.create(**params))
        return {"id": session.get("id"), "url": session.get("url")}

    def retrieve_subscription(self, stripe_subscription_id: str) -> Optional[dict]:
        """Return mapped subscription fields, or None when Stripe no longer knows it"""
        try:
            subscription = stripe.Subscription.retrieve(stripe_subscription_id)
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing":
                logger.warning(f"⚠️ Subscription not found in Stripe: {stripe_subscription_id}")
                return None
            raise
        return map_stripe_subscription(_as_dict(subscription))

    def cancel_at_period_end(self, stripe_subscription_id: str) -> dict:
        subscription = stripe.Subscription.modify(stripe_subscription_id, cancel_at_period_end=True)
        return map_stripe_subscription(_as_dict(subscription))

    def construct_event(self, payload: bytes, signature: Optional[str]):
        if not STRIPE_WEBHOOK_SECRET:
            raise ValueError("STRIPE_WEBHOOK_SECRET not configured")
        return _as_dict(stripe.Webhook.construct_event(payload, signature, STRIPE_WEBHOOK_SECRET))


stripe_service = StripeService()

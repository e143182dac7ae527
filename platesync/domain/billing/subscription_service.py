"""Subscription service - trials, Stripe checkout and webhook reconciliation"""

import logging
import math
from datetime import timedelta
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, TRIAL_PERIOD_DAYS
from ...models import Subscription, SubscriptionPlan, SubscriptionStatus, User, utcnow
from .repository import BillingRepository
from .schemas import CheckoutRequest
from .stripe_service import map_stripe_subscription, stripe_service

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for subscription business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()

    # ========================================================================
    # TRIALS & STATUS
    # ========================================================================

    def start_trial(self, church_id: str, commit: bool = True) -> Subscription:
        """Create a trial subscription, or return the existing one"""
        existing = self.repo.get_subscription(self.db, church_id)
        if existing:
            return existing

        now = utcnow()
        subscription = self.repo.create_subscription(
            self.db,
            church_id,
            commit=commit,
            plan=SubscriptionPlan.TRIAL,
            status=SubscriptionStatus.TRIAL,
            trial_start_date=now,
            trial_end_date=now + timedelta(days=TRIAL_PERIOD_DAYS),
        )
        logger.info(f"✅ Started {TRIAL_PERIOD_DAYS}-day trial for church {church_id}")
        return subscription

    def _expire_if_needed(self, subscription: Subscription) -> Subscription:
        if (
            subscription.status == SubscriptionStatus.TRIAL
            and subscription.trial_end_date
            and subscription.trial_end_date < utcnow()
        ):
            logger.info(f"⏰ Trial expired for church {subscription.church_id}")
            return self.repo.update_subscription(
                self.db, subscription, status=SubscriptionStatus.EXPIRED
            )
        return subscription

    def get_status(self, church_id: str) -> dict:
        subscription = self.repo.get_subscription(self.db, church_id)
        if not subscription:
            return {
                "plan": SubscriptionPlan.NONE,
                "status": SubscriptionStatus.EXPIRED,
                "isActive": False,
                "isTrialExpired": False,
                "trialDaysRemaining": 0,
            }

        subscription = self._expire_if_needed(subscription)

        days_remaining = 0
        if subscription.status == SubscriptionStatus.TRIAL and subscription.trial_end_date:
            seconds_left = (subscription.trial_end_date - utcnow()).total_seconds()
            days_remaining = max(0, math.ceil(seconds_left / 86400))

        is_trial_expired = (
            subscription.plan == SubscriptionPlan.TRIAL
            and subscription.status == SubscriptionStatus.EXPIRED
        )

        return {
            "plan": subscription.plan,
            "status": subscription.status,
            "isActive": subscription.status in (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE),
            "isTrialExpired": is_trial_expired,
            "trialDaysRemaining": days_remaining,
            "trialStartDate": subscription.trial_start_date,
            "trialEndDate": subscription.trial_end_date,
            "startDate": subscription.start_date,
            "endDate": subscription.end_date,
            "canceledAt": subscription.canceled_at,
            "hasStripeSubscription": bool(subscription.stripe_subscription_id),
        }

    # ========================================================================
    # STRIPE CHECKOUT & CANCELLATION
    # ========================================================================

    def create_checkout_session(self, request: CheckoutRequest, user: User) -> dict:
        if not stripe_service.is_available():
            raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")

        subscription = self.repo.get_subscription(self.db, user.church_id)
        success_url = f"{FRONTEND_URL}{request.returnPath or '/subscription?checkout=success'}"
        cancel_url = f"{FRONTEND_URL}/subscription?checkout=cancel"

        try:
            session = stripe_service.create_checkout_session(
                plan=request.plan,
                church_id=user.church_id,
                customer_email=user.email,
                success_url=success_url,
                cancel_url=cancel_url,
                customer_id=subscription.stripe_customer_id if subscription else None,
            )
        except ValueError as e:
            logger.error(f"❌ Checkout misconfigured: {e}")
            raise HTTPException(status_code=503, detail="Billing plan not configured")
        except stripe.StripeError as e:
            logger.error(f"❌ Failed to create checkout session for church {user.church_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to create checkout session")

        logger.info(f"✅ Created checkout session for church {user.church_id}: {session['id']}")
        return {"url": session["url"], "sessionId": session["id"]}

    def cancel(self, user: User) -> dict:
        subscription = self.repo.get_subscription(self.db, user.church_id)
        if not subscription or not subscription.stripe_subscription_id:
            raise HTTPException(status_code=400, detail="No active subscription found")

        if not stripe_service.is_available():
            raise HTTPException(status_code=503, detail="Billing service temporarily unavailable")

        try:
            fields = stripe_service.cancel_at_period_end(subscription.stripe_subscription_id)
        except stripe.StripeError as e:
            logger.error(f"❌ Failed to cancel subscription for church {user.church_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to cancel subscription")

        self.repo.update_subscription(
            self.db, subscription, end_date=fields["end_date"], canceled_at=utcnow()
        )
        logger.info(f"✅ Subscription for church {user.church_id} will cancel at period end")
        return {
            "message": "Subscription will be canceled at the end of the billing period",
            "endDate": subscription.end_date,
        }

    # ========================================================================
    # WEBHOOKS & SYNC
    # ========================================================================

    def _apply_stripe_fields(self, subscription: Subscription, fields: dict) -> Subscription:
        updates = {k: v for k, v in fields.items() if v is not None or k == "canceled_at"}
        if fields["status"] == SubscriptionStatus.ACTIVE and not subscription.start_date:
            updates["start_date"] = utcnow()
        return self.repo.update_subscription(self.db, subscription, **updates)

    def _find_for_event(self, stripe_subscription) -> Optional[Subscription]:
        subscription = self.repo.get_by_stripe_subscription_id(self.db, stripe_subscription.get("id"))
        if subscription:
            return subscription
        church_id = (stripe_subscription.get("metadata") or {}).get("church_id")
        if church_id:
            return self.repo.get_subscription(self.db, church_id)
        return None

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> dict:
        try:
            event = stripe_service.construct_event(payload, signature)
        except ValueError as e:
            logger.error(f"❌ Invalid Stripe webhook payload: {e}")
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            logger.warning("⚠️ Stripe webhook signature verification failed")
            raise HTTPException(status_code=400, detail="Invalid signature")

        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info(f"📥 Stripe webhook received: {event_type}")

        if event_type == "checkout.session.completed":
            church_id = (obj.get("metadata") or {}).get("church_id") or obj.get("client_reference_id")
            if not church_id:
                logger.warning("⚠️ Checkout session without church_id metadata")
                return {"received": True}

            subscription = self.repo.get_subscription(self.db, church_id) or self.start_trial(church_id)
            stripe_subscription_id = obj.get("subscription")
            fields = None
            if stripe_subscription_id:
                fields = stripe_service.retrieve_subscription(stripe_subscription_id)
            if fields is None:
                plan = (obj.get("metadata") or {}).get("plan") or SubscriptionPlan.MONTHLY
                fields = {
                    "status": SubscriptionStatus.ACTIVE,
                    "plan": plan,
                    "stripe_subscription_id": stripe_subscription_id,
                    "stripe_customer_id": obj.get("customer"),
                    "end_date": None,
                    "canceled_at": None,
                }
            self._apply_stripe_fields(subscription, fields)
            logger.info(f"✅ Activated {fields['plan']} subscription for church {church_id}")

        elif event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
            subscription = self._find_for_event(obj)
            if not subscription:
                logger.warning(f"⚠️ No local subscription for Stripe subscription {obj.get('id')}")
                return {"received": True}

            fields = map_stripe_subscription(obj)
            if event_type == "customer.subscription.deleted":
                fields["status"] = SubscriptionStatus.CANCELED
                fields["canceled_at"] = fields["canceled_at"] or utcnow()
            self._apply_stripe_fields(subscription, fields)
            logger.info(f"✅ Subscription for church {subscription.church_id} is now {fields['status']}")

        return {"received": True}

    def sync_all_from_stripe(self) -> dict:
        """Reconcile every Stripe-linked subscription with Stripe"""
        if not stripe_service.is_available():
            logger.warning("⚠️ Stripe not configured, skipping subscription sync")
            return {"synced": 0, "failed": 0}

        synced = failed = 0
        for subscription in self.repo.get_linked_subscriptions(self.db):
            try:
                fields = stripe_service.retrieve_subscription(subscription.stripe_subscription_id)
            except stripe.StripeError as e:
                logger.error(f"❌ Failed to sync subscription {subscription.stripe_subscription_id}: {e}")
                failed += 1
                continue

            if fields is None:
                fields = {"status": SubscriptionStatus.CANCELED, "canceled_at": utcnow()}
                self.repo.update_subscription(self.db, subscription, **fields)
            else:
                self._apply_stripe_fields(subscription, fields)
            synced += 1

        logger.info(f"📊 Stripe sync complete: {synced} synced, {failed} failed")
        return {"synced": synced, "failed": failed}

    def expire_trials(self) -> int:
        expired = self.repo.get_expired_trials(self.db, utcnow())
        for subscription in expired:
            subscription.status = SubscriptionStatus.EXPIRED
        self.db.commit()
        if expired:
            logger.info(f"⏰ Expired {len(expired)} trial subscription(s)")
        return len(expired)

"""Billing repository - Database operations for subscriptions"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Subscription, SubscriptionStatus


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def get_subscription(db: Session, church_id: str) -> Optional[Subscription]:
        return db.query(Subscription).filter(Subscription.church_id == church_id).first()

    @staticmethod
    def get_by_stripe_subscription_id(db: Session, stripe_subscription_id: str) -> Optional[Subscription]:
        return (
            db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
            .first()
        )

    @staticmethod
    def get_linked_subscriptions(db: Session) -> list[Subscription]:
        """Subscriptions that carry a Stripe subscription id"""
        return db.query(Subscription).filter(Subscription.stripe_subscription_id.isnot(None)).all()

    @staticmethod
    def get_expired_trials(db: Session, now: datetime) -> list[Subscription]:
        return (
            db.query(Subscription)
            .filter(
                Subscription.status == SubscriptionStatus.TRIAL,
                Subscription.trial_end_date.isnot(None),
                Subscription.trial_end_date < now,
            )
            .all()
        )

    @staticmethod
    def create_subscription(db: Session, church_id: str, commit: bool = True, **data) -> Subscription:
        subscription = Subscription(church_id=church_id, **data)
        db.add(subscription)
        if commit:
            db.commit()
            db.refresh(subscription)
        else:
            db.flush()
        return subscription

    @staticmethod
    def update_subscription(db: Session, subscription: Subscription, **updates) -> Subscription:
        for key, value in updates.items():
            if hasattr(subscription, key):
                setattr(subscription, key, value)
        db.commit()
        db.refresh(subscription)
        return subscription

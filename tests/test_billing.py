from datetime import timedelta

import pytest

from platesync.domain.billing import stripe_service as stripe_module
from platesync.domain.billing.stripe_service import map_stripe_subscription, stripe_service
from platesync.domain.billing.subscription_service import SubscriptionService
from platesync.models import Subscription, SubscriptionPlan, SubscriptionStatus, utcnow


def _subscription(db, church_id):
    return db.query(Subscription).filter(Subscription.church_id == church_id).one()


class TestSubscriptionStatus:
    def test_new_church_is_on_trial(self, client, seed):
        status = client.get("/api/subscription/status", headers=seed.usher_headers).json()
        assert status["plan"] == SubscriptionPlan.TRIAL
        assert status["status"] == SubscriptionStatus.TRIAL
        assert status["isActive"] is True
        assert status["trialDaysRemaining"] == 30
        assert status["hasStripeSubscription"] is False

    def test_lapsed_trial_expires_on_read(self, client, db, seed):
        subscription = _subscription(db, seed.church.id)
        subscription.trial_end_date = utcnow() - timedelta(days=1)
        db.commit()

        status = client.get("/api/subscription/status", headers=seed.usher_headers).json()
        assert status["status"] == SubscriptionStatus.EXPIRED
        assert status["isTrialExpired"] is True
        assert status["isActive"] is False
        assert status["trialDaysRemaining"] == 0

    def test_church_without_subscription(self, db, seed):
        db.delete(_subscription(db, seed.church.id))
        db.commit()

        status = SubscriptionService(db).get_status(seed.church.id)
        assert status["plan"] == SubscriptionPlan.NONE
        assert status["isActive"] is False

    def test_start_trial_is_idempotent(self, client, db, seed):
        before = _subscription(db, seed.church.id).trial_end_date
        response = client.post("/api/subscription/start-trial", headers=seed.admin_headers)
        assert response.status_code == 200
        assert _subscription(db, seed.church.id).trial_end_date == before

    def test_expire_trials_job(self, db, seed):
        subscription = _subscription(db, seed.church.id)
        subscription.trial_end_date = utcnow() - timedelta(hours=1)
        db.commit()

        assert SubscriptionService(db).expire_trials() == 1
        assert _subscription(db, seed.church.id).status == SubscriptionStatus.EXPIRED


class TestCheckout:
    def test_checkout_unavailable_without_stripe(self, client, seed):
        response = client.post(
            "/api/subscription/create-checkout-session", json={"plan": "monthly"}, headers=seed.owner_headers
        )
        assert response.status_code == 503

    def test_only_owner_can_checkout(self, client, seed):
        response = client.post(
            "/api/subscription/create-checkout-session", json={"plan": "MONTHLY"}, headers=seed.admin_headers
        )
        assert response.status_code == 403

    def test_checkout_session_url(self, client, seed, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

        monkeypatch.setattr(stripe_service, "is_available", lambda: True)
        monkeypatch.setattr(stripe_service, "create_checkout_session", fake_create)

        response = client.post(
            "/api/subscription/create-checkout-session", json={"plan": "annual"}, headers=seed.owner_headers
        )
        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.test/cs_test_1", "sessionId": "cs_test_1"}
        assert calls[0]["plan"] == SubscriptionPlan.ANNUAL
        assert calls[0]["church_id"] == seed.church.id

    def test_cancel_without_stripe_subscription(self, client, seed):
        assert client.post("/api/subscription/cancel", headers=seed.owner_headers).status_code == 400


class TestWebhooks:
    def _send(self, client, monkeypatch, event):
        monkeypatch.setattr(stripe_service, "construct_event", lambda payload, signature: event)
        return client.post("/api/subscription/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})

    def test_unverifiable_webhook_is_rejected(self, client, seed):
        response = client.post("/api/subscription/webhook", content=b"{}", headers={"stripe-signature": "bad"})
        assert response.status_code == 400

    def test_checkout_completed_activates_subscription(self, client, db, seed, monkeypatch):
        event = {
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "metadata": {"church_id": seed.church.id, "plan": "ANNUAL"},
                    "subscription": None,
                    "customer": "cus_123",
                }
            },
        }
        assert self._send(client, monkeypatch, event).json() == {"received": True}

        subscription = _subscription(db, seed.church.id)
        db.refresh(subscription)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.plan == SubscriptionPlan.ANNUAL
        assert subscription.stripe_customer_id == "cus_123"
        assert subscription.start_date is not None

    @pytest.mark.parametrize(
        "event_type, stripe_status, expected",
        [
            ("customer.subscription.updated", "past_due", SubscriptionStatus.PAST_DUE),
            ("customer.subscription.updated", "active", SubscriptionStatus.ACTIVE),
            ("customer.subscription.deleted", "canceled", SubscriptionStatus.CANCELED),
        ],
    )
    def test_subscription_events(self, client, db, seed, monkeypatch, event_type, stripe_status, expected):
        event = {
            "type": event_type,
            "data": {
                "object": {
                    "id": "sub_123",
                    "status": stripe_status,
                    "customer": "cus_123",
                    "metadata": {"church_id": seed.church.id},
                    "items": {"data": [{"price": {"id": "price_monthly"}, "current_period_end": 1893456000}]},
                }
            },
        }
        assert self._send(client, monkeypatch, event).status_code == 200

        subscription = _subscription(db, seed.church.id)
        db.refresh(subscription)
        assert subscription.status == expected
        assert subscription.stripe_subscription_id == "sub_123"
        assert subscription.end_date is not None
        if expected == SubscriptionStatus.CANCELED:
            assert subscription.canceled_at is not None


class TestStripeMapping:
    def test_annual_price_maps_to_annual_plan(self, monkeypatch):
        monkeypatch.setattr(stripe_module, "STRIPE_ANNUAL_PRICE_ID", "price_annual")
        fields = map_stripe_subscription(
            {"id": "sub_1", "status": "trialing", "items": {"data": [{"price": {"id": "price_annual"}}]}}
        )
        assert fields["plan"] == SubscriptionPlan.ANNUAL
        assert fields["status"] == SubscriptionStatus.ACTIVE

    def test_unknown_status_is_expired(self):
        fields = map_stripe_subscription({"id": "sub_1", "status": "incomplete"})
        assert fields["status"] == SubscriptionStatus.EXPIRED
        assert fields["plan"] == SubscriptionPlan.MONTHLY
        assert fields["end_date"] is None

    def test_period_end_is_converted_to_naive_utc(self):
        fields = map_stripe_subscription({"id": "sub_1", "status": "active", "current_period_end": 0})
        assert fields["end_date"] is None

        fields = map_stripe_subscription({"id": "sub_1", "status": "active", "current_period_end": 86400})
        assert fields["end_date"].year == 1970
        assert fields["end_date"].tzinfo is None

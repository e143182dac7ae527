from datetime import timedelta

from platesync import email_service
from platesync.domain.auth.service import FORGOT_PASSWORD_MESSAGE
from platesync.models import Church, EmailTemplate, ServiceOption, Subscription, SubscriptionStatus, User, utcnow

from .conftest import PASSWORD


def _register(client, email="pastor@hope.test"):
    return client.post(
        "/api/auth/register",
        json={
            "churchName": "Hope Chapel",
            "email": email,
            "password": "a-strong-password",
            "firstName": "Paula",
            "lastName": "Pastor",
        },
    )


class TestRegistration:
    def test_register_creates_church_owner_trial_and_defaults(self, client, db, monkeypatch):
        codes = []

        async def capture_code(to, first_name, code, church_name):
            codes.append(code)
            return {"id": "test"}

        monkeypatch.setattr(email_service, "send_verification_code_email", capture_code)

        response = _register(client)
        assert response.status_code == 201
        user = response.json()["user"]
        assert user["role"] == "ACCOUNT_OWNER"
        assert user["isAccountOwner"] is True
        assert user["isVerified"] is False

        church = db.query(Church).filter(Church.id == user["churchId"]).one()
        assert church.account_owner_id == user["id"]

        subscription = db.query(Subscription).filter(Subscription.church_id == church.id).one()
        assert subscription.status == SubscriptionStatus.TRIAL

        options = db.query(ServiceOption).filter(ServiceOption.church_id == church.id).all()
        assert len(options) == 4
        assert [o.name for o in options if o.is_default] == ["Sunday Morning"]

        templates = db.query(EmailTemplate).filter(EmailTemplate.church_id == church.id).count()
        assert templates == 4

        assert len(codes) == 1
        verified = client.post("/api/auth/verify-code", json={"email": "pastor@hope.test", "code": codes[0]})
        assert verified.status_code == 200
        assert verified.json()["user"]["isVerified"] is True

    def test_duplicate_email_is_rejected(self, client, seed):
        response = _register(client, email="owner@grace.test")
        assert response.status_code == 409

    def test_short_church_name_is_invalid(self, client):
        response = client.post(
            "/api/auth/register",
            json={"churchName": "AB", "email": "a@b.test", "password": "a-strong-password"},
        )
        assert response.status_code == 422

    def test_wrong_verification_code(self, client, seed):
        response = client.post("/api/auth/verify-code", json={"email": "owner@grace.test", "code": "000000"})
        assert response.status_code == 400


class TestLogin:
    def test_login_returns_token_and_user(self, client, seed):
        response = client.post("/api/auth/login", json={"email": "Owner@Grace.test", "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["user"]["email"] == "owner@grace.test"

        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == seed.owner.id

    def test_wrong_password(self, client, seed):
        response = client.post("/api/auth/login", json={"email": "owner@grace.test", "password": "nope-nope"})
        assert response.status_code == 401

    def test_unknown_email(self, client, seed):
        response = client.post("/api/auth/login", json={"email": "ghost@grace.test", "password": PASSWORD})
        assert response.status_code == 401

    def test_invited_user_without_password_must_finish_setup(self, client, db, seed):
        seed.usher.password_hash = None
        seed.usher.is_verified = False
        db.commit()

        response = client.post("/api/auth/login", json={"email": "usher@grace.test", "password": PASSWORD})
        assert response.status_code == 403

    def test_missing_token(self, client, seed):
        assert client.get("/api/auth/user").status_code == 401


class TestPasswordReset:
    def test_forgot_password_response_does_not_reveal_accounts(self, client, seed, sent_emails):
        known = client.post("/api/auth/forgot-password", json={"email": "owner@grace.test"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@grace.test"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json() == {"message": FORGOT_PASSWORD_MESSAGE}
        assert [m["to"] for m in sent_emails] == ["owner@grace.test"]

    def test_reset_password_flow(self, client, db, seed):
        client.post("/api/auth/forgot-password", json={"email": "owner@grace.test"})
        db.refresh(seed.owner)
        token = seed.owner.password_reset_token
        assert token

        validated = client.get("/api/auth/validate-token", params={"token": token})
        assert validated.json() == {"valid": True, "email": "owner@grace.test", "firstName": "Olivia"}

        reset = client.post("/api/auth/reset-password", json={"token": token, "password": "brand-new-secret"})
        assert reset.status_code == 200

        assert client.post(
            "/api/auth/login", json={"email": "owner@grace.test", "password": "brand-new-secret"}
        ).status_code == 200
        # Token is single use
        again = client.post("/api/auth/reset-password", json={"token": token, "password": "another-secret"})
        assert again.status_code == 400

    def test_expired_token_is_rejected(self, client, db, seed):
        seed.owner.password_reset_token = "expired-token"
        seed.owner.password_reset_expires = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.post("/api/auth/reset-password", json={"token": "expired-token", "password": "whatever-123"})
        assert response.status_code == 400

    def test_set_password_verifies_invited_user(self, client, db, seed):
        seed.usher.password_hash = None
        seed.usher.is_verified = False
        seed.usher.password_reset_token = "welcome-token"
        seed.usher.password_reset_expires = utcnow() + timedelta(hours=72)
        db.commit()

        response = client.post("/api/auth/set-password", json={"token": "welcome-token", "password": "usher-password"})
        assert response.status_code == 200

        user = db.get(User, seed.usher.id)
        db.refresh(user)
        assert user.is_verified is True
        assert client.post(
            "/api/auth/login", json={"email": "usher@grace.test", "password": "usher-password"}
        ).status_code == 200

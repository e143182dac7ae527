import json

import pytest

from platesync.domain.global_admin.service import mask_secret
from platesync.models import GlobalAdmin, SystemConfig, User
from platesync.security_utils import hash_password

from .conftest import PASSWORD


@pytest.fixture()
def admin_headers(client, db):
    db.add(GlobalAdmin(email="root@platesync.test", first_name="Root", password_hash=hash_password(PASSWORD)))
    db.commit()

    response = client.post("/api/global-admin/login", json={"email": "ROOT@platesync.test", "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestGlobalAdminAuth:
    def test_wrong_password(self, client, db):
        db.add(GlobalAdmin(email="root@platesync.test", password_hash=hash_password(PASSWORD)))
        db.commit()
        response = client.post("/api/global-admin/login", json={"email": "root@platesync.test", "password": "nope-nope"})
        assert response.status_code == 401

    def test_church_token_is_rejected(self, client, seed):
        assert client.get("/api/global-admin/churches", headers=seed.owner_headers).status_code == 401

    def test_global_token_is_rejected_by_church_api(self, client, admin_headers):
        assert client.get("/api/members", headers=admin_headers).status_code == 401

    def test_profile_records_last_login(self, client, admin_headers):
        profile = client.get("/api/global-admin/profile", headers=admin_headers).json()
        assert profile["email"] == "root@platesync.test"
        assert profile["lastLoginAt"] is not None


class TestChurchManagement:
    def test_list_churches_with_stats(self, client, seed, admin_headers):
        client.post("/api/donations", json={"amount": "42"}, headers=seed.usher_headers)

        listing = client.get("/api/global-admin/churches", headers=admin_headers).json()
        assert listing["total"] == 1
        assert listing["totalPages"] == 1
        church = listing["churches"][0]
        assert church["name"] == "Grace Community Church"
        assert church["userCount"] == 3
        assert church["totalDonations"] == "42.00"
        assert church["subscriptionPlan"] == "TRIAL"
        assert church["lastActivity"] is not None

    def test_search_and_status_filter(self, client, seed, admin_headers):
        found = client.get("/api/global-admin/churches", params={"search": "grace"}, headers=admin_headers).json()
        assert found["total"] == 1
        missing = client.get(
            "/api/global-admin/churches", params={"status": "SUSPENDED"}, headers=admin_headers
        ).json()
        assert missing["total"] == 0

    def test_create_church(self, client, db, admin_headers):
        response = client.post(
            "/api/global-admin/churches",
            json={
                "name": "Hillside Chapel",
                "contactEmail": "office@hillside.test",
                "adminEmail": "Pastor@Hillside.test",
                "adminFirstName": "Hal",
                "adminLastName": "Hill",
                "adminPassword": PASSWORD,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["contactEmail"] == "office@hillside.test"
        assert body["subscriptionStatus"] == "TRIAL"

        owner = db.query(User).filter(User.email == "pastor@hillside.test").one()
        assert owner.is_verified is True
        assert owner.church_id == body["id"]
        assert body["accountOwnerId"] == owner.id

    def test_suspending_church_locks_out_its_users(self, client, seed, admin_headers):
        response = client.patch(
            f"/api/global-admin/churches/{seed.church.id}/status", json={"status": "suspended"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "SUSPENDED"
        assert client.get("/api/batches", headers=seed.usher_headers).status_code == 403

        client.patch(
            f"/api/global-admin/churches/{seed.church.id}/status", json={"status": "ACTIVE"}, headers=admin_headers
        )
        assert client.get("/api/batches", headers=seed.usher_headers).status_code == 200

    def test_deleting_church_sets_deleted_at(self, client, seed, admin_headers):
        response = client.patch(
            f"/api/global-admin/churches/{seed.church.id}/status", json={"status": "DELETED"}, headers=admin_headers
        )
        assert response.json()["deletedAt"] is not None

    def test_invalid_status(self, client, seed, admin_headers):
        response = client.patch(
            f"/api/global-admin/churches/{seed.church.id}/status", json={"status": "ARCHIVED"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_church_users(self, client, seed, admin_headers):
        users = client.get(f"/api/global-admin/churches/{seed.church.id}/users", headers=admin_headers).json()
        assert len(users) == 3
        assert client.get("/api/global-admin/churches/nope/users", headers=admin_headers).status_code == 404


class TestIntegrations:
    def test_mask_secret(self):
        assert mask_secret("sk_live_abcdef1234") == "••••1234"
        assert mask_secret("abc") == "••••"
        assert mask_secret(None) is None

    def test_secrets_are_masked_and_preserved(self, client, db, admin_headers):
        saved = client.put(
            "/api/global-admin/integrations/stripe",
            json={"secretKey": "sk_test_abcdef1234", "mode": "test"},
            headers=admin_headers,
        ).json()
        assert saved["configured"] is True
        assert saved["settings"] == {"secretKey": "••••1234", "mode": "test"}

        client.put(
            "/api/global-admin/integrations/stripe",
            json={"secretKey": "••••1234", "mode": "live"},
            headers=admin_headers,
        )
        row = db.query(SystemConfig).filter(SystemConfig.key == "integration.stripe").one()
        db.refresh(row)
        assert json.loads(row.value) == {"secretKey": "sk_test_abcdef1234", "mode": "live"}

    def test_unknown_integration(self, client, admin_headers):
        assert client.get("/api/global-admin/integrations/fax", headers=admin_headers).status_code == 404


class TestSystemTemplates:
    def test_system_templates_seed_church_templates(self, client, seed, admin_headers):
        system = client.get("/api/global-admin/email-templates", headers=admin_headers).json()
        assert len(system) == 4
        assert all(t["churchId"] is None for t in system)

        client.put(
            "/api/global-admin/email-templates/WELCOME_EMAIL",
            json={"subject": "Welcome aboard, {{firstName}}"},
            headers=admin_headers,
        )

        church_template = client.get("/api/email-templates/welcome_email", headers=seed.admin_headers).json()
        assert church_template["subject"] == "Welcome aboard, {{firstName}}"
        assert church_template["churchId"] == seed.church.id

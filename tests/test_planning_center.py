from urllib.parse import parse_qs, urlparse

import pytest

from platesync.domain.planning_center import client as pc_client
from platesync.models import Member, PlanningCenterToken
from platesync.security_utils import sign_state


@pytest.fixture()
def configured(monkeypatch):
    monkeypatch.setattr(pc_client, "PLANNING_CENTER_CLIENT_ID", "client-id")
    monkeypatch.setattr(pc_client, "PLANNING_CENTER_CLIENT_SECRET", "client-secret")

    async def fake_exchange(code):
        assert code == "auth-code"
        return {"access_token": "pc-access", "refresh_token": "pc-refresh", "expires_in": 7200}

    monkeypatch.setattr(pc_client, "exchange_code", fake_exchange)


def _connect(client, seed):
    url = client.get("/api/planning-center/authorize", headers=seed.admin_headers).json()["url"]
    state = parse_qs(urlparse(url).query)["state"][0]
    return client.post(
        "/api/planning-center/callback", json={"code": "auth-code", "state": state}, headers=seed.admin_headers
    )


def test_not_configured(client, seed):
    assert client.get("/api/planning-center/authorize", headers=seed.admin_headers).status_code == 503


def test_connect_and_status(client, db, seed, configured):
    response = _connect(client, seed)
    assert response.status_code == 200
    assert response.json()["connected"] is True

    record = db.query(PlanningCenterToken).filter(PlanningCenterToken.church_id == seed.church.id).one()
    assert record.user_id == seed.admin.id
    assert record.refresh_token


def test_state_from_another_church_is_rejected(client, seed, configured):
    state = sign_state({"church_id": "church_other", "user_id": "x"}, salt="planning-center-state")
    response = client.post(
        "/api/planning-center/callback", json={"code": "auth-code", "state": state}, headers=seed.admin_headers
    )
    assert response.status_code == 400


def test_import_people(client, db, seed, configured, monkeypatch):
    _connect(client, seed)

    async def fake_fetch(access_token):
        assert access_token == "pc-access"
        return [
            {"id": "101", "first_name": "Lydia", "last_name": "Purple", "email": "lydia@example.com",
             "phone": "555-111-2222"},
            {"id": "102", "first_name": "Priscilla", "last_name": "Tent", "email": None, "phone": None},
        ]

    monkeypatch.setattr(pc_client, "fetch_people", fake_fetch)

    result = client.post("/api/planning-center/import", headers=seed.admin_headers).json()
    assert result["created"] == 2
    assert result["peopleCount"] == 2

    lydia = db.query(Member).filter(Member.external_id == "101").one()
    assert lydia.external_system == "PLANNING_CENTER"
    assert lydia.phone == "+15551112222"

    status = client.get("/api/planning-center/status", headers=seed.admin_headers).json()
    assert status["peopleCount"] == 2
    assert status["lastSyncDate"] is not None


def test_import_requires_connection(client, seed):
    assert client.post("/api/planning-center/import", headers=seed.admin_headers).status_code == 400


def test_disconnect(client, seed, configured):
    _connect(client, seed)
    client.post("/api/planning-center/disconnect", headers=seed.admin_headers)
    assert client.get("/api/planning-center/status", headers=seed.admin_headers).json()["connected"] is False

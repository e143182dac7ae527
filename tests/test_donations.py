from platesync.models import Member, NotificationStatus


def _batch(client, headers):
    return client.post("/api/batches", json={"name": "Sunday"}, headers=headers).json()


def _member(db, church_id, email=None):
    member = Member(church_id=church_id, first_name="Dana", last_name="Donor", email=email)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


class TestRecordingDonations:
    def test_cash_donation_updates_batch_total(self, client, seed):
        batch = _batch(client, seed.usher_headers)
        for amount in ("10.50", "$1,000"):
            response = client.post(
                "/api/donations", json={"amount": amount, "batchId": batch["id"]}, headers=seed.usher_headers
            )
            assert response.status_code == 201

        refreshed = client.get(f"/api/batches/{batch['id']}", headers=seed.usher_headers).json()
        assert refreshed["totalAmount"] == "1010.50"
        assert refreshed["donationCount"] == 2

    def test_amount_must_be_positive(self, client, seed):
        for amount in ("0", "-5", "abc"):
            response = client.post("/api/donations", json={"amount": amount}, headers=seed.usher_headers)
            assert response.status_code == 422

    def test_amount_outside_column_range_is_rejected(self, client, seed):
        for amount in ("1e30", "100000000", "Infinity"):
            response = client.post("/api/donations", json={"amount": amount}, headers=seed.usher_headers)
            assert response.status_code == 422

    def test_largest_storable_amount_is_accepted(self, client, seed):
        response = client.post("/api/donations", json={"amount": "99999999.99"}, headers=seed.usher_headers)
        assert response.status_code == 201
        assert response.json()["amount"] == "99999999.99"

    def test_check_requires_check_number(self, client, seed):
        response = client.post(
            "/api/donations", json={"amount": "25", "donationType": "CHECK"}, headers=seed.usher_headers
        )
        assert response.status_code == 400

        response = client.post(
            "/api/donations",
            json={"amount": "25", "donationType": "check", "checkNumber": " 2041 "},
            headers=seed.usher_headers,
        )
        assert response.status_code == 201
        assert response.json()["checkNumber"] == "2041"

    def test_cash_clears_check_number(self, client, seed):
        response = client.post(
            "/api/donations",
            json={"amount": "25", "donationType": "CASH", "checkNumber": "99"},
            headers=seed.usher_headers,
        )
        assert response.status_code == 201
        assert response.json()["checkNumber"] is None

    def test_donation_without_batch_uses_current_batch(self, client, seed):
        response = client.post("/api/donations", json={"amount": "12"}, headers=seed.usher_headers)
        assert response.status_code == 201

        current = client.get("/api/batches/current", headers=seed.usher_headers).json()
        assert response.json()["batchId"] == current["id"]
        assert current["totalAmount"] == "12.00"

    def test_unknown_member(self, client, seed):
        response = client.post("/api/donations", json={"amount": "5", "memberId": 9999}, headers=seed.usher_headers)
        assert response.status_code == 404


class TestDonorNotifications:
    def test_confirmation_sent_to_member_with_email(self, client, db, seed, sent_emails):
        member = _member(db, seed.church.id, email="dana@donor.test")
        response = client.post(
            "/api/donations",
            json={"amount": "75", "memberId": member.id, "sendNotification": True},
            headers=seed.usher_headers,
        )
        assert response.status_code == 201
        assert response.json()["notificationStatus"] == NotificationStatus.SENT
        assert sent_emails[0]["to"] == "dana@donor.test"
        assert "75.00" in sent_emails[0]["html"]

    def test_no_notification_without_email(self, client, db, seed, sent_emails):
        member = _member(db, seed.church.id)
        response = client.post(
            "/api/donations",
            json={"amount": "75", "memberId": member.id, "sendNotification": True},
            headers=seed.usher_headers,
        )
        assert response.json()["notificationStatus"] == NotificationStatus.NOT_REQUIRED
        assert sent_emails == []


class TestEditingDonations:
    def test_moving_donation_recalculates_both_batches(self, client, seed):
        first = _batch(client, seed.usher_headers)
        second = _batch(client, seed.usher_headers)
        donation = client.post(
            "/api/donations", json={"amount": "30", "batchId": first["id"]}, headers=seed.usher_headers
        ).json()

        response = client.patch(
            f"/api/donations/{donation['id']}",
            json={"batchId": second["id"], "amount": "45"},
            headers=seed.usher_headers,
        )
        assert response.status_code == 200

        totals = {
            b["id"]: b["totalAmount"] for b in client.get("/api/batches", headers=seed.usher_headers).json()
        }
        assert totals[first["id"]] == "0.00"
        assert totals[second["id"]] == "45.00"

    def test_delete_donation_updates_total(self, client, seed):
        batch = _batch(client, seed.usher_headers)
        donation = client.post(
            "/api/donations", json={"amount": "30", "batchId": batch["id"]}, headers=seed.usher_headers
        ).json()

        assert client.delete(f"/api/donations/{donation['id']}", headers=seed.usher_headers).status_code == 200
        refreshed = client.get(f"/api/batches/{batch['id']}", headers=seed.usher_headers).json()
        assert refreshed["totalAmount"] == "0.00"

    def test_filter_by_batch(self, client, seed):
        first = _batch(client, seed.usher_headers)
        second = _batch(client, seed.usher_headers)
        client.post("/api/donations", json={"amount": "1", "batchId": first["id"]}, headers=seed.usher_headers)
        client.post("/api/donations", json={"amount": "2", "batchId": second["id"]}, headers=seed.usher_headers)

        listed = client.get("/api/donations", params={"batchId": second["id"]}, headers=seed.usher_headers).json()
        assert [d["amount"] for d in listed] == ["2.00"]

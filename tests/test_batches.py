from sqlalchemy import update

from platesync.domain.batches.repository import BatchRepository
from platesync.domain.batches.service import normalize_attestor_name
from platesync.models import Batch, BatchStatus, ReportRecipient, User, UserRole
from platesync.shared.formatting import format_long_date
from platesync.models import utcnow


def _create_batch(client, headers, **data):
    response = client.post("/api/batches", json=data, headers=headers)
    assert response.status_code == 201
    return response.json()


def _attest_both(client, seed, batch_id):
    primary = client.post(
        f"/api/batches/{batch_id}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
    )
    assert primary.status_code == 200
    secondary = client.post(
        f"/api/batches/{batch_id}/attest-secondary", json={"name": "Adam Admin"}, headers=seed.admin_headers
    )
    assert secondary.status_code == 200


class TestBatchLifecycle:
    def test_create_batch_defaults(self, client, seed):
        batch = _create_batch(client, seed.usher_headers)
        assert batch["status"] == BatchStatus.OPEN
        assert batch["totalAmount"] == "0.00"
        assert batch["service"] == "Sunday Morning"
        assert batch["name"] == format_long_date(utcnow())

    def test_current_batch_is_created_on_demand(self, client, db, seed):
        response = client.get("/api/batches/current", headers=seed.usher_headers)
        assert response.status_code == 200
        assert response.json()["notes"] == "Automatically created batch"

        again = client.get("/api/batches/current", headers=seed.usher_headers)
        assert again.json()["id"] == response.json()["id"]
        assert db.query(Batch).count() == 1

    def test_status_cannot_be_set_to_finalized_directly(self, client, seed):
        batch = _create_batch(client, seed.admin_headers, name="Morning")
        response = client.patch(
            f"/api/batches/{batch['id']}", json={"status": "FINALIZED"}, headers=seed.admin_headers
        )
        assert response.status_code == 400

    def test_other_church_cannot_see_batch(self, client, db, seed):
        batch = _create_batch(client, seed.admin_headers, name="Morning")
        other = Batch(church_id="church_other", name="x", status=BatchStatus.OPEN, total_amount=0)
        db.add(other)
        db.commit()

        assert client.get(f"/api/batches/{other.id}", headers=seed.admin_headers).status_code == 404
        ids = [b["id"] for b in client.get("/api/batches", headers=seed.admin_headers).json()]
        assert ids == [batch["id"]]


class TestAttestation:
    def test_secondary_requires_primary(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        response = client.post(
            f"/api/batches/{batch['id']}/attest-secondary", json={"name": "Adam Admin"}, headers=seed.admin_headers
        )
        assert response.status_code == 400

    def test_secondary_must_be_a_different_person(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )

        same_name = client.post(
            f"/api/batches/{batch['id']}/attest-secondary", json={"name": "  uma   USHER "}, headers=seed.admin_headers
        )
        assert same_name.status_code == 400

        same_user = client.post(
            f"/api/batches/{batch['id']}/attest-secondary", json={"name": "Someone Else"}, headers=seed.usher_headers
        )
        assert same_user.status_code == 400

    def test_re_attesting_primary_clears_secondary(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        _attest_both(client, seed, batch["id"])

        response = client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma U."}, headers=seed.usher_headers
        )
        assert response.status_code == 200
        assert response.json()["secondaryAttestorName"] is None

    def test_confirm_requires_both_attestations(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )
        response = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert response.status_code == 400

    def test_confirm_finalizes_once(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        _attest_both(client, seed, batch["id"])

        response = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["batch"]["status"] == BatchStatus.FINALIZED
        assert body["batch"]["attestationConfirmedBy"] == seed.admin.id
        assert body["countReports"] == {"queued": False, "sent": 0, "failed": 0}

        again = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert again.status_code == 400

    def test_finalized_batch_is_immutable(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        _attest_both(client, seed, batch["id"])
        client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)

        update = client.patch(f"/api/batches/{batch['id']}", json={"name": "Edited"}, headers=seed.admin_headers)
        assert update.status_code == 400
        attest = client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Late Person"}, headers=seed.usher_headers
        )
        assert attest.status_code == 400
        donation = client.post(
            "/api/donations", json={"amount": "5", "batchId": batch["id"]}, headers=seed.usher_headers
        )
        assert donation.status_code == 400

    def test_only_admins_delete_finalized_batches(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        _attest_both(client, seed, batch["id"])
        client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)

        assert client.delete(f"/api/batches/{batch['id']}", headers=seed.usher_headers).status_code == 403
        assert client.delete(f"/api/batches/{batch['id']}", headers=seed.admin_headers).status_code == 200

    def test_count_report_is_emailed_with_pdf(self, client, db, seed, sent_emails):
        db.add(ReportRecipient(church_id=seed.church.id, first_name="Tess", last_name="Treasurer",
                               email="treasurer@grace.test"))
        db.commit()

        batch = _create_batch(client, seed.admin_headers, name="Sunday Count")
        client.post("/api/donations", json={"amount": "40", "batchId": batch["id"]}, headers=seed.usher_headers)
        client.post(
            "/api/donations",
            json={"amount": "60", "donationType": "CHECK", "checkNumber": "1001", "batchId": batch["id"]},
            headers=seed.usher_headers,
        )
        _attest_both(client, seed, batch["id"])

        response = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert response.status_code == 200
        assert response.json()["countReports"] == {"queued": False, "sent": 1, "failed": 0}
        assert response.json()["batch"]["totalAmount"] == "100.00"

        assert len(sent_emails) == 1
        message = sent_emails[0]
        assert message["to"] == "treasurer@grace.test"
        assert "100.00" in message["html"]
        attachment = message["attachments"][0]
        assert attachment["filename"].endswith("Count Report - Detail.pdf")
        assert attachment["content"].startswith(b"%PDF")

    def test_pdf_report_download(self, client, seed):
        batch = _create_batch(client, seed.admin_headers, name="Evening")
        response = client.get(f"/api/batches/{batch['id']}/pdf-report", headers=seed.usher_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")


class TestClosedBatch:
    def test_closed_batch_rejects_changes_until_reopened(self, client, seed):
        batch = _create_batch(client, seed.admin_headers, name="Evening")
        closed = client.patch(f"/api/batches/{batch['id']}", json={"status": "CLOSED"}, headers=seed.admin_headers)
        assert closed.status_code == 200
        assert closed.json()["status"] == BatchStatus.CLOSED

        donation = client.post(
            "/api/donations", json={"amount": "5", "batchId": batch["id"]}, headers=seed.usher_headers
        )
        assert donation.status_code == 400
        attest = client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )
        assert attest.status_code == 400
        confirm = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert confirm.status_code == 400
        assert confirm.json()["detail"] == "Only open batches can be finalized"

        reopened = client.patch(f"/api/batches/{batch['id']}", json={"status": "OPEN"}, headers=seed.admin_headers)
        assert reopened.status_code == 200
        assert reopened.json()["status"] == BatchStatus.OPEN
        donation = client.post(
            "/api/donations", json={"amount": "5", "batchId": batch["id"]}, headers=seed.usher_headers
        )
        assert donation.status_code == 201


class TestConcurrentConfirmation:
    def test_secondary_cleared_before_update_blocks_finalize(self, client, db, seed, monkeypatch):
        batch = _create_batch(client, seed.admin_headers)
        _attest_both(client, seed, batch["id"])

        finalize = BatchRepository.finalize_if_open

        def clear_secondary_first(session, batch_id, church_id, confirmed_by, confirmed_at):
            session.execute(
                update(Batch)
                .where(Batch.id == batch_id)
                .values(secondary_attestor_id=None, secondary_attestor_name=None, secondary_attestation_date=None)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return finalize(session, batch_id, church_id, confirmed_by, confirmed_at)

        monkeypatch.setattr(BatchRepository, "finalize_if_open", staticmethod(clear_secondary_first))

        response = client.post(f"/api/batches/{batch['id']}/confirm-attestation", headers=seed.admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Both attestations are required to finalize"

        stored = db.get(Batch, batch["id"])
        assert stored.status == BatchStatus.OPEN
        assert stored.secondary_attestor_name is None
        assert stored.attestation_confirmed_by is None

    def test_guarded_update_refuses_same_person_attestations(self, db, seed):
        batch = Batch(
            church_id=seed.church.id,
            name="Morning",
            status=BatchStatus.OPEN,
            total_amount=0,
            primary_attestor_id=seed.usher.id,
            primary_attestor_name="Uma Usher",
            secondary_attestor_id=seed.usher.id,
            secondary_attestor_name="Someone Else",
        )
        db.add(batch)
        db.commit()

        assert not BatchRepository.finalize_if_open(db, batch.id, seed.church.id, seed.admin.id, utcnow())
        assert db.get(Batch, batch.id).status == BatchStatus.OPEN


class TestSecondaryAttestorId:
    def test_unknown_attestor_id_is_rejected(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )

        response = client.post(
            f"/api/batches/{batch['id']}/attest-secondary",
            json={"name": "Adam Admin", "attestorId": "no-such-user"},
            headers=seed.admin_headers,
        )
        assert response.status_code == 400

    def test_attestor_id_from_another_church_is_rejected(self, client, db, seed):
        outsider = User(
            id="user_outsider", church_id="church_other", email="outsider@example.com",
            password_hash="x", role=UserRole.ADMIN,
        )
        db.add(outsider)
        db.commit()
        batch = _create_batch(client, seed.admin_headers)
        client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )

        response = client.post(
            f"/api/batches/{batch['id']}/attest-secondary",
            json={"name": "Adam Admin", "attestorId": outsider.id},
            headers=seed.admin_headers,
        )
        assert response.status_code == 400

    def test_attestor_id_of_church_user_is_recorded(self, client, seed):
        batch = _create_batch(client, seed.admin_headers)
        client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"name": "Uma Usher"}, headers=seed.usher_headers
        )

        response = client.post(
            f"/api/batches/{batch['id']}/attest-secondary",
            json={"name": "Olive Owner", "attestorId": seed.owner.id},
            headers=seed.admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["secondaryAttestorId"] == seed.owner.id


class TestAttestorNames:
    def test_normalization_ignores_case_and_spacing(self):
        assert normalize_attestor_name("  Jane   DOE ") == normalize_attestor_name("jane doe")
        assert normalize_attestor_name("Jane Doe") != normalize_attestor_name("John Doe")

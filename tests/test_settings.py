from platesync.email_service import render_placeholders
from platesync.models import User


class TestServiceOptions:
    def test_seeded_defaults(self, client, seed):
        options = client.get("/api/service-options", headers=seed.usher_headers).json()
        assert [o["name"] for o in options if o["isDefault"]] == ["Sunday Morning"]
        assert {o["value"] for o in options} == {
            "sunday_morning", "sunday_evening", "wednesday_night", "special_event"
        }

    def test_single_default_per_church(self, client, seed):
        created = client.post(
            "/api/service-options", json={"name": "Saturday Vigil", "isDefault": True}, headers=seed.admin_headers
        )
        assert created.status_code == 201
        assert created.json()["value"] == "saturday_vigil"

        options = client.get("/api/service-options", headers=seed.usher_headers).json()
        assert [o["name"] for o in options if o["isDefault"]] == ["Saturday Vigil"]

        evening = next(o for o in options if o["name"] == "Sunday Evening")
        client.patch(f"/api/service-options/{evening['id']}", json={"isDefault": True}, headers=seed.admin_headers)
        options = client.get("/api/service-options", headers=seed.usher_headers).json()
        assert [o["name"] for o in options if o["isDefault"]] == ["Sunday Evening"]

    def test_ushers_cannot_manage_options(self, client, seed):
        response = client.post("/api/service-options", json={"name": "Midweek"}, headers=seed.usher_headers)
        assert response.status_code == 403

    def test_delete_option(self, client, seed):
        option = client.post("/api/service-options", json={"name": "Midweek"}, headers=seed.admin_headers).json()
        assert client.delete(f"/api/service-options/{option['id']}", headers=seed.admin_headers).status_code == 200
        assert client.delete(f"/api/service-options/{option['id']}", headers=seed.admin_headers).status_code == 404


class TestEmailTemplates:
    def test_render_placeholders(self):
        rendered = render_placeholders("Hi {{ firstName }}, {{unknown}} gave {{amount}}", {
            "firstName": "Ruth", "amount": "10.00", "unknown": None,
        })
        assert rendered == "Hi Ruth, {{unknown}} gave 10.00"
        assert render_placeholders("", {"a": 1}) == ""

    def test_templates_are_created_lazily(self, client, seed):
        templates = client.get("/api/email-templates", headers=seed.admin_headers).json()
        assert sorted(t["templateType"] for t in templates) == [
            "COUNT_REPORT", "DONATION_CONFIRMATION", "PASSWORD_RESET", "WELCOME_EMAIL"
        ]

    def test_update_sanitizes_html(self, client, seed):
        response = client.put(
            "/api/email-templates/DONATION_CONFIRMATION",
            json={"bodyHtml": "<p onclick=\"x()\">Thanks {{donorName}}</p><script>alert(1)</script>"},
            headers=seed.admin_headers,
        )
        assert response.status_code == 200
        body = response.json()["bodyHtml"]
        assert "<script>" not in body
        assert "onclick" not in body
        assert "<p>Thanks {{donorName}}</p>" in body

    def test_empty_subject_rejected(self, client, seed):
        response = client.put(
            "/api/email-templates/WELCOME_EMAIL", json={"subject": "   "}, headers=seed.admin_headers
        )
        assert response.status_code == 400

    def test_reset_restores_default(self, client, seed):
        original = client.get("/api/email-templates/PASSWORD_RESET", headers=seed.admin_headers).json()
        client.put("/api/email-templates/PASSWORD_RESET", json={"subject": "Changed"}, headers=seed.admin_headers)

        reset = client.post("/api/email-templates/PASSWORD_RESET/reset", headers=seed.admin_headers).json()
        assert reset["subject"] == original["subject"]

    def test_unknown_type(self, client, seed):
        assert client.get("/api/email-templates/NEWSLETTER", headers=seed.admin_headers).status_code == 404

    def test_usher_has_no_access(self, client, seed):
        assert client.get("/api/email-templates", headers=seed.usher_headers).status_code == 403


class TestReportRecipients:
    def test_crud(self, client, seed):
        created = client.post(
            "/api/report-recipients",
            json={"firstName": " Tess ", "lastName": "Treasurer", "email": "Tess@Grace.test"},
            headers=seed.admin_headers,
        )
        assert created.status_code == 201
        recipient = created.json()
        assert recipient["firstName"] == "Tess"
        assert recipient["email"] == "tess@grace.test"

        updated = client.patch(
            f"/api/report-recipients/{recipient['id']}", json={"lastName": "Trustee"}, headers=seed.admin_headers
        ).json()
        assert updated["lastName"] == "Trustee"
        assert updated["firstName"] == "Tess"

        assert client.delete(f"/api/report-recipients/{recipient['id']}", headers=seed.admin_headers).status_code == 200
        assert client.get("/api/report-recipients", headers=seed.admin_headers).json() == []

    def test_invalid_email(self, client, seed):
        response = client.post(
            "/api/report-recipients",
            json={"firstName": "Tess", "lastName": "Treasurer", "email": "nope"},
            headers=seed.admin_headers,
        )
        assert response.status_code == 422

    def test_admin_only(self, client, seed):
        assert client.get("/api/report-recipients", headers=seed.usher_headers).status_code == 403


class TestChurchSettings:
    def test_update_church_profile(self, client, seed):
        response = client.patch(
            "/api/settings/church",
            json={"city": "Springfield", "phone": "555.222.3333", "websiteUrl": "https://grace.test"},
            headers=seed.admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["city"] == "Springfield"
        assert body["phone"] == "+15552223333"
        assert body["name"] == "Grace Community Church"

    def test_usher_cannot_edit_church(self, client, seed):
        response = client.patch("/api/settings/church", json={"city": "Nowhere"}, headers=seed.usher_headers)
        assert response.status_code == 403

    def test_logo_upload_and_delete(self, client, seed, fake_storage):
        response = client.post(
            "/api/settings/logo",
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\nlogo", "image/png")},
            headers=seed.admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["logoUrl"] == fake_storage[0]
        assert f"church-logos/{seed.church.id}" in fake_storage[0]

        cleared = client.delete("/api/settings/logo", headers=seed.admin_headers).json()
        assert cleared["logoUrl"] is None

    def test_email_settings(self, client, db, seed):
        response = client.post(
            "/api/settings/email", json={"emailNotificationsEnabled": False}, headers=seed.usher_headers
        )
        assert response.json() == {"emailNotificationsEnabled": False}
        assert db.get(User, seed.usher.id).email_notifications_enabled is False

    def test_send_test_email(self, client, seed, sent_emails):
        response = client.post("/api/settings/email/test", headers=seed.usher_headers)
        assert response.status_code == 200
        assert sent_emails[0]["to"] == "usher@grace.test"
        assert sent_emails[0]["subject"] == "PlateSync test email"

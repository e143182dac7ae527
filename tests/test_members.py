from platesync.models import Donation, Member


def _add_member(db, church_id, first, last, **extra):
    member = Member(church_id=church_id, first_name=first, last_name=last, **extra)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


class TestMemberCrud:
    def test_create_and_search(self, client, seed):
        response = client.post(
            "/api/members",
            json={"firstName": "Ruth", "lastName": "Naomi", "email": "Ruth@Example.com", "phone": "(555) 123-4567"},
            headers=seed.usher_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "ruth@example.com"
        assert body["phone"] == "+15551234567"

        found = client.get("/api/members", params={"search": "ruth nao"}, headers=seed.usher_headers).json()
        assert [m["id"] for m in found] == [body["id"]]

    def test_duplicate_email_in_church(self, client, seed):
        payload = {"firstName": "A", "lastName": "B", "email": "same@example.com"}
        assert client.post("/api/members", json=payload, headers=seed.usher_headers).status_code == 201
        payload["firstName"] = "C"
        assert client.post("/api/members", json=payload, headers=seed.usher_headers).status_code == 409

    def test_member_detail_includes_giving(self, client, db, seed):
        member = _add_member(db, seed.church.id, "Ruth", "Naomi")
        for amount in ("20", "30"):
            client.post("/api/donations", json={"amount": amount, "memberId": member.id}, headers=seed.usher_headers)

        detail = client.get(f"/api/members/{member.id}", headers=seed.usher_headers).json()
        assert detail["totalDonated"] == "50.00"
        assert len(detail["donations"]) == 2

    def test_member_with_donations_cannot_be_deleted(self, client, db, seed):
        member = _add_member(db, seed.church.id, "Ruth", "Naomi")
        db.add(Donation(church_id=seed.church.id, member_id=member.id, amount=10))
        db.commit()

        assert client.delete(f"/api/members/{member.id}", headers=seed.admin_headers).status_code == 400

    def test_usher_cannot_delete(self, client, db, seed):
        member = _add_member(db, seed.church.id, "Ruth", "Naomi")
        assert client.delete(f"/api/members/{member.id}", headers=seed.usher_headers).status_code == 403
        assert client.delete(f"/api/members/{member.id}", headers=seed.admin_headers).status_code == 200


class TestCsvImport:
    def test_import_creates_and_updates(self, client, db, seed):
        _add_member(db, seed.church.id, "Mary", "Martha")
        csv_content = (
            "First Name,Last Name,Email Address,Phone\n"
            "Mary,Martha,mary@example.com,555-000-1111\n"
            "John,Mark,not-an-email,\n"
            ",Nobody,,\n"
        )
        response = client.post(
            "/api/members/import",
            files={"file": ("members.csv", csv_content.encode("utf-8"), "text/csv")},
            headers=seed.admin_headers,
        )
        assert response.status_code == 200
        result = response.json()
        assert result["created"] == 1
        assert result["updated"] == 1
        assert result["imported"] == 2
        assert result["skipped"] == 1
        assert result["errors"] == [{"row": 4, "error": "Missing first or last name"}]

        mary = db.query(Member).filter(Member.first_name == "Mary").one()
        assert mary.email == "mary@example.com"
        assert mary.phone == "+15550001111"
        john = db.query(Member).filter(Member.first_name == "John").one()
        assert john.email is None

    def test_import_requires_name_columns(self, client, seed):
        response = client.post(
            "/api/members/import",
            files={"file": ("members.csv", b"Email\nx@example.com\n", "text/csv")},
            headers=seed.admin_headers,
        )
        assert response.status_code == 400

    def test_bulk_import_matches_external_ids(self, client, db, seed):
        payload = [{"firstName": "Lydia", "lastName": "Purple", "externalId": "pc-1", "externalSystem": "PLANNING_CENTER"}]
        first = client.post("/api/members/bulk-import", json=payload, headers=seed.admin_headers).json()
        assert first["created"] == 1

        payload[0]["email"] = "lydia@example.com"
        second = client.post("/api/members/bulk-import", json=payload, headers=seed.admin_headers).json()
        assert second["updated"] == 1
        assert db.query(Member).count() == 1


class TestDuplicates:
    def test_find_and_remove_duplicates(self, client, db, seed):
        with_email = _add_member(db, seed.church.id, "Paul", "Tarsus", email="paul@example.com")
        oldest_bare = _add_member(db, seed.church.id, "paul", "tarsus")
        newer_bare = _add_member(db, seed.church.id, "Paul", "Tarsus")
        giver = _add_member(db, seed.church.id, "Paul", "Tarsus")
        db.add(Donation(church_id=seed.church.id, member_id=giver.id, amount=5))
        db.commit()
        _add_member(db, seed.church.id, "Silas", "Solo")

        groups = client.get("/api/members/duplicates", headers=seed.admin_headers).json()
        assert len(groups) == 1
        assert len(groups[0]["members"]) == 4

        result = client.post("/api/members/remove-duplicates", headers=seed.admin_headers).json()
        assert result == {"deleted": 1}

        remaining = {m.id for m in db.query(Member).all()}
        assert with_email.id in remaining
        assert oldest_bare.id in remaining
        assert giver.id in remaining
        assert newer_bare.id not in remaining

    def test_contact_member_does_not_stand_in_for_bare_keeper(self, client, db, seed):
        _add_member(db, seed.church.id, "John", "Smith", email="john@example.com")
        _add_member(db, seed.church.id, "John", "Smith")
        _add_member(db, seed.church.id, "John", "Smith")

        result = client.post("/api/members/remove-duplicates", headers=seed.admin_headers).json()
        assert result == {"deleted": 1}

        johns = db.query(Member).filter(Member.first_name == "John").all()
        assert len(johns) == 2
        assert sorted(bool(m.email) for m in johns) == [False, True]

    def test_single_bare_member_with_contact_twin_is_kept(self, client, db, seed):
        _add_member(db, seed.church.id, "Mary", "Magdala", phone="+15550001111")
        _add_member(db, seed.church.id, "Mary", "Magdala")

        result = client.post("/api/members/remove-duplicates", headers=seed.admin_headers).json()
        assert result == {"deleted": 0}
        assert db.query(Member).count() == 2

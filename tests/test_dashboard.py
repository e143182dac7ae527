from datetime import date, datetime

import pytest

from platesync.domain.dashboard.service import DashboardService, last_sunday_before
from platesync.models import Donation, Member
from platesync.shared.formatting import percent_change, to_decimal


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2026, 10, 14), date(2026, 10, 11)),
        (date(2026, 10, 11), date(2026, 10, 4)),
        (date(2026, 10, 12), date(2026, 10, 11)),
    ],
)
def test_last_sunday_before(day, expected):
    assert last_sunday_before(day) == expected


def test_percent_change():
    assert percent_change(to_decimal(150), to_decimal(45)) == 233.3
    assert percent_change(to_decimal(10), to_decimal(0)) == 0.0


def _give(db, church_id, member, amount, when):
    db.add(Donation(church_id=church_id, member_id=member.id, amount=amount, date=when))


def test_stats_windows(db, seed):
    church_id = seed.church.id
    members = []
    for first in ("Anna", "Boaz", "Caleb"):
        member = Member(church_id=church_id, first_name=first, last_name="Giver")
        db.add(member)
        members.append(member)
    db.commit()
    anna, boaz, caleb = members

    _give(db, church_id, anna, 100, datetime(2026, 10, 11, 10, 30))
    _give(db, church_id, anna, 50, datetime(2026, 10, 14, 9, 0))
    _give(db, church_id, boaz, 25, datetime(2026, 10, 1, 11, 0))
    _give(db, church_id, caleb, 10, datetime(2026, 6, 1, 11, 0))
    _give(db, church_id, caleb, 20, datetime(2026, 10, 2, 11, 0))
    db.commit()

    stats = DashboardService(db).get_stats(church_id, today=date(2026, 10, 14))

    assert stats["todaysDonations"] == "50.00"
    assert stats["lastSundayDonations"] == "100.00"
    assert stats["todaysChange"] == -50.0
    assert stats["weeklyDonations"] == "150.00"
    assert stats["weeklyChange"] == 233.3
    assert stats["monthlyDonations"] == "195.00"
    assert stats["monthlyChange"] == 0.0
    assert stats["activeDonors"] == 3
    assert stats["newDonors"] == 2


def test_stats_endpoint_is_church_scoped(client, db, seed):
    db.add(Donation(church_id="church_other", amount=999))
    db.commit()
    client.post("/api/batches", json={"name": "Morning"}, headers=seed.usher_headers)

    response = client.get("/api/dashboard/stats", headers=seed.usher_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["todaysDonations"] == "0.00"
    assert [b["name"] for b in body["recentBatches"]] == ["Morning"]

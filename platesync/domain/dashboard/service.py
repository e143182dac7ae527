"""Dashboard service - donation totals and donor counts from the database"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Donation, utcnow
from ...shared.formatting import format_amount, percent_change, to_decimal
from ..batches.repository import BatchRepository


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def last_sunday_before(day: date) -> date:
    """Most recent Sunday strictly before ``day``"""
    days_back = (day.weekday() + 1) % 7 or 7
    return day - timedelta(days=days_back)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def _sum(self, church_id: str, start: datetime, end: datetime) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(Donation.amount), 0))
            .filter(Donation.church_id == church_id, Donation.date >= start, Donation.date < end)
            .scalar()
        )
        return to_decimal(total)

    def get_stats(self, church_id: str, today: Optional[date] = None) -> dict:
        today = today or utcnow().date()
        tomorrow = today + timedelta(days=1)

        todays = self._sum(church_id, _start_of(today), _start_of(tomorrow))
        sunday = last_sunday_before(today)
        last_sunday = self._sum(church_id, _start_of(sunday), _start_of(sunday + timedelta(days=1)))

        week_start = today - timedelta(days=6)
        weekly = self._sum(church_id, _start_of(week_start), _start_of(tomorrow))
        previous_week = self._sum(
            church_id, _start_of(week_start - timedelta(days=7)), _start_of(week_start)
        )

        month_start = today.replace(day=1)
        previous_month_start = (month_start - timedelta(days=1)).replace(day=1)
        monthly = self._sum(church_id, _start_of(month_start), _start_of(tomorrow))
        previous_month = self._sum(church_id, _start_of(previous_month_start), _start_of(month_start))

        active_donors = (
            self.db.query(func.count(func.distinct(Donation.member_id)))
            .filter(
                Donation.church_id == church_id,
                Donation.member_id.isnot(None),
                Donation.date >= _start_of(today - timedelta(days=90)),
            )
            .scalar()
            or 0
        )

        first_gifts = (
            self.db.query(Donation.member_id, func.min(Donation.date).label("first_date"))
            .filter(Donation.church_id == church_id, Donation.member_id.isnot(None))
            .group_by(Donation.member_id)
            .subquery()
        )
        new_donors = (
            self.db.query(func.count())
            .select_from(first_gifts)
            .filter(first_gifts.c.first_date >= _start_of(today - timedelta(days=30)))
            .scalar()
            or 0
        )

        return {
            "todaysDonations": format_amount(todays),
            "lastSundayDonations": format_amount(last_sunday),
            "todaysChange": percent_change(todays, last_sunday),
            "weeklyDonations": format_amount(weekly),
            "weeklyChange": percent_change(weekly, previous_week),
            "monthlyDonations": format_amount(monthly),
            "monthlyChange": percent_change(monthly, previous_month),
            "activeDonors": active_donors,
            "newDonors": new_donors,
            "recentBatches": BatchRepository.get_recent(self.db, church_id, limit=5),
        }

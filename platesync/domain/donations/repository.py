"""Donation repository - Database operations for donations"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Donation


class DonationRepository:
    """Repository for donation database operations"""

    @staticmethod
    def get_donations(
        db: Session,
        church_id: str,
        batch_id: Optional[int] = None,
        member_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Donation]:
        query = (
            db.query(Donation)
            .options(joinedload(Donation.member))
            .filter(Donation.church_id == church_id)
        )

        if batch_id is not None:
            query = query.filter(Donation.batch_id == batch_id)
        if member_id is not None:
            query = query.filter(Donation.member_id == member_id)
        if start_date:
            query = query.filter(Donation.date >= start_date)
        if end_date:
            query = query.filter(Donation.date <= end_date)

        return query.order_by(Donation.date.desc(), Donation.id.desc()).all()

    @staticmethod
    def get_donation_by_id(db: Session, donation_id: int, church_id: str) -> Optional[Donation]:
        return (
            db.query(Donation)
            .options(joinedload(Donation.member))
            .filter(Donation.id == donation_id, Donation.church_id == church_id)
            .first()
        )

    @staticmethod
    def create_donation(db: Session, church_id: str, **data) -> Donation:
        donation = Donation(church_id=church_id, **data)
        db.add(donation)
        db.commit()
        db.refresh(donation)
        return donation

    @staticmethod
    def update_donation(db: Session, donation: Donation, **updates) -> Donation:
        for key, value in updates.items():
            if hasattr(donation, key):
                setattr(donation, key, value)
        db.commit()
        db.refresh(donation)
        return donation

    @staticmethod
    def delete_donation(db: Session, donation: Donation) -> None:
        db.delete(donation)
        db.commit()

"""Church repository - Database operations and tenant statistics"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Batch, Church, Donation, Member, User


class ChurchRepository:
    """Repository for church database operations"""

    @staticmethod
    def get_church_by_id(db: Session, church_id: str) -> Optional[Church]:
        return db.query(Church).filter(Church.id == church_id).first()

    @staticmethod
    def create_church(db: Session, commit: bool = True, **data) -> Church:
        church = Church(**data)
        db.add(church)
        if commit:
            db.commit()
            db.refresh(church)
        else:
            db.flush()
        return church

    @staticmethod
    def update_church(db: Session, church: Church, **updates) -> Church:
        for key, value in updates.items():
            if hasattr(church, key):
                setattr(church, key, value)
        db.commit()
        db.refresh(church)
        return church

    @staticmethod
    def get_church_stats(db: Session, church_id: str) -> dict:
        """Real per-church counts used by the global admin portal"""
        user_count = db.query(func.count(User.id)).filter(User.church_id == church_id).scalar() or 0
        member_count = db.query(func.count(Member.id)).filter(Member.church_id == church_id).scalar() or 0
        donation_total = (
            db.query(func.coalesce(func.sum(Donation.amount), 0))
            .filter(Donation.church_id == church_id)
            .scalar()
        )
        last_donation: Optional[datetime] = (
            db.query(func.max(Donation.created_at)).filter(Donation.church_id == church_id).scalar()
        )
        last_batch: Optional[datetime] = (
            db.query(func.max(Batch.updated_at)).filter(Batch.church_id == church_id).scalar()
        )
        last_login: Optional[datetime] = (
            db.query(func.max(User.last_login_at)).filter(User.church_id == church_id).scalar()
        )
        activity = [d for d in (last_donation, last_batch, last_login) if d is not None]

        return {
            "userCount": user_count,
            "totalMembers": member_count,
            "totalDonations": donation_total,
            "lastActivity": max(activity) if activity else None,
        }

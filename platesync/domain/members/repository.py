"""Member repository - Database operations for church members"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Donation, Member


class MemberRepository:
    """Repository for member database operations"""

    @staticmethod
    def get_members(db: Session, church_id: str, search: Optional[str] = None) -> list[Member]:
        query = db.query(Member).filter(Member.church_id == church_id)

        if search:
            search_term = f"%{search.strip().lower()}%"
            query = query.filter(
                (func.lower(Member.first_name).like(search_term))
                | (func.lower(Member.last_name).like(search_term))
                | (func.lower(Member.first_name + " " + Member.last_name).like(search_term))
                | (func.lower(Member.email).like(search_term))
            )

        return query.order_by(Member.last_name, Member.first_name).all()

    @staticmethod
    def get_member_by_id(db: Session, member_id: int, church_id: str) -> Optional[Member]:
        return db.query(Member).filter(Member.id == member_id, Member.church_id == church_id).first()

    @staticmethod
    def get_member_by_email(
        db: Session, church_id: str, email: str, exclude_id: Optional[int] = None
    ) -> Optional[Member]:
        query = db.query(Member).filter(
            Member.church_id == church_id, func.lower(Member.email) == email.lower()
        )
        if exclude_id is not None:
            query = query.filter(Member.id != exclude_id)
        return query.first()

    @staticmethod
    def get_member_by_external_id(
        db: Session, church_id: str, external_id: str, external_system: str
    ) -> Optional[Member]:
        return (
            db.query(Member)
            .filter(
                Member.church_id == church_id,
                Member.external_id == external_id,
                Member.external_system == external_system,
            )
            .first()
        )

    @staticmethod
    def get_members_by_name(db: Session, church_id: str, first_name: str, last_name: str) -> list[Member]:
        return (
            db.query(Member)
            .filter(
                Member.church_id == church_id,
                func.lower(Member.first_name) == first_name.strip().lower(),
                func.lower(Member.last_name) == last_name.strip().lower(),
            )
            .order_by(Member.created_at)
            .all()
        )

    @staticmethod
    def get_member_ids_with_donations(db: Session, church_id: str) -> set[int]:
        rows = (
            db.query(Donation.member_id)
            .filter(Donation.church_id == church_id, Donation.member_id.isnot(None))
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def count_donations(db: Session, member_id: int) -> int:
        return db.query(func.count(Donation.id)).filter(Donation.member_id == member_id).scalar() or 0

    @staticmethod
    def create_member(db: Session, church_id: str, commit: bool = True, **data) -> Member:
        member = Member(church_id=church_id, **data)
        db.add(member)
        if commit:
            db.commit()
            db.refresh(member)
        else:
            db.flush()
        return member

    @staticmethod
    def update_member(db: Session, member: Member, commit: bool = True, **updates) -> Member:
        for key, value in updates.items():
            if hasattr(member, key):
                setattr(member, key, value)
        if commit:
            db.commit()
            db.refresh(member)
        return member

    @staticmethod
    def delete_member(db: Session, member: Member) -> None:
        db.delete(member)
        db.commit()

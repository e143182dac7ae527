"""Batch repository - Database operations for counts"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session, joinedload

from ...models import Batch, BatchStatus, Donation


class BatchRepository:
    """Repository for batch database operations"""

    @staticmethod
    def get_batches(db: Session, church_id: str) -> list[Batch]:
        return (
            db.query(Batch)
            .filter(Batch.church_id == church_id)
            .order_by(Batch.date.desc(), Batch.id.desc())
            .all()
        )

    @staticmethod
    def get_donation_counts(db: Session, church_id: str) -> dict[int, int]:
        rows = (
            db.query(Donation.batch_id, func.count(Donation.id))
            .filter(Donation.church_id == church_id, Donation.batch_id.isnot(None))
            .group_by(Donation.batch_id)
            .all()
        )
        return {batch_id: count for batch_id, count in rows}

    @staticmethod
    def get_batch_by_id(db: Session, batch_id: int, church_id: str, with_donations: bool = False) -> Optional[Batch]:
        query = db.query(Batch).filter(Batch.id == batch_id, Batch.church_id == church_id)
        if with_donations:
            query = query.options(joinedload(Batch.donations).joinedload(Donation.member))
        return query.first()

    @staticmethod
    def get_latest_open(db: Session, church_id: str) -> Optional[Batch]:
        return (
            db.query(Batch)
            .filter(Batch.church_id == church_id, Batch.status == BatchStatus.OPEN)
            .order_by(Batch.date.desc(), Batch.id.desc())
            .first()
        )

    @staticmethod
    def get_latest_finalized(db: Session, church_id: str) -> Optional[Batch]:
        return (
            db.query(Batch)
            .options(joinedload(Batch.donations).joinedload(Donation.member))
            .filter(Batch.church_id == church_id, Batch.status == BatchStatus.FINALIZED)
            .order_by(Batch.date.desc(), Batch.id.desc())
            .first()
        )

    @staticmethod
    def get_recent(db: Session, church_id: str, limit: int = 5) -> list[Batch]:
        return (
            db.query(Batch)
            .filter(Batch.church_id == church_id)
            .order_by(Batch.date.desc(), Batch.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def create_batch(db: Session, church_id: str, **data) -> Batch:
        batch = Batch(church_id=church_id, **data)
        db.add(batch)
        db.commit()
        db.refresh(batch)
        return batch

    @staticmethod
    def update_batch(db: Session, batch: Batch, **updates) -> Batch:
        for key, value in updates.items():
            if hasattr(batch, key):
                setattr(batch, key, value)
        db.commit()
        db.refresh(batch)
        return batch

    @staticmethod
    def delete_batch(db: Session, batch: Batch) -> None:
        db.query(Donation).filter(Donation.batch_id == batch.id).delete(synchronize_session=False)
        db.delete(batch)
        db.commit()

    @staticmethod
    def finalize_if_open(db: Session, batch_id: int, church_id: str, confirmed_by: str, confirmed_at) -> bool:
        """Conditional UPDATE so concurrent confirmations finalize exactly once.

        The attestation fields are re-checked in the same statement, so a
        secondary attestation cleared after the caller read the batch blocks
        finalization.
        """
        result = db.execute(
            update(Batch)
            .where(
                Batch.id == batch_id,
                Batch.church_id == church_id,
                Batch.status == BatchStatus.OPEN,
                Batch.primary_attestor_name.isnot(None),
                Batch.secondary_attestor_name.isnot(None),
                func.lower(Batch.primary_attestor_name) != func.lower(Batch.secondary_attestor_name),
                or_(
                    Batch.primary_attestor_id.is_(None),
                    Batch.secondary_attestor_id.is_(None),
                    Batch.primary_attestor_id != Batch.secondary_attestor_id,
                ),
            )
            .values(
                status=BatchStatus.FINALIZED,
                attestation_confirmed_by=confirmed_by,
                attestation_confirmation_date=confirmed_at,
                updated_at=confirmed_at,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def recalculate_total(db: Session, batch: Batch, commit: bool = True) -> Batch:
        total = (
            db.query(func.coalesce(func.sum(Donation.amount), 0))
            .filter(Donation.batch_id == batch.id)
            .scalar()
        )
        batch.total_amount = Decimal(str(total)).quantize(Decimal("0.01"))
        if commit:
            db.commit()
            db.refresh(batch)
        return batch

"""Donation service - recording gifts, donor notifications and batch totals"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Batch, BatchStatus, Donation, DonationType, NotificationStatus, User, utcnow
from ...services.notifications import send_donation_confirmation
from ..batches.service import BatchService
from ..members.repository import MemberRepository
from .repository import DonationRepository
from .schemas import DonationCreate, DonationUpdate

logger = logging.getLogger(__name__)


def _resolve_check_number(donation_type: str, check_number: Optional[str]) -> Optional[str]:
    """Check number is required for checks and cleared for cash"""
    if donation_type == DonationType.CHECK:
        check_number = (check_number or "").strip()
        if not check_number:
            raise HTTPException(status_code=400, detail="Check number is required for check donations")
        return check_number
    return None


class DonationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DonationRepository()
        self.member_repo = MemberRepository()
        self.batches = BatchService(db)

    def get_donations(
        self,
        church_id: str,
        batch_id: Optional[int] = None,
        member_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Donation]:
        return self.repo.get_donations(self.db, church_id, batch_id, member_id, start_date, end_date)

    def get_donation(self, donation_id: int, church_id: str) -> Donation:
        donation = self.repo.get_donation_by_id(self.db, donation_id, church_id)
        if not donation:
            raise HTTPException(status_code=404, detail="Donation not found")
        return donation

    def _open_batch(self, batch_id: int, church_id: str) -> Batch:
        batch = self.batches.get_batch(batch_id, church_id)
        if batch.status != BatchStatus.OPEN:
            raise HTTPException(status_code=400, detail="Donations can only be changed in an open batch")
        return batch

    def _check_member(self, member_id: Optional[int], church_id: str) -> None:
        if member_id is not None and not self.member_repo.get_member_by_id(self.db, member_id, church_id):
            raise HTTPException(status_code=404, detail="Member not found")

    async def create_donation(self, data: DonationCreate, church_id: str) -> Donation:
        if data.batchId is not None:
            batch = self._open_batch(data.batchId, church_id)
        else:
            batch = self.batches.get_current_batch(church_id)
        self._check_member(data.memberId, church_id)
        check_number = _resolve_check_number(data.donationType, data.checkNumber)

        member = self.member_repo.get_member_by_id(self.db, data.memberId, church_id) if data.memberId else None
        notify = bool(data.sendNotification and member and member.email)

        donation = self.repo.create_donation(
            self.db,
            church_id,
            batch_id=batch.id,
            member_id=data.memberId,
            date=data.date or utcnow(),
            amount=data.amount,
            donation_type=data.donationType,
            check_number=check_number,
            notes=data.notes,
            notification_status=NotificationStatus.PENDING if notify else NotificationStatus.NOT_REQUIRED,
        )
        self.batches.recalculate_total(batch)
        logger.info(f"✅ Recorded {data.donationType} donation {donation.id} of {data.amount} in batch {batch.id}")

        if notify:
            sent = await send_donation_confirmation(self.db, donation)
            donation = self.repo.update_donation(
                self.db,
                donation,
                notification_status=NotificationStatus.SENT if sent else NotificationStatus.FAILED,
            )
        return donation

    def update_donation(self, donation_id: int, data: DonationUpdate, church_id: str) -> Donation:
        donation = self.get_donation(donation_id, church_id)
        old_batch = self._open_batch(donation.batch_id, church_id) if donation.batch_id else None

        new_batch = old_batch
        if data.batchId is not None and data.batchId != donation.batch_id:
            new_batch = self._open_batch(data.batchId, church_id)

        provided = data.model_dump(exclude_unset=True)
        if "memberId" in provided:
            self._check_member(provided["memberId"], church_id)

        donation_type = data.donationType or donation.donation_type
        check_number = provided.get("checkNumber", donation.check_number)

        updates = {
            "donation_type": donation_type,
            "check_number": _resolve_check_number(donation_type, check_number),
        }
        if data.amount is not None:
            updates["amount"] = data.amount
        if data.date is not None:
            updates["date"] = data.date
        if "notes" in provided:
            updates["notes"] = provided["notes"]
        if "memberId" in provided:
            updates["member_id"] = provided["memberId"]
        if new_batch is not None:
            updates["batch_id"] = new_batch.id

        donation = self.repo.update_donation(self.db, donation, **updates)

        for batch in {b.id: b for b in (old_batch, new_batch) if b is not None}.values():
            self.batches.recalculate_total(batch)
        return donation

    def delete_donation(self, donation_id: int, current_user: User) -> dict:
        donation = self.get_donation(donation_id, current_user.church_id)
        batch = self.batches.get_batch(donation.batch_id, current_user.church_id) if donation.batch_id else None

        if batch is not None and batch.status != BatchStatus.OPEN and not current_user.is_admin:
            raise HTTPException(
                status_code=403, detail="Only administrators can delete donations from a closed batch"
            )

        self.repo.delete_donation(self.db, donation)
        if batch is not None:
            self.batches.recalculate_total(batch)

        logger.info(f"🗑️ Deleted donation {donation_id} from church {current_user.church_id}")
        return {"message": "Donation deleted"}

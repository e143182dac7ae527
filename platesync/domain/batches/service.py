"""Batch service - counts and the two-person attestation state machine"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Batch, BatchStatus, Church, User, utcnow
from ...services.background import enqueue_job
from ...services.count_report_pdf import generate_count_report_pdf, report_filename
from ...services.notifications import send_count_reports
from ...shared.formatting import format_long_date
from ..service_options.service import ServiceOptionService
from ..users.repository import UserRepository
from .repository import BatchRepository
from .schemas import BatchCreate, BatchUpdate

logger = logging.getLogger(__name__)


def normalize_attestor_name(name: str) -> str:
    """Case and whitespace insensitive form used to compare attestors"""
    return " ".join((name or "").split()).lower()


class BatchService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = BatchRepository()

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_batches(self, church_id: str) -> list[Batch]:
        return self.repo.get_batches(self.db, church_id)

    def get_donation_counts(self, church_id: str) -> dict[int, int]:
        return self.repo.get_donation_counts(self.db, church_id)

    def get_batch(self, batch_id: int, church_id: str, with_donations: bool = False) -> Batch:
        batch = self.repo.get_batch_by_id(self.db, batch_id, church_id, with_donations=with_donations)
        if not batch:
            raise HTTPException(status_code=404, detail="Batch not found")
        return batch

    def get_current_batch(self, church_id: str) -> Batch:
        """Most recent OPEN batch, creating today's batch when there is none"""
        batch = self.repo.get_latest_open(self.db, church_id)
        if batch:
            return batch

        logger.info(f"📋 No open batch for church {church_id}, creating one for today")
        return self.create_batch(BatchCreate(notes="Automatically created batch"), church_id)

    def get_latest_finalized(self, church_id: str) -> Batch:
        batch = self.repo.get_latest_finalized(self.db, church_id)
        if not batch:
            raise HTTPException(status_code=404, detail="No finalized batches found")
        return batch

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def create_batch(self, data: BatchCreate, church_id: str) -> Batch:
        batch_date = data.date or utcnow()
        name = (data.name or "").strip() or format_long_date(batch_date)
        service = (data.service or "").strip() or ServiceOptionService(self.db).get_default_name(church_id)

        batch = self.repo.create_batch(
            self.db,
            church_id,
            name=name,
            date=batch_date,
            service=service,
            status=BatchStatus.OPEN,
            total_amount=0,
            notes=data.notes,
        )
        logger.info(f"✅ Created batch {batch.id} '{batch.name}' for church {church_id}")
        return batch

    def update_batch(self, batch_id: int, data: BatchUpdate, church_id: str) -> Batch:
        batch = self.get_batch(batch_id, church_id)
        if batch.status == BatchStatus.FINALIZED:
            raise HTTPException(status_code=400, detail="Finalized batches cannot be modified")
        if data.status == BatchStatus.FINALIZED:
            raise HTTPException(
                status_code=400, detail="Batches can only be finalized through attestation"
            )

        updates = {}
        if data.name is not None and data.name.strip():
            updates["name"] = data.name.strip()
        if data.date is not None:
            updates["date"] = data.date
        if data.service is not None:
            updates["service"] = data.service.strip() or None
        if data.notes is not None:
            updates["notes"] = data.notes
        if data.status is not None:
            updates["status"] = data.status

        return self.repo.update_batch(self.db, batch, **updates)

    def delete_batch(self, batch_id: int, current_user: User) -> dict:
        batch = self.get_batch(batch_id, current_user.church_id)
        if batch.status == BatchStatus.FINALIZED and not current_user.is_admin:
            raise HTTPException(
                status_code=403, detail="Only administrators can delete finalized batches"
            )

        self.repo.delete_batch(self.db, batch)
        logger.info(f"🗑️ Deleted batch {batch_id} from church {current_user.church_id}")
        return {"message": "Batch deleted"}

    def recalculate_total(self, batch: Batch) -> Batch:
        return self.repo.recalculate_total(self.db, batch)

    # ========================================================================
    # ATTESTATION
    # ========================================================================

    def attest_primary(self, batch_id: int, current_user: User, name: str) -> Batch:
        batch = self.get_batch(batch_id, current_user.church_id)
        if batch.status != BatchStatus.OPEN:
            raise HTTPException(status_code=400, detail="Only open batches can be attested")
        if not name or not name.strip():
            raise HTTPException(status_code=400, detail="Attestor name is required")

        # Replacing the primary invalidates any earlier secondary attestation
        return self.repo.update_batch(
            self.db,
            batch,
            primary_attestor_id=current_user.id,
            primary_attestor_name=" ".join(name.split()),
            primary_attestation_date=utcnow(),
            secondary_attestor_id=None,
            secondary_attestor_name=None,
            secondary_attestation_date=None,
        )

    def attest_secondary(self, batch_id: int, current_user: User, name: str, attestor_id: Optional[str] = None) -> Batch:
        batch = self.get_batch(batch_id, current_user.church_id)
        if batch.status != BatchStatus.OPEN:
            raise HTTPException(status_code=400, detail="Only open batches can be attested")
        if not batch.primary_attestor_name:
            raise HTTPException(status_code=400, detail="Primary attestation is required first")
        if not name or not name.strip():
            raise HTTPException(status_code=400, detail="Attestor name is required")

        if normalize_attestor_name(name) == normalize_attestor_name(batch.primary_attestor_name):
            raise HTTPException(
                status_code=400, detail="Secondary attestor must be a different person than the primary attestor"
            )

        if attestor_id and attestor_id != current_user.id:
            if not UserRepository.get_user_by_id(self.db, attestor_id, current_user.church_id):
                raise HTTPException(status_code=400, detail="Secondary attestor must be a user of this church")
        attestor_id = attestor_id or current_user.id
        if batch.primary_attestor_id and attestor_id == batch.primary_attestor_id:
            raise HTTPException(
                status_code=400, detail="Secondary attestor must be a different person than the primary attestor"
            )

        return self.repo.update_batch(
            self.db,
            batch,
            secondary_attestor_id=attestor_id,
            secondary_attestor_name=" ".join(name.split()),
            secondary_attestation_date=utcnow(),
        )

    @staticmethod
    def _check_ready_to_finalize(batch: Batch) -> None:
        if batch.status == BatchStatus.FINALIZED:
            raise HTTPException(status_code=400, detail="Batch is already finalized")
        if batch.status != BatchStatus.OPEN:
            raise HTTPException(status_code=400, detail="Only open batches can be finalized")
        if not batch.primary_attestor_name or not batch.secondary_attestor_name:
            raise HTTPException(status_code=400, detail="Both attestations are required to finalize")
        if normalize_attestor_name(batch.primary_attestor_name) == normalize_attestor_name(
            batch.secondary_attestor_name
        ):
            raise HTTPException(status_code=400, detail="Attestations must come from two different people")

    def confirm_attestation(self, batch_id: int, current_user: User) -> Batch:
        batch = self.get_batch(batch_id, current_user.church_id)
        self._check_ready_to_finalize(batch)

        if not self.repo.finalize_if_open(
            self.db, batch.id, current_user.church_id, current_user.id, utcnow()
        ):
            # The batch changed between the read and the UPDATE; report its current state
            self._check_ready_to_finalize(self.get_batch(batch_id, current_user.church_id))
            raise HTTPException(status_code=400, detail="Batch is already finalized")

        logger.info(f"✅ Batch {batch.id} finalized by {current_user.email}")
        return self.get_batch(batch.id, current_user.church_id, with_donations=True)

    async def dispatch_count_reports(self, batch: Batch) -> dict:
        """Queue count report emails, sending inline when the queue is unavailable"""
        job_id = await enqueue_job("send_count_report_emails_task", batch.id, batch.church_id)
        if job_id:
            return {"queued": True, "jobId": job_id}

        result = await send_count_reports(self.db, batch)
        return {"queued": False, **result}

    # ========================================================================
    # PDF
    # ========================================================================

    def generate_pdf(self, batch_id: int, church_id: str) -> tuple[bytes, str]:
        batch = self.get_batch(batch_id, church_id, with_donations=True)
        church = self.db.get(Church, church_id)
        return generate_count_report_pdf(batch, church), report_filename(batch)

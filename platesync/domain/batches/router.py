"""Batch (count) router"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Batch, Donation, User
from ...shared.formatting import format_amount
from .schemas import (
    BatchCreate,
    BatchDetailResponse,
    BatchResponse,
    BatchUpdate,
    DonationInBatch,
    MemberSummary,
    PrimaryAttestation,
    SecondaryAttestation,
)
from .service import BatchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/batches", tags=["Batches"])


def get_batch_service(db: Session = Depends(get_db)) -> BatchService:
    """Dependency injection for BatchService"""
    return BatchService(db)


def to_batch_response(batch: Batch, donation_count: int = 0) -> BatchResponse:
    return BatchResponse(
        id=batch.id,
        name=batch.name,
        date=batch.date,
        service=batch.service,
        status=batch.status,
        totalAmount=format_amount(batch.total_amount),
        notes=batch.notes,
        churchId=batch.church_id,
        donationCount=donation_count,
        primaryAttestorId=batch.primary_attestor_id,
        primaryAttestorName=batch.primary_attestor_name,
        primaryAttestationDate=batch.primary_attestation_date,
        secondaryAttestorId=batch.secondary_attestor_id,
        secondaryAttestorName=batch.secondary_attestor_name,
        secondaryAttestationDate=batch.secondary_attestation_date,
        attestationConfirmedBy=batch.attestation_confirmed_by,
        attestationConfirmationDate=batch.attestation_confirmation_date,
        createdAt=batch.created_at,
        updatedAt=batch.updated_at,
    )


def to_donation_in_batch(donation: Donation) -> DonationInBatch:
    member = donation.member
    return DonationInBatch(
        id=donation.id,
        amount=format_amount(donation.amount),
        date=donation.date,
        donationType=donation.donation_type,
        checkNumber=donation.check_number,
        notes=donation.notes,
        notificationStatus=donation.notification_status,
        memberId=donation.member_id,
        member=MemberSummary(
            id=member.id, firstName=member.first_name, lastName=member.last_name, email=member.email
        ) if member else None,
    )


def to_batch_detail(batch: Batch) -> BatchDetailResponse:
    donations = list(batch.donations)
    return BatchDetailResponse(
        **to_batch_response(batch, len(donations)).model_dump(),
        donations=[to_donation_in_batch(d) for d in donations],
    )


# ============================================================================
# QUERIES
# ============================================================================


@router.get("", response_model=list[BatchResponse])
async def get_batches(
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    counts = service.get_donation_counts(current_user.church_id)
    return [to_batch_response(b, counts.get(b.id, 0)) for b in service.get_batches(current_user.church_id)]


@router.get("/current", response_model=BatchDetailResponse)
async def get_current_batch(
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    """Most recent open batch; one is created for today if none exists"""
    return to_batch_detail(service.get_current_batch(current_user.church_id))


@router.get("/latest-finalized", response_model=BatchDetailResponse)
async def get_latest_finalized_batch(
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    return to_batch_detail(service.get_latest_finalized(current_user.church_id))


@router.get("/{batch_id}", response_model=BatchDetailResponse)
async def get_batch(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    return to_batch_detail(service.get_batch(batch_id, current_user.church_id, with_donations=True))


@router.get("/{batch_id}/donations", response_model=list[DonationInBatch])
async def get_batch_donations(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    batch = service.get_batch(batch_id, current_user.church_id, with_donations=True)
    return [to_donation_in_batch(d) for d in batch.donations]


@router.get("/{batch_id}/pdf-report")
async def get_batch_pdf_report(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    pdf_bytes, filename = service.generate_pdf(batch_id, current_user.church_id)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# MUTATIONS
# ============================================================================


@router.post("", response_model=BatchResponse, status_code=201)
async def create_batch(
    data: BatchCreate,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    return to_batch_response(service.create_batch(data, current_user.church_id))


@router.patch("/{batch_id}", response_model=BatchResponse)
async def update_batch(
    batch_id: int,
    data: BatchUpdate,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    batch = service.update_batch(batch_id, data, current_user.church_id)
    return to_batch_response(batch, len(batch.donations))


@router.delete("/{batch_id}")
async def delete_batch(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    return service.delete_batch(batch_id, current_user)


# ============================================================================
# ATTESTATION
# ============================================================================


@router.post("/{batch_id}/attest-primary", response_model=BatchResponse)
async def attest_primary(
    batch_id: int,
    data: PrimaryAttestation,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    batch = service.attest_primary(batch_id, current_user, data.name)
    return to_batch_response(batch, len(batch.donations))


@router.post("/{batch_id}/attest-secondary", response_model=BatchResponse)
async def attest_secondary(
    batch_id: int,
    data: SecondaryAttestation,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    batch = service.attest_secondary(batch_id, current_user, data.name, data.attestorId)
    return to_batch_response(batch, len(batch.donations))


@router.post("/{batch_id}/confirm-attestation")
async def confirm_attestation(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    service: BatchService = Depends(get_batch_service),
):
    """Finalize the batch and send the count report to every report recipient"""
    batch = service.confirm_attestation(batch_id, current_user)
    reports = await service.dispatch_count_reports(batch)
    return {"batch": to_batch_detail(batch), "countReports": reports}

"""Donation router"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Donation, User
from ...shared.formatting import format_amount
from .schemas import DonationCreate, DonationMember, DonationResponse, DonationUpdate
from .service import DonationService

router = APIRouter(prefix="/api/donations", tags=["Donations"])


def get_donation_service(db: Session = Depends(get_db)) -> DonationService:
    """Dependency injection for DonationService"""
    return DonationService(db)


def _to_response(donation: Donation) -> DonationResponse:
    member = donation.member
    return DonationResponse(
        id=donation.id,
        amount=format_amount(donation.amount),
        date=donation.date,
        donationType=donation.donation_type,
        checkNumber=donation.check_number,
        notes=donation.notes,
        notificationStatus=donation.notification_status,
        batchId=donation.batch_id,
        memberId=donation.member_id,
        member=DonationMember(
            id=member.id, firstName=member.first_name, lastName=member.last_name, email=member.email
        ) if member else None,
        churchId=donation.church_id,
        createdAt=donation.created_at,
        updatedAt=donation.updated_at,
    )


@router.get("", response_model=list[DonationResponse])
async def get_donations(
    batchId: Optional[int] = Query(None),
    memberId: Optional[int] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    service: DonationService = Depends(get_donation_service),
):
    donations = service.get_donations(current_user.church_id, batchId, memberId, startDate, endDate)
    return [_to_response(d) for d in donations]


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: int,
    current_user: User = Depends(get_current_user),
    service: DonationService = Depends(get_donation_service),
):
    return _to_response(service.get_donation(donation_id, current_user.church_id))


@router.post("", response_model=DonationResponse, status_code=201)
async def create_donation(
    data: DonationCreate,
    current_user: User = Depends(get_current_user),
    service: DonationService = Depends(get_donation_service),
):
    """Record a donation; with sendNotification the donor gets a confirmation email"""
    return _to_response(await service.create_donation(data, current_user.church_id))


@router.patch("/{donation_id}", response_model=DonationResponse)
async def update_donation(
    donation_id: int,
    data: DonationUpdate,
    current_user: User = Depends(get_current_user),
    service: DonationService = Depends(get_donation_service),
):
    return _to_response(service.update_donation(donation_id, data, current_user.church_id))


@router.delete("/{donation_id}")
async def delete_donation(
    donation_id: int,
    current_user: User = Depends(get_current_user),
    service: DonationService = Depends(get_donation_service),
):
    return service.delete_donation(donation_id, current_user)

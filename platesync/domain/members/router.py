"""Member router"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import Member, User
from ...shared.formatting import format_amount
from .schemas import (
    BulkImportMember,
    DuplicateGroup,
    MemberCreate,
    MemberDetailResponse,
    MemberDonationSummary,
    MemberResponse,
    MemberUpdate,
)
from .service import MemberService

router = APIRouter(prefix="/api/members", tags=["Members"])


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    """Dependency injection for MemberService"""
    return MemberService(db)


def to_member_response(member: Member) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        firstName=member.first_name,
        lastName=member.last_name,
        email=member.email,
        phone=member.phone,
        isVisitor=member.is_visitor,
        notes=member.notes,
        externalId=member.external_id,
        externalSystem=member.external_system,
        churchId=member.church_id,
        createdAt=member.created_at,
        updatedAt=member.updated_at,
    )


def _to_detail_response(member: Member) -> MemberDetailResponse:
    donations = sorted(member.donations, key=lambda d: d.date, reverse=True)
    return MemberDetailResponse(
        **to_member_response(member).model_dump(),
        donations=[
            MemberDonationSummary(
                id=d.id,
                amount=format_amount(d.amount),
                date=d.date,
                donationType=d.donation_type,
                checkNumber=d.check_number,
                batchId=d.batch_id,
                batchName=d.batch.name if d.batch else None,
            )
            for d in donations
        ],
        totalDonated=format_amount(sum((d.amount for d in donations), 0)),
    )


# ============================================================================
# IMPORT & DUPLICATES
# ============================================================================


@router.post("/import")
async def import_members_csv(
    file: UploadFile = File(...),
    current_user: User = Depends(require_admin),
    service: MemberService = Depends(get_member_service),
):
    """Import members from a CSV file with First Name / Last Name / Email / Phone / Notes columns"""
    return await service.import_csv(file, current_user.church_id)


@router.post("/bulk-import")
async def bulk_import_members(
    members: list[BulkImportMember],
    current_user: User = Depends(require_admin),
    service: MemberService = Depends(get_member_service),
):
    return service.bulk_import(members, current_user.church_id)


@router.get("/duplicates", response_model=list[DuplicateGroup])
async def get_potential_duplicates(
    current_user: User = Depends(require_admin),
    service: MemberService = Depends(get_member_service),
):
    return [
        DuplicateGroup(
            firstName=group[0].first_name,
            lastName=group[0].last_name,
            members=[to_member_response(m) for m in group],
        )
        for group in service.get_duplicates(current_user.church_id)
    ]


@router.post("/remove-duplicates")
async def remove_duplicate_members(
    current_user: User = Depends(require_admin),
    service: MemberService = Depends(get_member_service),
):
    return service.remove_duplicates(current_user.church_id)


# ============================================================================
# CRUD
# ============================================================================


@router.get("", response_model=list[MemberResponse])
async def get_members(
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    return [to_member_response(m) for m in service.get_members(current_user.church_id, search)]


@router.get("/{member_id}", response_model=MemberDetailResponse)
async def get_member(
    member_id: int,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    return _to_detail_response(service.get_member(member_id, current_user.church_id))


@router.post("", response_model=MemberResponse, status_code=201)
async def create_member(
    data: MemberCreate,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    return to_member_response(service.create_member(data, current_user.church_id))


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    data: MemberUpdate,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
):
    return to_member_response(service.update_member(member_id, data, current_user.church_id))


@router.delete("/{member_id}")
async def delete_member(
    member_id: int,
    current_user: User = Depends(require_admin),
    service: MemberService = Depends(get_member_service),
):
    return service.delete_member(member_id, current_user.church_id)

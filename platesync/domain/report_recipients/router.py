"""Report recipient router - who receives the count report when a batch is finalized"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import ReportRecipient, User
from .repository import ReportRecipientRepository
from .schemas import ReportRecipientCreate, ReportRecipientResponse, ReportRecipientUpdate

router = APIRouter(prefix="/api/report-recipients", tags=["Report Recipients"])

repo = ReportRecipientRepository()


def _to_response(recipient: ReportRecipient) -> ReportRecipientResponse:
    return ReportRecipientResponse(
        id=recipient.id,
        firstName=recipient.first_name,
        lastName=recipient.last_name,
        email=recipient.email,
        churchId=recipient.church_id,
    )


def _get_or_404(db: Session, recipient_id: int, church_id: str) -> ReportRecipient:
    recipient = repo.get_recipient_by_id(db, recipient_id, church_id)
    if not recipient:
        raise HTTPException(status_code=404, detail="Report recipient not found")
    return recipient


@router.get("", response_model=list[ReportRecipientResponse])
async def get_report_recipients(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return [_to_response(r) for r in repo.get_recipients(db, current_user.church_id)]


@router.post("", response_model=ReportRecipientResponse, status_code=201)
async def create_report_recipient(
    data: ReportRecipientCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    recipient = repo.create_recipient(
        db,
        current_user.church_id,
        first_name=data.firstName,
        last_name=data.lastName,
        email=data.email,
    )
    return _to_response(recipient)


@router.patch("/{recipient_id}", response_model=ReportRecipientResponse)
async def update_report_recipient(
    recipient_id: int,
    data: ReportRecipientUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    recipient = _get_or_404(db, recipient_id, current_user.church_id)
    recipient = repo.update_recipient(
        db,
        recipient,
        first_name=data.firstName.strip() if data.firstName and data.firstName.strip() else None,
        last_name=data.lastName.strip() if data.lastName and data.lastName.strip() else None,
        email=data.email,
    )
    return _to_response(recipient)


@router.delete("/{recipient_id}")
async def delete_report_recipient(
    recipient_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    repo.delete_recipient(db, _get_or_404(db, recipient_id, current_user.church_id))
    return {"message": "Report recipient deleted"}

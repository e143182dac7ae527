"""Church settings router"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import Church, User
from .schemas import ChurchResponse, ChurchUpdate, EmailSettingsUpdate
from .service import ChurchService

router = APIRouter(prefix="/api/settings", tags=["Settings"])


def get_church_service(db: Session = Depends(get_db)) -> ChurchService:
    """Dependency injection for ChurchService"""
    return ChurchService(db)


def to_church_response(church: Church) -> ChurchResponse:
    return ChurchResponse(
        id=church.id,
        name=church.name,
        status=church.status,
        contactEmail=church.contact_email,
        phone=church.phone,
        address=church.address,
        city=church.city,
        state=church.state,
        zipCode=church.zip_code,
        logoUrl=church.logo_url,
        websiteUrl=church.website_url,
        denomination=church.denomination,
        registrationDate=church.registration_date,
    )


# ============================================================================
# CHURCH PROFILE
# ============================================================================


@router.get("/church", response_model=ChurchResponse)
async def get_church_profile(
    current_user: User = Depends(get_current_user),
    service: ChurchService = Depends(get_church_service),
):
    return to_church_response(service.get_church(current_user.church_id))


@router.patch("/church", response_model=ChurchResponse)
async def update_church_profile(
    data: ChurchUpdate,
    current_user: User = Depends(require_admin),
    service: ChurchService = Depends(get_church_service),
):
    return to_church_response(service.update_church(current_user.church_id, data))


@router.post("/logo", response_model=ChurchResponse)
async def upload_church_logo(
    file: UploadFile = File(...),
    current_user: User = Depends(require_admin),
    service: ChurchService = Depends(get_church_service),
):
    """Upload a church logo (jpg, png or gif up to 5MB)"""
    church = await service.upload_logo(current_user.church_id, file)
    return to_church_response(church)


@router.delete("/logo", response_model=ChurchResponse)
async def delete_church_logo(
    current_user: User = Depends(require_admin),
    service: ChurchService = Depends(get_church_service),
):
    return to_church_response(service.delete_logo(current_user.church_id))


# ============================================================================
# EMAIL SETTINGS
# ============================================================================


@router.get("/email")
async def get_email_settings(current_user: User = Depends(get_current_user)):
    return {"emailNotificationsEnabled": current_user.email_notifications_enabled}


@router.post("/email")
async def update_email_settings(
    data: EmailSettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: ChurchService = Depends(get_church_service),
):
    return service.update_email_settings(current_user, data)


@router.post("/email/test")
async def send_test_email(
    current_user: User = Depends(get_current_user),
    service: ChurchService = Depends(get_church_service),
):
    return await service.send_test_email(current_user)

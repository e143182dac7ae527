"""Global admin router - cross-tenant portal"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_global_admin
from ...database import get_db
from ...models import GlobalAdmin
from ...rate_limiter import create_rate_limiter
from ...shared.formatting import format_amount
from ..email_templates.router import to_template_response
from ..email_templates.schemas import EmailTemplateResponse, EmailTemplateUpdate
from ..email_templates.service import EmailTemplateService
from ..users.router import to_user_response
from ..users.schemas import UserResponse
from .schemas import (
    ChurchCreateRequest,
    ChurchListResponse,
    ChurchStatusUpdate,
    ChurchSummary,
    GlobalAdminLogin,
    GlobalAdminResponse,
)
from .service import GlobalAdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/global-admin", tags=["Global Admin"])

rate_limit_global_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="global_admin_login")


def get_global_admin_service(db: Session = Depends(get_db)) -> GlobalAdminService:
    """Dependency injection for GlobalAdminService"""
    return GlobalAdminService(db)


def _to_admin_response(admin: GlobalAdmin) -> GlobalAdminResponse:
    return GlobalAdminResponse(
        id=admin.id,
        email=admin.email,
        firstName=admin.first_name,
        lastName=admin.last_name,
        profileImageUrl=admin.profile_image_url,
        lastLoginAt=admin.last_login_at,
    )


def _to_church_summary(summary: dict) -> ChurchSummary:
    church = summary["church"]
    stats = summary["stats"]
    subscription = summary["subscription"]
    return ChurchSummary(
        id=church.id,
        name=church.name,
        status=church.status,
        contactEmail=church.contact_email,
        phone=church.phone,
        city=church.city,
        state=church.state,
        logoUrl=church.logo_url,
        registrationDate=church.registration_date,
        createdAt=church.created_at,
        deletedAt=church.deleted_at,
        accountOwnerId=church.account_owner_id,
        subscriptionPlan=subscription.plan if subscription else None,
        subscriptionStatus=subscription.status if subscription else None,
        userCount=stats["userCount"],
        totalMembers=stats["totalMembers"],
        totalDonations=format_amount(stats["totalDonations"]),
        lastActivity=stats["lastActivity"],
    )


# ============================================================================
# AUTH & PROFILE
# ============================================================================


@router.post("/login")
async def global_admin_login(
    data: GlobalAdminLogin,
    service: GlobalAdminService = Depends(get_global_admin_service),
    _: None = Depends(rate_limit_global_login),
):
    result = service.login(data.email, data.password)
    return {"token": result["token"], "tokenType": "bearer", "admin": _to_admin_response(result["admin"])}


@router.get("/profile", response_model=GlobalAdminResponse)
async def get_global_admin_profile(admin: GlobalAdmin = Depends(get_current_global_admin)):
    return _to_admin_response(admin)


# ============================================================================
# CHURCHES
# ============================================================================


@router.get("/churches", response_model=ChurchListResponse)
async def list_churches(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc"),
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    result = service.list_churches(page, limit, search, status, sortBy, sortOrder)
    result["churches"] = [_to_church_summary(s) for s in result["churches"]]
    return result


@router.post("/churches", response_model=ChurchSummary, status_code=201)
async def create_church(
    data: ChurchCreateRequest,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    """Create a church with its account owner and a trial subscription"""
    logger.info(f"📥 Global admin {admin.email} creating church {data.name}")
    return _to_church_summary(service.create_church(data))


@router.get("/churches/{church_id}", response_model=ChurchSummary)
async def get_church(
    church_id: str,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    return _to_church_summary(service.get_church_detail(church_id))


@router.patch("/churches/{church_id}/status", response_model=ChurchSummary)
async def update_church_status(
    church_id: str,
    data: ChurchStatusUpdate,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    return _to_church_summary(service.update_church_status(church_id, data.status))


@router.get("/churches/{church_id}/users", response_model=list[UserResponse])
async def get_church_users(
    church_id: str,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    return [to_user_response(u) for u in service.get_church_users(church_id)]


# ============================================================================
# SYSTEM EMAIL TEMPLATES
# ============================================================================


@router.get("/email-templates", response_model=list[EmailTemplateResponse])
async def get_system_templates(
    admin: GlobalAdmin = Depends(get_current_global_admin),
    db: Session = Depends(get_db),
):
    return [to_template_response(t) for t in EmailTemplateService(db).get_templates(None)]


@router.get("/email-templates/{template_type}", response_model=EmailTemplateResponse)
async def get_system_template(
    template_type: str,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    db: Session = Depends(get_db),
):
    return to_template_response(EmailTemplateService(db).get_template(None, template_type))


@router.put("/email-templates/{template_type}", response_model=EmailTemplateResponse)
async def update_system_template(
    template_type: str,
    data: EmailTemplateUpdate,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    db: Session = Depends(get_db),
):
    return to_template_response(EmailTemplateService(db).update_template(None, template_type, data))


@router.post("/email-templates/{template_type}/reset", response_model=EmailTemplateResponse)
async def reset_system_template(
    template_type: str,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    db: Session = Depends(get_db),
):
    return to_template_response(EmailTemplateService(db).reset_template(None, template_type))


# ============================================================================
# INTEGRATIONS
# ============================================================================


@router.get("/integrations/{name}")
async def get_integration(
    name: str,
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    """Integration settings with secrets masked"""
    return service.get_integration(name)


@router.put("/integrations/{name}")
async def update_integration(
    name: str,
    settings: dict[str, Any] = Body(...),
    admin: GlobalAdmin = Depends(get_current_global_admin),
    service: GlobalAdminService = Depends(get_global_admin_service),
):
    return service.update_integration(name, settings)

"""Email template router - church-scoped templates"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import EmailTemplate, User
from .schemas import EmailTemplateResponse, EmailTemplateUpdate
from .service import EmailTemplateService

router = APIRouter(prefix="/api/email-templates", tags=["Email Templates"])


def get_email_template_service(db: Session = Depends(get_db)) -> EmailTemplateService:
    """Dependency injection for EmailTemplateService"""
    return EmailTemplateService(db)


def to_template_response(template: EmailTemplate) -> EmailTemplateResponse:
    return EmailTemplateResponse(
        id=template.id,
        templateType=template.template_type,
        subject=template.subject,
        bodyHtml=template.body_html,
        bodyText=template.body_text,
        churchId=template.church_id,
        updatedAt=template.updated_at,
    )


@router.get("", response_model=list[EmailTemplateResponse])
async def get_email_templates(
    current_user: User = Depends(require_admin),
    service: EmailTemplateService = Depends(get_email_template_service),
):
    return [to_template_response(t) for t in service.get_templates(current_user.church_id)]


@router.get("/{template_type}", response_model=EmailTemplateResponse)
async def get_email_template(
    template_type: str,
    current_user: User = Depends(require_admin),
    service: EmailTemplateService = Depends(get_email_template_service),
):
    return to_template_response(service.get_template(current_user.church_id, template_type))


@router.put("/{template_type}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_type: str,
    data: EmailTemplateUpdate,
    current_user: User = Depends(require_admin),
    service: EmailTemplateService = Depends(get_email_template_service),
):
    return to_template_response(service.update_template(current_user.church_id, template_type, data))


@router.post("/{template_type}/reset", response_model=EmailTemplateResponse)
async def reset_email_template(
    template_type: str,
    current_user: User = Depends(require_admin),
    service: EmailTemplateService = Depends(get_email_template_service),
):
    """Restore the template to the system default"""
    return to_template_response(service.reset_template(current_user.church_id, template_type))

"""
Templated notification emails
Welcome, password reset, donation confirmation and count report messages rendered
from the church's email templates and delivered through email_service
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import email_service
from ..config import FRONTEND_URL
from ..domain.email_templates.service import EmailTemplateService
from ..email_templates import TRANSPARENT_PIXEL
from ..models import Batch, Church, Donation, EmailTemplateType, ReportRecipient, User
from ..shared.formatting import format_currency, format_long_date
from .count_report_pdf import generate_count_report_pdf, report_filename, summarize_batch

logger = logging.getLogger(__name__)


async def _send_templated(
    db: Session,
    church_id: str,
    template_type: str,
    to: str,
    variables: dict,
    attachments: Optional[list[dict]] = None,
) -> bool:
    """Render and send; returns False instead of raising on delivery failure"""
    try:
        rendered = EmailTemplateService(db).render(church_id, template_type, variables)
        await email_service.send_email(
            to=to,
            subject=rendered["subject"],
            html_content=rendered["html"],
            text_content=rendered["text"],
            attachments=attachments,
        )
        return True
    except email_service.EmailDeliveryError as e:
        logger.error(f"❌ Failed to send {template_type} email to {to}: {e}")
        return False


async def send_welcome_email(db: Session, user: User, token: str) -> bool:
    variables = {
        "firstName": user.first_name or "",
        "lastName": user.last_name or "",
        "churchName": user.church.name if user.church else "",
        "verificationUrl": f"{FRONTEND_URL}/set-password?token={token}",
    }
    return await _send_templated(db, user.church_id, EmailTemplateType.WELCOME_EMAIL, user.email, variables)


async def send_password_reset_email(db: Session, user: User, token: str) -> bool:
    variables = {
        "firstName": user.first_name or "",
        "lastName": user.last_name or "",
        "churchName": user.church.name if user.church else "",
        "resetUrl": f"{FRONTEND_URL}/reset-password?token={token}",
    }
    return await _send_templated(db, user.church_id, EmailTemplateType.PASSWORD_RESET, user.email, variables)


async def send_donation_confirmation(db: Session, donation: Donation) -> bool:
    """Thank-you email to the donor; False when the donor has no email"""
    member = donation.member
    if not member or not member.email:
        return False

    church = db.get(Church, donation.church_id)
    variables = {
        "donorName": member.full_name,
        "amount": format_currency(donation.amount),
        "date": format_long_date(donation.date),
        "churchName": church.name if church else "",
        "donationId": donation.id,
        "churchLogoUrl": church.logo_url if church and church.logo_url else TRANSPARENT_PIXEL,
    }
    return await _send_templated(
        db, donation.church_id, EmailTemplateType.DONATION_CONFIRMATION, member.email, variables
    )


async def send_count_reports(db: Session, batch: Batch) -> dict:
    """Email the finalized count report (with PDF) to every report recipient"""
    recipients = (
        db.query(ReportRecipient)
        .filter(ReportRecipient.church_id == batch.church_id)
        .order_by(ReportRecipient.last_name, ReportRecipient.first_name)
        .all()
    )
    if not recipients:
        logger.info(f"📭 No report recipients for church {batch.church_id}, skipping count report")
        return {"sent": 0, "failed": 0}

    church = db.get(Church, batch.church_id)
    summary = summarize_batch(batch)
    pdf_bytes = generate_count_report_pdf(batch, church)
    attachment = {"filename": report_filename(batch), "content": pdf_bytes}

    sent = failed = 0
    for recipient in recipients:
        variables = {
            "recipientName": f"{recipient.first_name} {recipient.last_name}",
            "churchName": church.name if church else "",
            "batchName": batch.name,
            "batchDate": format_long_date(batch.date),
            "totalAmount": format_currency(summary["total"]),
            "cashAmount": format_currency(summary["cash"]),
            "checkAmount": format_currency(summary["check"]),
            "donationCount": summary["count"],
        }
        ok = await _send_templated(
            db,
            batch.church_id,
            EmailTemplateType.COUNT_REPORT,
            recipient.email,
            variables,
            attachments=[attachment],
        )
        if ok:
            sent += 1
        else:
            failed += 1

    logger.info(f"📊 Count report for batch {batch.id}: {sent} sent, {failed} failed")
    return {"sent": sent, "failed": failed}

"""
Email Service using Resend or SMTP
Compiles MJML templates and renders {{placeholder}} variables
"""

import logging
import re
import smtplib
import ssl
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
)
from .email_templates import test_email_template, verification_code_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class EmailDeliveryError(Exception):
    """Raised when no provider could deliver a message"""


def render_placeholders(template: str, variables: dict) -> str:
    """Replace {{name}} placeholders; unknown names are left untouched"""
    if not template:
        return ""

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables and variables[key] is not None:
            return str(variables[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


@lru_cache(maxsize=32)
def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
    text_content: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(to)

    body = MIMEMultipart("alternative")
    if text_content:
        body.attach(MIMEText(text_content, "plain"))
    body.attach(MIMEText(html_content, "html"))
    msg.attach(body)

    for attachment in attachments or []:
        part = MIMEApplication(attachment["content"], Name=attachment["filename"])
        part["Content-Disposition"] = f'attachment; filename="{attachment["filename"]}"'
        msg.attach(part)

    if SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=ssl.create_default_context(), timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        if SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())

    try:
        if SMTP_USERNAME and SMTP_PASSWORD:
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
        server.sendmail(from_address, to, msg.as_string())
    finally:
        server.quit()

    logger.info(f"✅ Email sent via SMTP to {to}")
    return {"id": None, "provider": "smtp"}


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    html_content: Optional[str] = None,
    mjml_content: Optional[str] = None,
    text_content: Optional[str] = None,
    from_address: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        html_content: Ready HTML body
        mjml_content: MJML body, compiled when html_content is not given
        text_content: Optional plain text alternative
        from_address: Optional custom from address
        attachments: Optional list of {"filename", "content"} dicts

    Returns:
        Send response dict
    """
    if html_content is None:
        if mjml_content is None:
            raise ValueError("Either html_content or mjml_content is required")
        html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else list(to)
    sender = from_address or EMAIL_FROM_ADDRESS

    if SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(recipients, subject, html_content, sender, text_content, attachments)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP")
        raise EmailDeliveryError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": sender,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            email_data["text"] = text_content
        if attachments:
            email_data["attachments"] = [
                {"filename": a["filename"], "content": list(a["content"])} for a in attachments
            ]

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# System emails
# ============================================


async def send_verification_code_email(to: str, first_name: str, code: str, church_name: str) -> dict:
    """Send the 6-digit registration verification code"""
    html = render_placeholders(
        compile_mjml_to_html(verification_code_template(first_name or "there", code)),
        {"churchName": church_name},
    )
    return await send_email(
        to=to,
        subject="Your PlateSync verification code",
        html_content=html,
        text_content=f"Your PlateSync verification code is {code}. It expires in 15 minutes.",
    )


async def send_test_email(to: str, user_name: str, church_name: str) -> dict:
    """Send a test email for the email settings page"""
    html = render_placeholders(
        compile_mjml_to_html(test_email_template(user_name)), {"churchName": church_name}
    )
    return await send_email(to=to, subject="PlateSync test email", html_content=html)

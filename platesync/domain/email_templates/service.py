"""Email template service - initialization, editing, reset and rendering"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import compile_mjml_to_html, render_placeholders
from ...email_templates import DEFAULT_TEMPLATES
from ...models import EmailTemplate, EmailTemplateType
from ...security_utils import sanitize_html
from .repository import EmailTemplateRepository
from .schemas import EmailTemplateUpdate

logger = logging.getLogger(__name__)


def default_template_content(template_type: str) -> dict:
    """Built-in subject/body for a template type"""
    default = DEFAULT_TEMPLATES[template_type]
    return {
        "subject": default["subject"],
        "body_html": compile_mjml_to_html(default["mjml"]()),
        "body_text": default["text"],
    }


class EmailTemplateService:
    """Pass church_id=None to work with system templates"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EmailTemplateRepository()

    def _validate_type(self, template_type: str) -> str:
        template_type = template_type.upper()
        if template_type not in EmailTemplateType.ALL:
            raise HTTPException(status_code=404, detail="Unknown email template type")
        return template_type

    def _base_content(self, church_id: Optional[str], template_type: str) -> dict:
        """System template content for churches, built-in default for the system itself"""
        if church_id is not None:
            system = self.repo.get_template(self.db, None, template_type)
            if system:
                return {
                    "subject": system.subject,
                    "body_html": system.body_html,
                    "body_text": system.body_text,
                }
        return default_template_content(template_type)

    def ensure_templates(self, church_id: Optional[str]) -> None:
        """Create any missing template rows for the church (or the system)"""
        created = 0
        for template_type in EmailTemplateType.ALL:
            if self.repo.get_template(self.db, church_id, template_type):
                continue
            self.repo.create_template(
                self.db,
                commit=False,
                church_id=church_id,
                template_type=template_type,
                **self._base_content(church_id, template_type),
            )
            created += 1

        if created:
            self.db.commit()
            logger.info(f"✅ Initialized {created} email templates for {church_id or 'system'}")

    def get_templates(self, church_id: Optional[str]) -> list[EmailTemplate]:
        self.ensure_templates(church_id)
        return self.repo.get_templates(self.db, church_id)

    def get_template(self, church_id: Optional[str], template_type: str) -> EmailTemplate:
        template_type = self._validate_type(template_type)
        template = self.repo.get_template(self.db, church_id, template_type)
        if not template:
            self.ensure_templates(church_id)
            template = self.repo.get_template(self.db, church_id, template_type)
        return template

    def update_template(
        self, church_id: Optional[str], template_type: str, data: EmailTemplateUpdate
    ) -> EmailTemplate:
        template = self.get_template(church_id, template_type)

        updates = {}
        if data.subject is not None:
            if not data.subject.strip():
                raise HTTPException(status_code=400, detail="Subject cannot be empty")
            updates["subject"] = data.subject.strip()
        if data.bodyHtml is not None:
            if not data.bodyHtml.strip():
                raise HTTPException(status_code=400, detail="Email body cannot be empty")
            updates["body_html"] = sanitize_html(data.bodyHtml)
        if data.bodyText is not None:
            updates["body_text"] = data.bodyText

        logger.info(f"📝 Updating {template.template_type} template for {church_id or 'system'}")
        return self.repo.update_template(self.db, template, **updates)

    def reset_template(self, church_id: Optional[str], template_type: str) -> EmailTemplate:
        template = self.get_template(church_id, template_type)
        content = self._base_content(church_id, template.template_type)
        logger.info(f"🔄 Resetting {template.template_type} template for {church_id or 'system'}")
        return self.repo.update_template(self.db, template, **content)

    def render(self, church_id: str, template_type: str, variables: dict) -> dict:
        """Render subject, html and text for a message"""
        template = self.get_template(church_id, template_type)
        return {
            "subject": render_placeholders(template.subject, variables),
            "html": render_placeholders(template.body_html, variables),
            "text": render_placeholders(template.body_text or "", variables) or None,
        }

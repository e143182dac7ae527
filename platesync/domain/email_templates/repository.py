"""Email template repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import EmailTemplate


class EmailTemplateRepository:
    """Church templates have a church_id; system templates have none"""

    @staticmethod
    def get_templates(db: Session, church_id: Optional[str]) -> list[EmailTemplate]:
        query = db.query(EmailTemplate)
        if church_id is None:
            query = query.filter(EmailTemplate.church_id.is_(None))
        else:
            query = query.filter(EmailTemplate.church_id == church_id)
        return query.order_by(EmailTemplate.template_type).all()

    @staticmethod
    def get_template(db: Session, church_id: Optional[str], template_type: str) -> Optional[EmailTemplate]:
        query = db.query(EmailTemplate).filter(EmailTemplate.template_type == template_type)
        if church_id is None:
            query = query.filter(EmailTemplate.church_id.is_(None))
        else:
            query = query.filter(EmailTemplate.church_id == church_id)
        return query.first()

    @staticmethod
    def get_template_by_id(db: Session, template_id: int, church_id: Optional[str]) -> Optional[EmailTemplate]:
        query = db.query(EmailTemplate).filter(EmailTemplate.id == template_id)
        if church_id is None:
            query = query.filter(EmailTemplate.church_id.is_(None))
        else:
            query = query.filter(EmailTemplate.church_id == church_id)
        return query.first()

    @staticmethod
    def create_template(db: Session, commit: bool = True, **data) -> EmailTemplate:
        template = EmailTemplate(**data)
        db.add(template)
        if commit:
            db.commit()
            db.refresh(template)
        else:
            db.flush()
        return template

    @staticmethod
    def update_template(db: Session, template: EmailTemplate, **updates) -> EmailTemplate:
        for key, value in updates.items():
            if value is not None and hasattr(template, key):
                setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template

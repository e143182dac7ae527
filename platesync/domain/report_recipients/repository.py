"""Report recipient repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ReportRecipient


class ReportRecipientRepository:
    @staticmethod
    def get_recipients(db: Session, church_id: str) -> list[ReportRecipient]:
        return (
            db.query(ReportRecipient)
            .filter(ReportRecipient.church_id == church_id)
            .order_by(ReportRecipient.last_name, ReportRecipient.first_name)
            .all()
        )

    @staticmethod
    def get_recipient_by_id(db: Session, recipient_id: int, church_id: str) -> Optional[ReportRecipient]:
        return (
            db.query(ReportRecipient)
            .filter(ReportRecipient.id == recipient_id, ReportRecipient.church_id == church_id)
            .first()
        )

    @staticmethod
    def create_recipient(db: Session, church_id: str, **data) -> ReportRecipient:
        recipient = ReportRecipient(church_id=church_id, **data)
        db.add(recipient)
        db.commit()
        db.refresh(recipient)
        return recipient

    @staticmethod
    def update_recipient(db: Session, recipient: ReportRecipient, **updates) -> ReportRecipient:
        for key, value in updates.items():
            if value is not None and hasattr(recipient, key):
                setattr(recipient, key, value)
        db.commit()
        db.refresh(recipient)
        return recipient

    @staticmethod
    def delete_recipient(db: Session, recipient: ReportRecipient) -> None:
        db.delete(recipient)
        db.commit()

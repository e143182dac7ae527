"""Service option repository - Database operations for service options"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceOption


class ServiceOptionRepository:
    """Repository for service option database operations"""

    @staticmethod
    def get_options(db: Session, church_id: str) -> list[ServiceOption]:
        return (
            db.query(ServiceOption)
            .filter(ServiceOption.church_id == church_id)
            .order_by(ServiceOption.is_default.desc(), ServiceOption.name)
            .all()
        )

    @staticmethod
    def get_option_by_id(db: Session, option_id: int, church_id: str) -> Optional[ServiceOption]:
        return (
            db.query(ServiceOption)
            .filter(ServiceOption.id == option_id, ServiceOption.church_id == church_id)
            .first()
        )

    @staticmethod
    def get_default(db: Session, church_id: str) -> Optional[ServiceOption]:
        return (
            db.query(ServiceOption)
            .filter(ServiceOption.church_id == church_id, ServiceOption.is_default.is_(True))
            .first()
        )

    @staticmethod
    def count_options(db: Session, church_id: str) -> int:
        return db.query(ServiceOption).filter(ServiceOption.church_id == church_id).count()

    @staticmethod
    def clear_default(db: Session, church_id: str, except_id: Optional[int] = None) -> None:
        """Unset is_default on every option of the church (flush only, caller commits)"""
        query = db.query(ServiceOption).filter(
            ServiceOption.church_id == church_id, ServiceOption.is_default.is_(True)
        )
        if except_id is not None:
            query = query.filter(ServiceOption.id != except_id)
        query.update({ServiceOption.is_default: False}, synchronize_session=False)

    @staticmethod
    def create_option(db: Session, church_id: str, commit: bool = True, **data) -> ServiceOption:
        option = ServiceOption(church_id=church_id, **data)
        db.add(option)
        if commit:
            db.commit()
            db.refresh(option)
        else:
            db.flush()
        return option

    @staticmethod
    def update_option(db: Session, option: ServiceOption, **updates) -> ServiceOption:
        for key, value in updates.items():
            if value is not None and hasattr(option, key):
                setattr(option, key, value)
        db.commit()
        db.refresh(option)
        return option

    @staticmethod
    def delete_option(db: Session, option: ServiceOption) -> None:
        db.delete(option)
        db.commit()

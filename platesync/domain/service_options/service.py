"""Service option service - one default per church, seeded defaults"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ServiceOption
from ...shared.validators import slugify
from .repository import ServiceOptionRepository
from .schemas import ServiceOptionCreate, ServiceOptionUpdate

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_OPTIONS = [
    ("Sunday Morning", True),
    ("Sunday Evening", False),
    ("Wednesday Night", False),
    ("Special Event", False),
]


class ServiceOptionService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceOptionRepository()

    def ensure_defaults(self, church_id: str) -> None:
        """Seed the default options when a church has none"""
        if self.repo.count_options(self.db, church_id) > 0:
            return

        for name, is_default in DEFAULT_SERVICE_OPTIONS:
            self.repo.create_option(
                self.db, church_id, commit=False, name=name, value=slugify(name), is_default=is_default
            )
        self.db.commit()
        logger.info(f"✅ Seeded default service options for church {church_id}")

    def get_options(self, church_id: str) -> list[ServiceOption]:
        self.ensure_defaults(church_id)
        return self.repo.get_options(self.db, church_id)

    def get_option(self, option_id: int, church_id: str) -> ServiceOption:
        option = self.repo.get_option_by_id(self.db, option_id, church_id)
        if not option:
            raise HTTPException(status_code=404, detail="Service option not found")
        return option

    def get_default_name(self, church_id: str) -> Optional[str]:
        option = self.repo.get_default(self.db, church_id)
        return option.name if option else None

    def create_option(self, data: ServiceOptionCreate, church_id: str) -> ServiceOption:
        if data.isDefault:
            self.repo.clear_default(self.db, church_id)

        return self.repo.create_option(
            self.db,
            church_id,
            name=data.name,
            value=(data.value or slugify(data.name)),
            is_default=data.isDefault,
        )

    def update_option(self, option_id: int, data: ServiceOptionUpdate, church_id: str) -> ServiceOption:
        option = self.get_option(option_id, church_id)

        updates = {}
        if data.name is not None and data.name.strip():
            updates["name"] = data.name.strip()
        if data.value is not None and data.value.strip():
            updates["value"] = data.value.strip()
        if data.isDefault is not None:
            if data.isDefault:
                self.repo.clear_default(self.db, church_id, except_id=option.id)
            # update_option skips None only, so False is applied
            updates["is_default"] = data.isDefault

        return self.repo.update_option(self.db, option, **updates)

    def delete_option(self, option_id: int, church_id: str) -> dict:
        option = self.get_option(option_id, church_id)
        self.repo.delete_option(self.db, option)
        return {"message": "Service option deleted"}

"""Global admin service - cross-tenant church management and integrations"""

import json
import logging
import math
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...auth import create_global_admin_token
from ...config import GLOBAL_ADMIN_EMAIL, GLOBAL_ADMIN_PASSWORD
from ...models import Church, ChurchStatus, GlobalAdmin, SystemConfig, User, utcnow
from ...security_utils import hash_password, verify_password
from ..churches.repository import ChurchRepository
from ..churches.service import ChurchService
from ..users.repository import UserRepository
from .schemas import ChurchCreateRequest

logger = logging.getLogger(__name__)

INTEGRATIONS = ("stripe", "sendgrid", "planning-center", "aws-s3")
SECRET_MARKERS = ("secret", "key", "password", "token")
MASK_PREFIX = "••••"

SORT_COLUMNS = {"name": Church.name, "createdAt": Church.created_at}


def mask_secret(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return f"{MASK_PREFIX}{value[-4:]}" if len(value) > 4 else MASK_PREFIX


def _is_secret(field: str) -> bool:
    return any(marker in field.lower() for marker in SECRET_MARKERS)


def bootstrap_global_admin(db: Session) -> Optional[GlobalAdmin]:
    """Create the configured global admin at startup if it does not exist yet"""
    if not GLOBAL_ADMIN_EMAIL or not GLOBAL_ADMIN_PASSWORD:
        return None

    email = GLOBAL_ADMIN_EMAIL.strip().lower()
    admin = db.query(GlobalAdmin).filter(GlobalAdmin.email == email).first()
    if admin:
        return admin

    admin = GlobalAdmin(email=email, password_hash=hash_password(GLOBAL_ADMIN_PASSWORD))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"✅ Bootstrapped global admin {email}")
    return admin


class GlobalAdminService:
    def __init__(self, db: Session):
        self.db = db
        self.church_repo = ChurchRepository()
        self.user_repo = UserRepository()

    # ========================================================================
    # AUTH
    # ========================================================================

    def login(self, email: str, password: str) -> dict:
        admin = self.db.query(GlobalAdmin).filter(func.lower(GlobalAdmin.email) == email).first()
        if not admin or not verify_password(password, admin.password_hash):
            logger.warning(f"⚠️ Failed global admin login for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        admin.last_login_at = utcnow()
        self.db.commit()
        self.db.refresh(admin)

        logger.info(f"✅ Global admin logged in: {admin.email}")
        return {"token": create_global_admin_token(admin), "admin": admin}

    # ========================================================================
    # CHURCHES
    # ========================================================================

    def _summary(self, church: Church) -> dict:
        subscription = church.subscription
        return {
            "church": church,
            "stats": self.church_repo.get_church_stats(self.db, church.id),
            "subscription": subscription,
        }

    def list_churches(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)

        query = self.db.query(Church)
        if search and search.strip():
            query = query.filter(func.lower(Church.name).like(f"%{search.strip().lower()}%"))
        if status and status.upper() != "ALL":
            query = query.filter(Church.status == status.upper())

        total = query.count()

        column = SORT_COLUMNS.get(sort_by, Church.created_at)
        query = query.order_by(column.asc() if sort_order.lower() == "asc" else column.desc())
        churches = query.offset((page - 1) * limit).limit(limit).all()

        return {
            "churches": [self._summary(c) for c in churches],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        }

    def get_church(self, church_id: str) -> Church:
        church = self.church_repo.get_church_by_id(self.db, church_id)
        if not church:
            raise HTTPException(status_code=404, detail="Church not found")
        return church

    def get_church_detail(self, church_id: str) -> dict:
        return self._summary(self.get_church(church_id))

    def create_church(self, data: ChurchCreateRequest) -> dict:
        church, _ = ChurchService(self.db).create_church_with_owner(
            church_name=data.name,
            owner_email=data.adminEmail,
            first_name=data.adminFirstName,
            last_name=data.adminLastName,
            password=data.adminPassword,
            contact_email=data.contactEmail,
            is_verified=True,
        )
        return self._summary(church)

    def update_church_status(self, church_id: str, status: str) -> dict:
        church = self.get_church(church_id)

        updates = {"status": status}
        if status == ChurchStatus.DELETED:
            updates["deleted_at"] = utcnow()
        elif status == ChurchStatus.ACTIVE:
            updates["deleted_at"] = None

        church = self.church_repo.update_church(self.db, church, **updates)
        logger.info(f"🔄 Church {church_id} status changed to {status}")
        return self._summary(church)

    def get_church_users(self, church_id: str) -> list[User]:
        self.get_church(church_id)
        return self.user_repo.get_users(self.db, church_id)

    # ========================================================================
    # INTEGRATIONS
    # ========================================================================

    def _validate_integration(self, name: str) -> str:
        if name not in INTEGRATIONS:
            raise HTTPException(status_code=404, detail="Unknown integration")
        return name

    def _load_integration(self, name: str) -> tuple[Optional[SystemConfig], dict]:
        row = self.db.query(SystemConfig).filter(SystemConfig.key == f"integration.{name}").first()
        if not row or not row.value:
            return row, {}
        try:
            return row, json.loads(row.value)
        except json.JSONDecodeError:
            logger.error(f"❌ Corrupt integration settings for {name}; ignoring stored value")
            return row, {}

    def get_integration(self, name: str) -> dict:
        name = self._validate_integration(name)
        _, settings = self._load_integration(name)
        masked = {k: mask_secret(v) if _is_secret(k) else v for k, v in settings.items()}
        return {"name": name, "configured": bool(settings), "settings": masked}

    def update_integration(self, name: str, settings: dict) -> dict:
        name = self._validate_integration(name)
        row, current = self._load_integration(name)

        for field, value in settings.items():
            # Masked values echoed back by the UI keep the stored secret
            if isinstance(value, str) and value.startswith(MASK_PREFIX):
                continue
            current[field] = value

        if row is None:
            row = SystemConfig(key=f"integration.{name}")
            self.db.add(row)
        row.value = json.dumps(current)
        self.db.commit()

        logger.info(f"🔧 Updated {name} integration settings")
        return self.get_integration(name)

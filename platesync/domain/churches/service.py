"""Church service - tenant creation, profile, logo and email settings"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ... import email_service, storage
from ...models import Church, ChurchStatus, User, UserRole, utcnow
from ...security_utils import hash_password
from ..billing.subscription_service import SubscriptionService
from ..service_options.service import ServiceOptionService
from ..users.repository import UserRepository
from .repository import ChurchRepository
from .schemas import ChurchUpdate, EmailSettingsUpdate

logger = logging.getLogger(__name__)

# camelCase wire field -> model column
CHURCH_FIELD_MAP = {
    "name": "name",
    "contactEmail": "contact_email",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "websiteUrl": "website_url",
    "denomination": "denomination",
}


class ChurchService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ChurchRepository()
        self.user_repo = UserRepository()

    def get_church(self, church_id: str) -> Church:
        church = self.repo.get_church_by_id(self.db, church_id)
        if not church or church.status == ChurchStatus.DELETED:
            raise HTTPException(status_code=404, detail="Church not found")
        return church

    def create_church_with_owner(
        self,
        church_name: str,
        owner_email: str,
        first_name: Optional[str],
        last_name: Optional[str],
        password: str,
        contact_email: Optional[str] = None,
        is_verified: bool = False,
    ) -> tuple[Church, User]:
        """
        Create a church tenant with its account owner and a trial subscription.

        Church, owner and subscription are committed together; default service
        options are seeded afterwards.
        """
        if self.user_repo.get_user_by_email(self.db, owner_email):
            raise HTTPException(status_code=409, detail="An account with this email already exists")

        church = self.repo.create_church(
            self.db,
            commit=False,
            name=church_name.strip(),
            contact_email=contact_email or owner_email,
            status=ChurchStatus.ACTIVE,
        )
        owner = self.user_repo.create_user(
            self.db,
            church.id,
            commit=False,
            email=owner_email,
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ACCOUNT_OWNER,
            is_account_owner=True,
            password_hash=hash_password(password),
            is_verified=is_verified,
        )
        church.account_owner_id = owner.id
        SubscriptionService(self.db).start_trial(church.id, commit=False)

        self.db.commit()
        self.db.refresh(church)
        self.db.refresh(owner)

        ServiceOptionService(self.db).ensure_defaults(church.id)

        logger.info(f"✅ Created church {church.id} with account owner {owner.email}")
        return church, owner

    def update_church(self, church_id: str, data: ChurchUpdate) -> Church:
        church = self.get_church(church_id)
        provided = data.model_dump(exclude_unset=True)

        updates = {}
        for field, column in CHURCH_FIELD_MAP.items():
            if field not in provided:
                continue
            if field == "name" and not provided[field]:
                continue
            updates[column] = provided[field]

        return self.repo.update_church(self.db, church, **updates)

    # ========================================================================
    # LOGO
    # ========================================================================

    async def upload_logo(self, church_id: str, file: UploadFile) -> Church:
        church = self.get_church(church_id)
        content, extension = await storage.read_image_upload(file)

        url = storage.upload_image(
            content, f"church-logos/{church_id}", extension, file.content_type
        )
        previous = church.logo_url
        church = self.repo.update_church(self.db, church, logo_url=url)
        if previous:
            storage.delete_object(previous)

        logger.info(f"✅ Updated logo for church {church_id}")
        return church

    def delete_logo(self, church_id: str) -> Church:
        church = self.get_church(church_id)
        if church.logo_url:
            storage.delete_object(church.logo_url)
        return self.repo.update_church(self.db, church, logo_url=None)

    # ========================================================================
    # EMAIL SETTINGS
    # ========================================================================

    def update_email_settings(self, user: User, data: EmailSettingsUpdate) -> dict:
        self.user_repo.update_user(
            self.db, user, email_notifications_enabled=data.emailNotificationsEnabled
        )
        return {"emailNotificationsEnabled": user.email_notifications_enabled}

    async def send_test_email(self, user: User) -> dict:
        church = self.get_church(user.church_id)
        try:
            await email_service.send_test_email(user.email, user.full_name, church.name)
        except email_service.EmailDeliveryError as e:
            logger.error(f"❌ Test email to {user.email} failed: {e}")
            raise HTTPException(status_code=502, detail="Failed to send test email")

        logger.info(f"📧 Test email sent to {user.email}")
        return {"message": f"Test email sent to {user.email}", "sentAt": utcnow()}

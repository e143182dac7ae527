"""User service - church staff management and self-service profile"""

import logging
from datetime import timedelta

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ... import storage
from ...config import WELCOME_TOKEN_EXPIRE_HOURS
from ...models import User, UserRole, utcnow
from ...security_utils import generate_secure_token, hash_password, verify_password
from ...services.notifications import send_welcome_email
from .repository import UserRepository
from .schemas import PasswordChange, RoleUpdate, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_users(self, church_id: str) -> list[User]:
        return self.repo.get_users(self.db, church_id)

    def get_user(self, user_id: str, church_id: str) -> User:
        user = self.repo.get_user_by_id(self.db, user_id, church_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    async def create_user(self, data: UserCreate, current_user: User) -> User:
        """Invite a staff member; they set their password from the welcome email"""
        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        token = generate_secure_token()
        user = self.repo.create_user(
            self.db,
            current_user.church_id,
            email=data.email,
            first_name=data.firstName,
            last_name=data.lastName,
            role=data.role,
            is_verified=False,
            password_reset_token=token,
            password_reset_expires=utcnow() + timedelta(hours=WELCOME_TOKEN_EXPIRE_HOURS),
        )
        logger.info(f"✅ Created {user.role} user {user.email} in church {user.church_id}")

        if not await send_welcome_email(self.db, user, token):
            logger.warning(f"⚠️ Welcome email to {user.email} was not delivered")
        return user

    def update_user(self, user_id: str, data: UserUpdate, current_user: User) -> User:
        if user_id != current_user.id and not current_user.is_admin:
            raise HTTPException(status_code=403, detail="You can only update your own profile")

        user = self.get_user(user_id, current_user.church_id)
        return self._apply_profile(user, data)

    def _apply_profile(self, user: User, data: UserUpdate) -> User:
        updates = {}
        if data.firstName is not None:
            updates["first_name"] = data.firstName.strip()
        if data.lastName is not None:
            updates["last_name"] = data.lastName.strip()
        if data.username is not None:
            updates["username"] = data.username.strip() or None
        if data.bio is not None:
            updates["bio"] = data.bio
        return self.repo.update_user(self.db, user, **updates)

    def change_role(self, user_id: str, data: RoleUpdate, current_user: User) -> User:
        user = self.get_user(user_id, current_user.church_id)
        if user.role == UserRole.ACCOUNT_OWNER:
            raise HTTPException(status_code=400, detail="The account owner's role cannot be changed")

        logger.info(f"🔄 Role change for {user.email}: {user.role} -> {data.role}")
        return self.repo.update_user(self.db, user, role=data.role)

    def delete_user(self, user_id: str, current_user: User) -> dict:
        if user_id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        user = self.get_user(user_id, current_user.church_id)
        if user.role == UserRole.ACCOUNT_OWNER or user.is_account_owner:
            raise HTTPException(status_code=400, detail="The account owner cannot be deleted")

        self.repo.delete_user(self.db, user)
        logger.info(f"🗑️ Deleted user {user_id} from church {current_user.church_id}")
        return {"message": "User deleted"}

    def transfer_ownership(self, new_owner_id: str, current_user: User) -> User:
        """Swap ACCOUNT_OWNER with an ADMIN of the same church in one commit"""
        if new_owner_id == current_user.id:
            raise HTTPException(status_code=400, detail="You already own this account")

        new_owner = self.get_user(new_owner_id, current_user.church_id)
        if new_owner.role != UserRole.ADMIN:
            raise HTTPException(status_code=400, detail="Ownership can only be transferred to an admin")

        current_user.role = UserRole.ADMIN
        current_user.is_account_owner = False
        new_owner.role = UserRole.ACCOUNT_OWNER
        new_owner.is_account_owner = True
        current_user.church.account_owner_id = new_owner.id
        self.db.commit()
        self.db.refresh(new_owner)

        logger.info(
            f"✅ Transferred ownership of church {current_user.church_id} "
            f"from {current_user.email} to {new_owner.email}"
        )
        return new_owner

    # ========================================================================
    # SELF-SERVICE PROFILE
    # ========================================================================

    def update_profile(self, current_user: User, data: UserUpdate) -> User:
        return self._apply_profile(current_user, data)

    def change_password(self, current_user: User, data: PasswordChange) -> dict:
        if not verify_password(data.currentPassword, current_user.password_hash):
            raise HTTPException(status_code=400, detail="Current password is incorrect")

        self.repo.update_user(self.db, current_user, password_hash=hash_password(data.newPassword))
        logger.info(f"🔐 Password changed for {current_user.email}")
        return {"message": "Password updated successfully"}

    async def upload_avatar(self, current_user: User, file: UploadFile) -> User:
        content, extension = await storage.read_image_upload(file)
        url = storage.upload_image(
            content, f"profile-images/{current_user.id}", extension, file.content_type
        )
        previous = current_user.profile_image_url
        user = self.repo.update_user(self.db, current_user, profile_image_url=url)
        if previous:
            storage.delete_object(previous)
        return user

"""Auth service - registration, login and token-based password flows"""

import logging
from datetime import timedelta

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import check_church_access, create_access_token
from ...config import PASSWORD_RESET_EXPIRE_HOURS, VERIFICATION_CODE_EXPIRE_MINUTES
from ...models import User, VerificationCode, utcnow
from ...security_utils import generate_secure_token, generate_verification_code, hash_password, verify_password
from ...services.notifications import send_password_reset_email
from ..churches.service import ChurchService
from ..email_templates.service import EmailTemplateService
from ..users.repository import UserRepository
from .schemas import LoginRequest, RegisterRequest, ResetPasswordRequest

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link."


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()

    # ========================================================================
    # REGISTRATION & VERIFICATION
    # ========================================================================

    async def register(self, data: RegisterRequest) -> User:
        _, owner = ChurchService(self.db).create_church_with_owner(
            church_name=data.churchName,
            owner_email=data.email,
            first_name=data.firstName,
            last_name=data.lastName,
            password=data.password,
        )
        EmailTemplateService(self.db).ensure_templates(owner.church_id)
        await self.send_verification_code(owner)
        return owner

    async def send_verification_code(self, user: User) -> None:
        code = generate_verification_code()
        self.db.add(
            VerificationCode(
                email=user.email,
                code=code,
                expires_at=utcnow() + timedelta(minutes=VERIFICATION_CODE_EXPIRE_MINUTES),
            )
        )
        self.db.commit()

        try:
            await email_service.send_verification_code_email(
                user.email, user.first_name, code, user.church.name if user.church else ""
            )
            logger.info(f"📧 Verification code sent to {user.email}")
        except email_service.EmailDeliveryError as e:
            logger.error(f"❌ Failed to send verification code to {user.email}: {e}")

    async def resend_code(self, email: str) -> dict:
        user = self.user_repo.get_user_by_email(self.db, email)
        if user and not user.is_verified:
            await self.send_verification_code(user)
        return {"message": "If the account needs verification, a new code has been sent."}

    def verify_code(self, email: str, code: str) -> User:
        record = (
            self.db.query(VerificationCode)
            .filter(
                VerificationCode.email == email,
                VerificationCode.code == code.strip(),
                VerificationCode.used_at.is_(None),
            )
            .order_by(VerificationCode.created_at.desc())
            .first()
        )
        if not record or record.expires_at < utcnow():
            raise HTTPException(status_code=400, detail="Invalid or expired verification code")

        user = self.user_repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired verification code")

        record.used_at = utcnow()
        user.is_verified = True
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ Verified email for {user.email}")
        return user

    # ========================================================================
    # LOGIN
    # ========================================================================

    def login(self, data: LoginRequest) -> dict:
        user = self.user_repo.get_user_by_email(self.db, data.email)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if not user.password_hash:
            if not user.is_verified:
                raise HTTPException(
                    status_code=403,
                    detail="Please complete your account setup using the link in your welcome email",
                )
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if not verify_password(data.password, user.password_hash):
            logger.warning(f"⚠️ Failed login attempt for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        check_church_access(user)

        now = utcnow()
        user.last_login_at = now
        user.church.last_login_date = now
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ User logged in: {user.email}")
        return {"token": create_access_token(user), "user": user}

    # ========================================================================
    # PASSWORD FLOWS
    # ========================================================================

    async def forgot_password(self, email: str) -> dict:
        """Same response whether or not the account exists"""
        user = self.user_repo.get_user_by_email(self.db, email) if email else None
        if not user:
            logger.info("📧 Password reset requested for unknown email")
            return {"message": FORGOT_PASSWORD_MESSAGE}

        token = generate_secure_token()
        self.user_repo.update_user(
            self.db,
            user,
            password_reset_token=token,
            password_reset_expires=utcnow() + timedelta(hours=PASSWORD_RESET_EXPIRE_HOURS),
        )
        await send_password_reset_email(self.db, user, token)
        return {"message": FORGOT_PASSWORD_MESSAGE}

    def _user_for_token(self, token: str) -> User:
        user = self.user_repo.get_user_by_reset_token(self.db, token) if token else None
        if not user or not user.password_reset_expires or user.password_reset_expires < utcnow():
            raise HTTPException(status_code=400, detail="Invalid or expired token")
        return user

    def reset_password(self, data: ResetPasswordRequest) -> dict:
        user = self._user_for_token(data.token)
        self.user_repo.update_user(
            self.db,
            user,
            password_hash=hash_password(data.password),
            password_reset_token=None,
            password_reset_expires=None,
        )
        logger.info(f"🔐 Password reset for {user.email}")
        return {"message": "Password has been reset successfully"}

    def set_password(self, data: ResetPasswordRequest) -> dict:
        """Welcome flow: first password for an invited user"""
        user = self._user_for_token(data.token)
        self.user_repo.update_user(
            self.db,
            user,
            password_hash=hash_password(data.password),
            password_reset_token=None,
            password_reset_expires=None,
            is_verified=True,
        )
        logger.info(f"✅ Password set and account verified for {user.email}")
        return {"message": "Password has been set successfully"}

    def validate_token(self, token: str) -> dict:
        user = self._user_for_token(token)
        return {"valid": True, "email": user.email, "firstName": user.first_name}

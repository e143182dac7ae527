"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import UserRole
from ...shared.validators import validate_email, validate_password


class UserCreate(BaseModel):
    email: str
    firstName: str
    lastName: str
    role: str = UserRole.USHER

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        email = validate_email(v)
        if not email:
            raise ValueError("Email is required")
        return email

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        v = (v or "").upper()
        if v not in UserRole.ASSIGNABLE:
            raise ValueError("Role must be ADMIN or USHER")
        return v


class UserUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        v = (v or "").upper()
        if v not in UserRole.ASSIGNABLE:
            raise ValueError("Role must be ADMIN or USHER")
        return v


class TransferOwnershipRequest(BaseModel):
    newOwnerId: str


class PasswordChange(BaseModel):
    currentPassword: str
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v):
        return validate_password(v)


class UserResponse(BaseModel):
    id: str
    email: str
    username: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    bio: Optional[str] = None
    profileImageUrl: Optional[str] = None
    role: str
    isAccountOwner: bool
    isVerified: bool
    emailNotificationsEnabled: bool
    churchId: str
    churchName: Optional[str] = None
    lastLoginAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

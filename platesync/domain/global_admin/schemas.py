"""Global admin schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import ChurchStatus
from ...shared.validators import validate_email, validate_password


class GlobalAdminLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return (v or "").strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password_field(cls, v):
        return validate_password(v, min_length=6)


class GlobalAdminResponse(BaseModel):
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    profileImageUrl: Optional[str] = None
    lastLoginAt: Optional[datetime] = None


class ChurchCreateRequest(BaseModel):
    name: str
    contactEmail: str
    adminEmail: str
    adminFirstName: str
    adminLastName: str
    adminPassword: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or len(v.strip()) < 3:
            raise ValueError("Church name must be at least 3 characters")
        return v.strip()

    @field_validator("contactEmail", "adminEmail")
    @classmethod
    def validate_emails(cls, v):
        email = validate_email(v)
        if not email:
            raise ValueError("Email is required")
        return email

    @field_validator("adminFirstName", "adminLastName")
    @classmethod
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("Admin first and last name are required")
        return v.strip()

    @field_validator("adminPassword")
    @classmethod
    def validate_password_field(cls, v):
        return validate_password(v)


class ChurchStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        v = (v or "").upper()
        if v not in ChurchStatus.ALL:
            raise ValueError(f"Status must be one of {', '.join(ChurchStatus.ALL)}")
        return v


class ChurchSummary(BaseModel):
    id: str
    name: str
    status: str
    contactEmail: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    logoUrl: Optional[str] = None
    registrationDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    deletedAt: Optional[datetime] = None
    accountOwnerId: Optional[str] = None
    subscriptionPlan: Optional[str] = None
    subscriptionStatus: Optional[str] = None
    userCount: int = 0
    totalMembers: int = 0
    totalDonations: str = "0.00"
    lastActivity: Optional[datetime] = None


class ChurchListResponse(BaseModel):
    churches: list[ChurchSummary]
    total: int
    page: int
    limit: int
    totalPages: int

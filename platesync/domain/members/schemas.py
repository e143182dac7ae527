"""Member domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_phone, validate_email


class MemberCreate(BaseModel):
    """Schema for creating a new member"""

    firstName: str
    lastName: str
    email: Optional[str] = None
    phone: Optional[str] = None
    isVisitor: bool = False
    notes: Optional[str] = None

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("First and last name are required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class MemberUpdate(BaseModel):
    """Schema for updating an existing member"""

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    isVisitor: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class BulkImportMember(BaseModel):
    """One member from a CSV file or an external system"""

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    externalId: Optional[str] = None
    externalSystem: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        try:
            return validate_email(v)
        except ValueError:
            # Imported data keeps the row but drops an unusable address
            return None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class MemberDonationSummary(BaseModel):
    id: int
    amount: str
    date: datetime
    donationType: str
    checkNumber: Optional[str] = None
    batchId: Optional[int] = None
    batchName: Optional[str] = None


class MemberResponse(BaseModel):
    """Schema for member response"""

    id: int
    firstName: str
    lastName: str
    email: Optional[str] = None
    phone: Optional[str] = None
    isVisitor: bool
    notes: Optional[str] = None
    externalId: Optional[str] = None
    externalSystem: Optional[str] = None
    churchId: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class MemberDetailResponse(MemberResponse):
    donations: list[MemberDonationSummary] = []
    totalDonated: str = "0.00"


class DuplicateGroup(BaseModel):
    firstName: str
    lastName: str
    members: list[MemberResponse]

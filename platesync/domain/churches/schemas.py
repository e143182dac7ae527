"""Church settings schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_phone, validate_email


class ChurchUpdate(BaseModel):
    name: Optional[str] = None
    contactEmail: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    websiteUrl: Optional[str] = None
    denomination: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and len(v.strip()) < 3:
            raise ValueError("Church name must be at least 3 characters")
        return v.strip() if v else v

    @field_validator("contactEmail")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class ChurchResponse(BaseModel):
    id: str
    name: str
    status: str
    contactEmail: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    logoUrl: Optional[str] = None
    websiteUrl: Optional[str] = None
    denomination: Optional[str] = None
    registrationDate: Optional[datetime] = None


class EmailSettingsUpdate(BaseModel):
    emailNotificationsEnabled: bool

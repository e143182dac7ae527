"""Report recipient schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class ReportRecipientCreate(BaseModel):
    firstName: str
    lastName: str
    email: str

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("First and last name are required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        email = validate_email(v)
        if not email:
            raise ValueError("Email is required")
        return email


class ReportRecipientUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ReportRecipientResponse(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: str
    churchId: str

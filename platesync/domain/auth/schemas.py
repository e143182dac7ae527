"""Auth domain schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_password


def _required_email(v: str) -> str:
    email = validate_email(v)
    if not email:
        raise ValueError("Email is required")
    return email


class RegisterRequest(BaseModel):
    churchName: str
    email: str
    password: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None

    @field_validator("churchName")
    @classmethod
    def validate_church_name(cls, v):
        if not v or len(v.strip()) < 3:
            raise ValueError("Church name must be at least 3 characters")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return _required_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_field(cls, v):
        return validate_password(v)


class VerifyCodeRequest(BaseModel):
    email: str
    code: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return _required_email(v)


class ResendCodeRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return _required_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return (v or "").strip().lower()


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return (v or "").strip().lower()


class ResetPasswordRequest(BaseModel):
    token: str
    password: str

    @field_validator("password")
    @classmethod
    def validate_password_field(cls, v):
        return validate_password(v)

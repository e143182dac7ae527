"""Donation domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import DonationType
from ...shared.validators import validate_amount


def _validate_type(v):
    if v is None:
        return v
    v = v.upper()
    if v not in DonationType.ALL:
        raise ValueError("Donation type must be CASH or CHECK")
    return v


class DonationCreate(BaseModel):
    """Schema for recording a donation"""

    amount: Decimal
    donationType: str = DonationType.CASH
    checkNumber: Optional[str] = None
    batchId: Optional[int] = None
    memberId: Optional[int] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    sendNotification: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount_field(cls, v):
        return validate_amount(v)

    @field_validator("donationType")
    @classmethod
    def validate_donation_type(cls, v):
        return _validate_type(v)


class DonationUpdate(BaseModel):
    amount: Optional[Decimal] = None
    donationType: Optional[str] = None
    checkNumber: Optional[str] = None
    batchId: Optional[int] = None
    memberId: Optional[int] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount_field(cls, v):
        if v is None:
            return v
        return validate_amount(v)

    @field_validator("donationType")
    @classmethod
    def validate_donation_type(cls, v):
        return _validate_type(v)


class DonationMember(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: Optional[str] = None


class DonationResponse(BaseModel):
    id: int
    amount: str
    date: datetime
    donationType: str
    checkNumber: Optional[str] = None
    notes: Optional[str] = None
    notificationStatus: str
    batchId: Optional[int] = None
    memberId: Optional[int] = None
    member: Optional[DonationMember] = None
    churchId: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

"""Batch domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import BatchStatus


class BatchCreate(BaseModel):
    name: Optional[str] = None
    date: Optional[datetime] = None
    service: Optional[str] = None
    notes: Optional[str] = None


class BatchUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[datetime] = None
    service: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is None:
            return v
        v = v.upper()
        if v not in BatchStatus.ALL:
            raise ValueError(f"Status must be one of {', '.join(BatchStatus.ALL)}")
        return v


class PrimaryAttestation(BaseModel):
    name: str


class SecondaryAttestation(BaseModel):
    name: str
    attestorId: Optional[str] = None


class MemberSummary(BaseModel):
    id: int
    firstName: str
    lastName: str
    email: Optional[str] = None


class DonationInBatch(BaseModel):
    id: int
    amount: str
    date: datetime
    donationType: str
    checkNumber: Optional[str] = None
    notes: Optional[str] = None
    notificationStatus: str
    memberId: Optional[int] = None
    member: Optional[MemberSummary] = None


class BatchResponse(BaseModel):
    id: int
    name: str
    date: datetime
    service: Optional[str] = None
    status: str
    totalAmount: str
    notes: Optional[str] = None
    churchId: str
    donationCount: int = 0
    primaryAttestorId: Optional[str] = None
    primaryAttestorName: Optional[str] = None
    primaryAttestationDate: Optional[datetime] = None
    secondaryAttestorId: Optional[str] = None
    secondaryAttestorName: Optional[str] = None
    secondaryAttestationDate: Optional[datetime] = None
    attestationConfirmedBy: Optional[str] = None
    attestationConfirmationDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class BatchDetailResponse(BatchResponse):
    donations: list[DonationInBatch] = []

"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CheckoutRequest(BaseModel):
    """Schema for creating a Stripe checkout session"""

    plan: str  # "MONTHLY" | "ANNUAL"
    returnPath: Optional[str] = None  # e.g. "/subscription?checkout=success"

    @field_validator("plan")
    @classmethod
    def validate_plan(cls, v: str) -> str:
        v = (v or "").upper()
        if v not in {"MONTHLY", "ANNUAL"}:
            raise ValueError("plan must be 'MONTHLY' or 'ANNUAL'")
        return v


class SubscriptionStatusResponse(BaseModel):
    plan: str
    status: str
    isActive: bool
    isTrialExpired: bool
    trialDaysRemaining: int
    trialStartDate: Optional[datetime] = None
    trialEndDate: Optional[datetime] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    canceledAt: Optional[datetime] = None
    hasStripeSubscription: bool = False

"""Billing router - FastAPI endpoints for subscription operations"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_account_owner, require_admin
from ...database import get_db
from ...models import User
from .schemas import CheckoutRequest, SubscriptionStatusResponse
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["Billing"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Get the church's plan, status and trial countdown"""
    return service.get_status(user.church_id)


@router.post("/start-trial", response_model=SubscriptionStatusResponse)
async def start_trial(
    user: User = Depends(require_admin),
    service: SubscriptionService = Depends(get_subscription_service),
):
    service.start_trial(user.church_id)
    return service.get_status(user.church_id)


@router.post("/create-checkout-session")
async def create_checkout_session(
    body: CheckoutRequest,
    user: User = Depends(require_account_owner),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a Stripe checkout session"""
    return service.create_checkout_session(body, user)


@router.post("/cancel")
async def cancel_subscription(
    user: User = Depends(require_account_owner),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return service.cancel(user)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Stripe webhook receiver; authenticated by signature, not bearer token"""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    return service.handle_webhook(payload, signature)

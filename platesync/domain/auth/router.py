"""Auth router - registration, login and password endpoints"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ..users.router import to_user_response
from ..users.schemas import UserResponse
from .schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendCodeRequest,
    ResetPasswordRequest,
    VerifyCodeRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# Rate limiters
rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
rate_limit_register = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
rate_limit_password_reset = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="password_reset")


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


# ============================================================================
# REGISTRATION
# ============================================================================


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_register),
):
    """Create a church and its account owner, then email a verification code"""
    user = await service.register(data)
    return {
        "message": "Registration successful. Check your email for a verification code.",
        "user": to_user_response(user),
    }


@router.post("/verify-code")
async def verify_code(data: VerifyCodeRequest, service: AuthService = Depends(get_auth_service)):
    user = service.verify_code(data.email, data.code)
    return {"message": "Email verified successfully", "user": to_user_response(user)}


@router.post("/resend-code")
async def resend_code(
    data: ResendCodeRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_password_reset),
):
    return await service.resend_code(data.email)


# ============================================================================
# SESSION
# ============================================================================


@router.post("/login")
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    result = service.login(data)
    return {
        "token": result["token"],
        "tokenType": "bearer",
        "user": to_user_response(result["user"]),
    }


@router.post("/logout")
async def logout():
    """Tokens are stateless; the client discards its token"""
    return {"message": "Logged out successfully"}


@router.get("/user", response_model=UserResponse)
async def get_authenticated_user(current_user: User = Depends(get_current_user)):
    return to_user_response(current_user)


# ============================================================================
# PASSWORD FLOWS
# ============================================================================


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_password_reset),
):
    return await service.forgot_password(data.email)


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return service.reset_password(data)


@router.post("/set-password")
async def set_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return service.set_password(data)


@router.get("/validate-token")
async def validate_token(
    token: str = Query(...),
    service: AuthService = Depends(get_auth_service),
):
    return service.validate_token(token)

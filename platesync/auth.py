import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_HOURS, GLOBAL_ADMIN_TOKEN_EXPIRE_HOURS
from .database import get_db
from .models import ChurchStatus, GlobalAdmin, User, UserRole
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

USER_SCOPE = "user"
GLOBAL_ADMIN_SCOPE = "global_admin"


def create_access_token(user: User) -> str:
    """Issue a bearer token for a church user"""
    return create_jwt_token(
        {"sub": user.id, "church_id": user.church_id, "scope": USER_SCOPE},
        expires_delta=timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
    )


def create_global_admin_token(admin: GlobalAdmin) -> str:
    """Issue a bearer token for a global admin"""
    return create_jwt_token(
        {"sub": admin.id, "email": admin.email, "scope": GLOBAL_ADMIN_SCOPE},
        expires_delta=timedelta(hours=GLOBAL_ADMIN_TOKEN_EXPIRE_HOURS),
    )


def _decode_bearer(credentials: Optional[HTTPAuthorizationCredentials], scope: str) -> dict:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    payload = verify_jwt_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if payload.get("scope") != scope:
        logger.warning(f"⚠️ Token scope mismatch: expected {scope}, got {payload.get('scope')}")
        raise HTTPException(status_code=401, detail="Invalid token scope")

    return payload


def check_church_access(user: User) -> None:
    """Reject users whose church is suspended or deleted"""
    church = user.church
    if church is None or church.status == ChurchStatus.DELETED:
        raise HTTPException(status_code=404, detail="Church not found")
    if church.status == ChurchStatus.SUSPENDED:
        raise HTTPException(
            status_code=403,
            detail="This church account has been suspended. Please contact support.",
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current church user from the bearer token"""
    payload = _decode_bearer(credentials, USER_SCOPE)

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user: {payload['sub']}")
        raise HTTPException(status_code=401, detail="User not found")

    check_church_access(user)
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Allow ACCOUNT_OWNER and ADMIN roles"""
    if current_user.role not in UserRole.ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


async def require_account_owner(current_user: User = Depends(get_current_user)) -> User:
    """Allow only the church's account owner"""
    if current_user.role != UserRole.ACCOUNT_OWNER:
        raise HTTPException(status_code=403, detail="Account owner access required")
    return current_user


async def get_current_global_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> GlobalAdmin:
    """Get current global admin from the bearer token"""
    payload = _decode_bearer(credentials, GLOBAL_ADMIN_SCOPE)

    admin = db.query(GlobalAdmin).filter(GlobalAdmin.id == payload["sub"]).first()
    if not admin:
        raise HTTPException(status_code=401, detail="Global admin not found")
    return admin

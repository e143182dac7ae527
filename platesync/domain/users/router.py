"""User router - church staff management and the self-service profile"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_account_owner, require_admin
from ...database import get_db
from ...models import User
from .schemas import PasswordChange, RoleUpdate, TransferOwnershipRequest, UserCreate, UserResponse, UserUpdate
from .service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])
profile_router = APIRouter(prefix="/api/profile", tags=["Profile"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        firstName=user.first_name,
        lastName=user.last_name,
        bio=user.bio,
        profileImageUrl=user.profile_image_url,
        role=user.role,
        isAccountOwner=user.is_account_owner,
        isVerified=user.is_verified,
        emailNotificationsEnabled=user.email_notifications_enabled,
        churchId=user.church_id,
        churchName=user.church.name if user.church else None,
        lastLoginAt=user.last_login_at,
        createdAt=user.created_at,
    )


# ============================================================================
# STAFF MANAGEMENT
# ============================================================================


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return [to_user_response(u) for u in service.get_users(current_user.church_id)]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """Create a staff user and send them a welcome email"""
    return to_user_response(await service.create_user(data, current_user))


@router.post("/transfer-ownership", response_model=UserResponse)
async def transfer_ownership(
    data: TransferOwnershipRequest,
    current_user: User = Depends(require_account_owner),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.transfer_ownership(data.newOwnerId, current_user))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.get_user(user_id, current_user.church_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.update_user(user_id, data, current_user))


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    user_id: str,
    data: RoleUpdate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.change_role(user_id, data, current_user))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(user_id, current_user)


# ============================================================================
# PROFILE
# ============================================================================


@profile_router.get("", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return to_user_response(current_user)


@profile_router.post("", response_model=UserResponse)
async def update_profile(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(service.update_profile(current_user, data))


@profile_router.post("/password")
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.change_password(current_user, data)


@profile_router.post("/avatar", response_model=UserResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return to_user_response(await service.upload_avatar(current_user, file))

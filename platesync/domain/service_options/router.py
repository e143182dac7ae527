"""Service option router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import ServiceOption, User
from .schemas import ServiceOptionCreate, ServiceOptionResponse, ServiceOptionUpdate
from .service import ServiceOptionService

router = APIRouter(prefix="/api/service-options", tags=["Service Options"])


def get_service_option_service(db: Session = Depends(get_db)) -> ServiceOptionService:
    """Dependency injection for ServiceOptionService"""
    return ServiceOptionService(db)


def _to_response(option: ServiceOption) -> ServiceOptionResponse:
    return ServiceOptionResponse(
        id=option.id,
        name=option.name,
        value=option.value,
        isDefault=option.is_default,
        churchId=option.church_id,
    )


@router.get("", response_model=list[ServiceOptionResponse])
async def get_service_options(
    current_user: User = Depends(get_current_user),
    service: ServiceOptionService = Depends(get_service_option_service),
):
    return [_to_response(o) for o in service.get_options(current_user.church_id)]


@router.post("", response_model=ServiceOptionResponse, status_code=201)
async def create_service_option(
    data: ServiceOptionCreate,
    current_user: User = Depends(require_admin),
    service: ServiceOptionService = Depends(get_service_option_service),
):
    return _to_response(service.create_option(data, current_user.church_id))


@router.patch("/{option_id}", response_model=ServiceOptionResponse)
async def update_service_option(
    option_id: int,
    data: ServiceOptionUpdate,
    current_user: User = Depends(require_admin),
    service: ServiceOptionService = Depends(get_service_option_service),
):
    return _to_response(service.update_option(option_id, data, current_user.church_id))


@router.delete("/{option_id}")
async def delete_service_option(
    option_id: int,
    current_user: User = Depends(require_admin),
    service: ServiceOptionService = Depends(get_service_option_service),
):
    return service.delete_option(option_id, current_user.church_id)

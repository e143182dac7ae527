"""Planning Center router"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .service import PlanningCenterService

router = APIRouter(prefix="/api/planning-center", tags=["Planning Center"])


class CallbackRequest(BaseModel):
    code: str
    state: str


def get_planning_center_service(db: Session = Depends(get_db)) -> PlanningCenterService:
    """Dependency injection for PlanningCenterService"""
    return PlanningCenterService(db)


@router.get("/authorize")
async def authorize(
    current_user: User = Depends(require_admin),
    service: PlanningCenterService = Depends(get_planning_center_service),
):
    """OAuth authorize URL with a signed state"""
    return service.get_authorize_url(current_user)


@router.post("/callback")
async def callback(
    data: CallbackRequest,
    current_user: User = Depends(require_admin),
    service: PlanningCenterService = Depends(get_planning_center_service),
):
    return await service.handle_callback(data.code, data.state, current_user)


@router.get("/status")
async def status(
    current_user: User = Depends(require_admin),
    service: PlanningCenterService = Depends(get_planning_center_service),
):
    return service.get_status(current_user.church_id)


@router.post("/import")
async def import_people(
    current_user: User = Depends(require_admin),
    service: PlanningCenterService = Depends(get_planning_center_service),
):
    return await service.import_people(current_user.church_id)


@router.post("/disconnect")
async def disconnect(
    current_user: User = Depends(require_admin),
    service: PlanningCenterService = Depends(get_planning_center_service),
):
    return service.disconnect(current_user.church_id)

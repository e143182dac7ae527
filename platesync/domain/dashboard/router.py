"""Dashboard router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ..batches.router import to_batch_response
from .service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stats = DashboardService(db).get_stats(current_user.church_id)
    stats["recentBatches"] = [to_batch_response(b, len(b.donations)) for b in stats["recentBatches"]]
    return stats

from typing import Annotated

from fastapi import APIRouter, Depends
from starlette import status

from ddproperty.authorization import Actor
from ddproperty.dependencies import Permission, db_dependency, require_permission
from ddproperty.schemas.common import envelope
from ddproperty.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

dashboard_dependency = Annotated[Actor, Depends(require_permission(Permission.VIEW_DASHBOARD))]


@router.get("/stats", status_code=status.HTTP_200_OK)
async def get_dashboard_stats(db: db_dependency, actor: dashboard_dependency):
    return envelope(await DashboardService(db).get_stats(actor))

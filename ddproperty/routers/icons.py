from fastapi import APIRouter
from starlette import status

from ddproperty.dependencies import db_dependency
from ddproperty.schemas.common import envelope
from ddproperty.services.icon_service import IconService

router = APIRouter(prefix="/icons", tags=["icons"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_icons(db: db_dependency):
    return envelope(await IconService(db).get_all_icons())


@router.get("/prefix/{prefix}", status_code=status.HTTP_200_OK)
async def get_icons_by_prefix(db: db_dependency, prefix: str):
    return envelope(await IconService(db).get_icons_by_prefix(prefix))


@router.get("/{icon_id}", status_code=status.HTTP_200_OK)
async def get_icon(db: db_dependency, icon_id: int):
    return envelope(await IconService(db).get_icon(icon_id))

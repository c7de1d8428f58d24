from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette import status

from ddproperty.authorization import Actor
from ddproperty.dependencies import Permission, db_dependency, require_permission
from ddproperty.limits import INQUIRY_RATE, limiter
from ddproperty.models.message import MessageStatus
from ddproperty.schemas.common import envelope
from ddproperty.schemas.message import MessageCreate, MessageResponse, MessageStatusUpdate
from ddproperty.services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])

owner_dependency = Annotated[Actor, Depends(require_permission(Permission.MANAGE_MESSAGES))]
admin_dependency = Annotated[Actor, Depends(require_permission(Permission.VIEW_ALL_MESSAGES))]
page_query = Annotated[int, Query(ge=1)]
limit_query = Annotated[int, Query(ge=1, le=100)]


def _page(rows, meta):
    return envelope([MessageResponse.model_validate(m) for m in rows], meta)


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(INQUIRY_RATE)
async def create_message(db: db_dependency, payload: MessageCreate, request: Request):
    message = await MessageService(db).create_message(payload)
    return envelope(MessageResponse.model_validate(message))


@router.get("", status_code=status.HTTP_200_OK)
async def get_all_messages(
    db: db_dependency,
    actor: admin_dependency,
    page: page_query = 1,
    limit: limit_query = 10,
    status_filter: Annotated[Optional[MessageStatus], Query(alias="status")] = None,
):
    return _page(*await MessageService(db).get_all_messages(page, limit, status_filter))


@router.get("/user", status_code=status.HTTP_200_OK)
async def get_user_messages(
    db: db_dependency,
    actor: owner_dependency,
    page: page_query = 1,
    limit: limit_query = 10,
    status_filter: Annotated[Optional[MessageStatus], Query(alias="status")] = None,
):
    return _page(
        *await MessageService(db).get_user_messages(actor, page, limit, status_filter)
    )


@router.get("/property/{property_id}", status_code=status.HTTP_200_OK)
async def get_property_messages(
    db: db_dependency,
    property_id: int,
    actor: owner_dependency,
    page: page_query = 1,
    limit: limit_query = 10,
    status_filter: Annotated[Optional[MessageStatus], Query(alias="status")] = None,
):
    return _page(
        *await MessageService(db).get_property_messages(
            property_id, actor, page, limit, status_filter
        )
    )


@router.patch("/{message_id}/status", status_code=status.HTTP_200_OK)
async def update_message_status(
    db: db_dependency,
    message_id: int,
    payload: MessageStatusUpdate,
    actor: owner_dependency,
):
    message = await MessageService(db).update_message_status(
        message_id, payload.status, actor
    )
    return envelope(MessageResponse.model_validate(message))

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette import status

from ddproperty.authorization import Actor
from ddproperty.dependencies import (
    CurrentActor,
    Permission,
    db_dependency,
    require_permission,
)
from ddproperty.models.user import UserRole
from ddproperty.schemas.common import envelope
from ddproperty.schemas.user import PasswordChange, UserCreate, UserResponse, UserUpdate
from ddproperty.services.audit_log_service import AuditLogService, request_context
from ddproperty.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

admin_dependency = Annotated[Actor, Depends(require_permission(Permission.MANAGE_USERS))]


# /me routes are declared before /{user_id} so they are matched first


@router.get("/me", status_code=status.HTTP_200_OK)
async def get_me(db: db_dependency, actor: CurrentActor):
    user = await UserService(db).get_user(actor.id)
    return envelope(UserResponse.model_validate(user))


@router.put("/me/password", status_code=status.HTTP_200_OK)
async def change_password(
    db: db_dependency, payload: PasswordChange, actor: CurrentActor, request: Request
):
    await UserService(db).change_password(actor, payload)
    AuditLogService().create_log(
        db=db,
        action="user.password_change",
        resource_type="user",
        resource_id=actor.id,
        actor=actor,
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return {"status": "success", "message": "Password updated successfully"}


@router.get("", status_code=status.HTTP_200_OK)
async def list_users(
    db: db_dependency,
    admin: admin_dependency,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
):
    rows, meta = await UserService(db).list_users(page, limit, search, role)
    return envelope([UserResponse.model_validate(u) for u in rows], meta)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    db: db_dependency, payload: UserCreate, admin: admin_dependency, request: Request
):
    user = await UserService(db).create_user(payload)
    result = UserResponse.model_validate(user)
    AuditLogService().create_log(
        db=db,
        action="user.create",
        resource_type="user",
        resource_id=user.id,
        actor=admin,
        status="success",
        status_code=status.HTTP_201_CREATED,
        **request_context(request),
    )
    return envelope(result)


@router.get("/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(db: db_dependency, user_id: int, admin: admin_dependency):
    return envelope(UserResponse.model_validate(await UserService(db).get_user(user_id)))


@router.put("/{user_id}", status_code=status.HTTP_200_OK)
async def update_user(
    db: db_dependency,
    user_id: int,
    payload: UserUpdate,
    admin: admin_dependency,
    request: Request,
):
    user = await UserService(db).update_user(user_id, payload)
    result = UserResponse.model_validate(user)
    AuditLogService().create_log(
        db=db,
        action="user.update",
        resource_type="user",
        resource_id=user_id,
        actor=admin,
        changes=payload.model_dump(mode="json", exclude_unset=True, exclude={"password"}),
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return envelope(result)


@router.delete("/{user_id}", status_code=status.HTTP_200_OK)
async def delete_user(
    db: db_dependency, user_id: int, admin: admin_dependency, request: Request
):
    await UserService(db).delete_user(user_id, admin)
    AuditLogService().create_log(
        db=db,
        action="user.delete",
        resource_type="user",
        resource_id=user_id,
        actor=admin,
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return {"status": "success", "message": "User deleted successfully"}

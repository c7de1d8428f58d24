from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from starlette import status

from ddproperty.config import settings
from ddproperty.dependencies import CurrentActor, db_dependency
from ddproperty.exceptions import BadRequestError, UnauthorizedError
from ddproperty.limits import LOGIN_RATE, limiter
from ddproperty.models.user import UserRole
from ddproperty.schemas.user import Token, UserCreate, UserResponse
from ddproperty.services.audit_log_service import AuditLogService, request_context
from ddproperty.services.auth_service import authenticate_user, create_access_token
from ddproperty.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(db: db_dependency, user_request: UserCreate, request: Request):
    # Self-registration can never grant admin
    if user_request.role == UserRole.ADMIN:
        raise BadRequestError("Cannot self-register as an administrator")
    user = await UserService(db).create_user(user_request)
    AuditLogService().create_log(
        db=db,
        action="user.create",
        resource_type="user",
        resource_id=user.id,
        user_id=user.id,
        status="success",
        status_code=status.HTTP_201_CREATED,
        **request_context(request),
    )
    return {"status": "success", "data": UserResponse.model_validate(user)}


@router.post("/login", response_model=Token, status_code=status.HTTP_200_OK)
@limiter.limit(LOGIN_RATE)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: db_dependency,
    request: Request,
):
    user = authenticate_user(form_data.username, form_data.password, db)
    if not user:
        AuditLogService().create_log(
            db=db,
            action="auth.login",
            resource_type="auth",
            status="failure",
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_message="invalid_credentials",
            **request_context(request),
        )
        raise UnauthorizedError("Incorrect email or password")
    if not user.is_active:
        raise BadRequestError("This account has been deactivated")

    token = create_access_token(
        user.email,
        user.id,
        user.role.value,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    AuditLogService().create_log(
        db=db,
        action="auth.login",
        resource_type="auth",
        resource_id=user.id,
        user_id=user.id,
        status="success",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", status_code=status.HTTP_200_OK)
async def get_me(db: db_dependency, actor: CurrentActor):
    user = await UserService(db).get_user(actor.id)
    return {"status": "success", "data": UserResponse.model_validate(user)}

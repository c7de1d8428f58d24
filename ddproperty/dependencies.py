import hmac
from enum import Enum
from typing import Annotated, Callable, Iterator, Optional, TypeVar

from fastapi import Depends, Header, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from ddproperty.authorization import Actor
from ddproperty.config import settings
from ddproperty.exceptions import (
    BadRequestError,
    ForbiddenError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from ddproperty.models.user import UserRole
from ddproperty.services.auth_service import get_current_user
from ddproperty.services.media_storage import MediaStorage

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.database.session()


def get_media_storage(request: Request) -> MediaStorage:
    return request.app.state.media


db_dependency = Annotated[Session, Depends(get_db)]
media_dependency = Annotated[MediaStorage, Depends(get_media_storage)]
CurrentUser = Annotated[dict, Depends(get_current_user)]


def get_current_actor(current_user: CurrentUser) -> Actor:
    return Actor.from_token(current_user)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


class Permission(str, Enum):
    READ_PROPERTIES = "read:properties"
    CREATE_PROPERTIES = "create:properties"
    UPDATE_PROPERTIES = "update:properties"
    DELETE_PROPERTIES = "delete:properties"
    MANAGE_MESSAGES = "manage:messages"
    VIEW_DASHBOARD = "view:dashboard"
    VIEW_ALL_MESSAGES = "view:all_messages"
    MANAGE_USERS = "manage:users"
    VIEW_AUDIT_LOGS = "view:audit_logs"
    MANAGE_MEDIA = "manage:media"


_OWNER_PERMISSIONS = [
    Permission.READ_PROPERTIES,
    Permission.CREATE_PROPERTIES,
    Permission.UPDATE_PROPERTIES,
    Permission.DELETE_PROPERTIES,
    Permission.MANAGE_MESSAGES,
    Permission.VIEW_DASHBOARD,
]

# Map role strings (as embedded in JWT) to allowed permissions.
# Ownership of individual properties is checked separately by ensure_can_modify.
ROLE_PERMISSIONS: dict[str, list[Permission]] = {
    UserRole.USER.value: list(_OWNER_PERMISSIONS),
    UserRole.AGENT.value: list(_OWNER_PERMISSIONS),
    UserRole.ADMIN.value: list(_OWNER_PERMISSIONS)
    + [
        Permission.VIEW_ALL_MESSAGES,
        Permission.MANAGE_USERS,
        Permission.VIEW_AUDIT_LOGS,
        Permission.MANAGE_MEDIA,
    ],
}


def require_permission(required: Permission) -> Callable[..., Actor]:
    def dependency(current_user: CurrentUser) -> Actor:
        if not current_user:
            raise UnauthorizedError()

        actor = Actor.from_token(current_user)
        allowed = ROLE_PERMISSIONS.get(actor.role.value, [])
        if required not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return actor

    return dependency


def require_api_key(x_api_key: Annotated[Optional[str], Header()] = None) -> None:
    if not settings.API_KEY:
        raise ServiceUnavailableError("API key is not configured")
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.API_KEY):
        raise UnauthorizedError("Invalid or missing API key", headers={})


def validation_errors(exc: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def parse_query(model: type[ModelT], request: Request, **overrides) -> ModelT:
    """Validate the query string against ``model`` (camelCase or snake_case keys)."""
    query = dict(request.query_params)
    query.update(overrides)
    try:
        return model.model_validate(query)
    except ValidationError as e:
        raise BadRequestError("Invalid query parameters", errors=validation_errors(e))

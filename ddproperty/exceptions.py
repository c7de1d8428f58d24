"""Classified API errors.

Every error that leaves a service is either one of these or gets wrapped into
one by the central handlers in ``ddproperty.main``. They subclass Starlette's
``HTTPException`` so FastAPI dependencies and routers can raise them the same
way they raise ``HTTPException``.
"""
from typing import Any, Optional

from fastapi import HTTPException
from starlette import status


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        is_operational: bool = True,
        errors: Optional[list[Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(
            status_code=status_code or type(self).status_code,
            detail=message or self.default_message,
            headers=headers,
        )
        self.is_operational = is_operational
        self.errors = errors

    @property
    def message(self) -> str:
        return str(self.detail)


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not authenticate user"

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource conflict"


class ServiceUnavailableError(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"

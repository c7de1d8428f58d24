import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from slowapi import _rate_limit_exceeded_handler
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from ddproperty import __version__
from ddproperty.config import settings
from ddproperty.database import Database
from ddproperty.dependencies import validation_errors
from ddproperty.exceptions import ApiError
from ddproperty.limits import RateLimitExceeded, SlowAPIMiddleware, limiter
from ddproperty.logging_config import configure_logging
from ddproperty.Middleware.audit_middleware import audit_log_middleware
from ddproperty.routers import (
    admin,
    auth,
    dashboard,
    icons,
    messages,
    properties,
    search,
    users,
    zones,
)
from ddproperty.services.media_storage import MediaStorage

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
    errors: Optional[list[Any]] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "status": "error",
        "statusCode": status_code,
        "message": message,
    }
    if errors:
        content["errors"] = errors
    if exc is not None and status_code >= 500 and not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(
        status_code=status_code, content=jsonable_encoder(content), headers=headers
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        errors = exc.errors if isinstance(exc, ApiError) else None
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}", exc_info=exc)
        return error_response(
            exc.status_code, str(exc.detail), exc, errors, getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors)

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Validation error", errors=validation_errors(exc)
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return error_response(status.HTTP_409_CONFLICT, "Resource conflict")

    @app.exception_handler(OperationalError)
    async def database_operational_error_handler(request: Request, exc: OperationalError):
        """Handle database connection/operation errors"""
        logger.error(f"Database operational error: {exc}", exc_info=True)
        error_msg = str(exc).lower()
        if "timeout" in error_msg:
            return error_response(
                status.HTTP_504_GATEWAY_TIMEOUT, "Database query timeout. Please try again."
            )
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection error. Please try again."
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle general SQLAlchemy errors"""
        logger.error(f"Database error: {exc}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error occurred", exc
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", exc
        )


def create_app(
    database: Optional[Database] = None, media: Optional[MediaStorage] = None
) -> FastAPI:
    """Build the application around a storage handle and a media store.

    Both are created from settings when not supplied; tests pass their own.
    """
    configure_logging(settings.LOG_LEVEL)
    database = database or Database(settings.DATABASE_URL)
    media = media or MediaStorage(settings.MEDIA_ROOT, settings.MEDIA_URL_PREFIX)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Only create tables for SQLite (local dev); other databases use alembic
        if database.is_sqlite:
            database.create_all()
        logger.info("DD Property API %s started (%s)", __version__, settings.ENVIRONMENT)
        yield
        database.dispose()
        logger.info("DD Property API stopped")

    app = FastAPI(title="DD Property API", version=__version__, lifespan=lifespan)
    app.state.database = database
    app.state.media = media

    app.middleware("http")(audit_log_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting middleware and handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    @app.get("/health", status_code=status.HTTP_200_OK, tags=["health"])
    def health_check():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    for module in (auth, properties, messages, dashboard, zones, search, users, icons, admin):
        app.include_router(module.router, prefix="/api")

    app.mount(
        media.url_prefix,
        StaticFiles(directory=str(media.root), check_dir=False),
        name="media",
    )
    return app


app = create_app()

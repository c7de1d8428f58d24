import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ddproperty.models.user import User
from ddproperty.services.audit_log_service import AuditLogService
from ddproperty.services.auth_service import ALGORITHM, SECRET_KEY

logger = logging.getLogger(__name__)

# Thread pool for executing blocking database operations
_executor = ThreadPoolExecutor(max_workers=5)

SKIPPED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


def _log_audit_sync(
    session_factory,
    user_id: Optional[int],
    user_role: Optional[str],
    status: str,
    status_code: Optional[int],
    error_message: Optional[str],
    ip_address: Optional[str],
    user_agent: Optional[str],
    method: str,
    path: str,
    duration_ms: int,
):
    """Write one request audit entry; runs in the thread pool.

    Audit failures are logged and never reach the request.
    """
    db = session_factory()
    try:
        # Tokens can outlive their user; avoid the foreign key violation
        if user_id is not None and db.scalar(select(User.id).where(User.id == user_id)) is None:
            user_id = None

        AuditLogService().create_log(
            db=db,
            action="http.request",
            resource_type="http",
            user_id=user_id,
            user_role=user_role,
            status=status,
            status_code=status_code,
            error_message=error_message,
            ip_address=ip_address,
            user_agent=user_agent,
            request_method=method,
            request_path=path,
            duration_ms=duration_ms,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Audit logging failed (non-critical): %s", e)
    finally:
        db.close()


async def audit_log_middleware(request: Request, call_next):
    """Record every request in the audit log without blocking the response.

    Disabled when TESTING=true.
    """
    if os.getenv("TESTING") == "true":
        return await call_next(request)

    method = request.method
    path = request.url.path
    media_prefix = request.app.state.media.url_prefix + "/"
    if path in SKIPPED_PATHS or path.startswith(media_prefix):
        return await call_next(request)

    start_time = time.time()

    user_id: Optional[int] = None
    user_role: Optional[str] = None
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
            user_id = payload.get("id")
            user_role = payload.get("role")
        except JWTError:
            # Ignore token errors in middleware; endpoint will handle auth
            pass

    ip_address = request.headers.get("x-forwarded-for") or (
        request.client.host if request.client else None
    )
    user_agent = request.headers.get("user-agent")
    session_factory = request.app.state.database.session_factory

    loop = asyncio.get_running_loop()
    try:
        response = await call_next(request)
    except Exception as exc:
        duration_ms = int((time.time() - start_time) * 1000)
        loop.run_in_executor(
            _executor,
            _log_audit_sync,
            session_factory,
            user_id,
            user_role,
            "error",
            None,
            str(exc)[:1000],
            ip_address,
            user_agent,
            method,
            path,
            duration_ms,
        )
        raise

    status_code = getattr(response, "status_code", None)
    duration_ms = int((time.time() - start_time) * 1000)
    status = "success" if status_code and status_code < 400 else "failure"
    loop.run_in_executor(
        _executor,
        _log_audit_sync,
        session_factory,
        user_id,
        user_role,
        status,
        status_code,
        None,
        ip_address,
        user_agent,
        method,
        path,
        duration_ms,
    )
    return response

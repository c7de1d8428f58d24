from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette import status

from ddproperty.authorization import Actor
from ddproperty.dependencies import (
    Permission,
    db_dependency,
    media_dependency,
    require_permission,
)
from ddproperty.schemas.audit_log import AuditLogResponse
from ddproperty.schemas.common import envelope
from ddproperty.schemas.property import RelocationSummary
from ddproperty.services.audit_log_service import AuditLogService, request_context
from ddproperty.services.property_service import PropertyService

router = APIRouter(prefix="/admin", tags=["admin"])

audit_dependency = Annotated[Actor, Depends(require_permission(Permission.VIEW_AUDIT_LOGS))]
media_admin_dependency = Annotated[Actor, Depends(require_permission(Permission.MANAGE_MEDIA))]


@router.get("/audit-logs", status_code=status.HTTP_200_OK)
def get_audit_logs(
    db: db_dependency,
    admin: audit_dependency,
    user_id: Optional[int] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    action: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = 100,
    skip: int = 0,
):
    """Get audit logs with filtering (admin only)"""
    logs = AuditLogService().get_logs(
        db=db,
        user_id=user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        action=action,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        skip=skip,
    )
    return envelope([AuditLogResponse.model_validate(log) for log in logs])


@router.post("/media/reconcile", status_code=status.HTTP_200_OK)
async def reconcile_media(
    db: db_dependency,
    media: media_dependency,
    admin: media_admin_dependency,
    request: Request,
    property_id: Optional[int] = None,
):
    """Move media still sitting in the staging directory to its property."""
    report = await PropertyService(db, media).reconcile_media(property_id)
    AuditLogService().create_log(
        db=db,
        action="media.reconcile",
        resource_type="property",
        resource_id=property_id,
        actor=admin,
        changes=report.as_dict(),
        status="success" if report.ok else "failure",
        status_code=status.HTTP_200_OK,
        **request_context(request),
    )
    return envelope(RelocationSummary(**report.as_dict()))

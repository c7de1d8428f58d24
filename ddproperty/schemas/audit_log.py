from datetime import datetime
from typing import Any, Optional

from ddproperty.schemas.common import CamelModel


class AuditLogResponse(CamelModel):
    id: int
    user_id: Optional[int] = None
    user_role: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[int] = None
    changes: Optional[dict[str, Any]] = None
    status: str
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    ip_address: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    timestamp: Optional[datetime] = None
    duration_ms: Optional[int] = None

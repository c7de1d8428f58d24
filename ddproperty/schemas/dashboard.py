from datetime import datetime
from typing import Optional

from ddproperty.models.message import MessageStatus
from ddproperty.schemas.common import CamelModel


class RecentMessage(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    status: MessageStatus
    created_at: Optional[datetime] = None
    property_id: int
    property_title: Optional[str] = None
    project_name: Optional[str] = None


class DashboardStats(CamelModel):
    total_properties: int = 0
    properties_by_type: dict[str, int] = {}
    properties_by_status: dict[str, int] = {}
    total_views: int = 0
    total_messages: int = 0
    new_messages: int = 0
    messages_by_status: dict[str, int] = {}
    messages_by_property_type: dict[str, int] = {}
    recent_messages: list[RecentMessage] = []

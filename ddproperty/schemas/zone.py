from datetime import datetime
from typing import Optional

from pydantic import Field

from ddproperty.schemas.common import CamelModel


class ZoneResponse(CamelModel):
    id: int
    name: str
    name_en: Optional[str] = None
    name_th: Optional[str] = None
    description: Optional[str] = None
    city: str
    province: Optional[str] = None
    created_at: Optional[datetime] = None


class ZoneQueryParams(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
    city: Optional[str] = None
    province: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "name"
    sort_order: str = Field("asc", pattern="^(asc|desc)$")


class CityZones(CamelModel):
    city: str
    zone_count: int
    zones: list[ZoneResponse]

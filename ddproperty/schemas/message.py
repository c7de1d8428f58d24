from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from ddproperty.models.message import MessageStatus
from ddproperty.schemas.common import CamelModel


class MessageCreate(CamelModel):
    property_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: str = Field(..., pattern=r"^[0-9]{9,10}$")
    message: Optional[str] = Field(None, max_length=5000)

    @field_validator("email", "message", mode="before")
    @classmethod
    def empty_is_none(cls, v):
        return v or None


class MessageStatusUpdate(CamelModel):
    status: MessageStatus


class MessagePropertyBrief(CamelModel):
    id: int
    property_code: str
    title: str
    project_name: Optional[str] = None


class MessageResponse(CamelModel):
    id: int
    property_id: int
    name: str
    email: Optional[str] = None
    phone: str
    message: Optional[str] = None
    status: MessageStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    property: Optional[MessagePropertyBrief] = None

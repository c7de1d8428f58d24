from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ddproperty.models.user import UserRole
from ddproperty.schemas.common import CamelModel, parse_json_value, blank_to_none


class SocialMedia(CamelModel):
    facebook: str = ""
    line: str = ""
    wechat: str = ""
    whatsapp: str = ""

    def to_columns(self) -> dict:
        return {
            "facebook": self.facebook or None,
            "line_id": self.line or None,
            "wechat_id": self.wechat or None,
            "whatsapp": self.whatsapp or None,
        }


class UserBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.USER
    social_media: Optional[SocialMedia] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blanks(cls, data):
        return blank_to_none(data)

    @field_validator("social_media", mode="before")
    @classmethod
    def parse_social_media(cls, v):
        return parse_json_value(v)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6)
    social_media: Optional[SocialMedia] = None

    @field_validator("social_media", mode="before")
    @classmethod
    def parse_social_media(cls, v):
        return parse_json_value(v)


class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class UserBrief(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None


class UserResponse(UserBrief):
    role: UserRole
    is_active: bool
    social_media: SocialMedia
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str

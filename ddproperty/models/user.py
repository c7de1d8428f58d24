from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SqlEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ddproperty.database import Base
import enum


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    AGENT = "AGENT"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(
        SqlEnum(
            UserRole,
            values_callable=lambda obj: [e.value for e in obj],
            native_enum=False,
        ),
        default=UserRole.USER,
        nullable=False,
    )
    phone = Column(String(30), nullable=True)

    # Social contacts, exposed to clients as a nested socialMedia object
    facebook = Column(String, nullable=True)
    line_id = Column(String, nullable=True)
    wechat_id = Column(String, nullable=True)
    whatsapp = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    properties = relationship(
        "Property", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def social_media(self) -> dict:
        return {
            "facebook": self.facebook or "",
            "line": self.line_id or "",
            "wechat": self.wechat_id or "",
            "whatsapp": self.whatsapp or "",
        }

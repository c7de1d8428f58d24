from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ddproperty.database import Base
import enum


class MessageStatus(str, enum.Enum):
    """Sales-pipeline stage of an inquiry."""

    NEW = "NEW"
    CONTACTED = "CONTACTED"
    VISIT = "VISIT"
    PROPOSAL = "PROPOSAL"
    WON = "WON"
    LOST = "LOST"


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(200), nullable=False)
    email = Column(String(254), nullable=True)
    phone = Column(String(20), nullable=False)
    message = Column(Text, nullable=True)
    status = Column(
        Enum(MessageStatus), default=MessageStatus.NEW, nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    property = relationship("Property", back_populates="messages")

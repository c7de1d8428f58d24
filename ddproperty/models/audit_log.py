from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Integer,
    String,
    DateTime,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ddproperty.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    # Actor information
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_role = Column(String, nullable=True)  # Denormalized for quick filtering
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    # Action details
    action = Column(
        String, nullable=False, index=True
    )  # e.g. "property.create", "property.media_relocation", "http.request"
    resource_type = Column(String, nullable=False, index=True)
    resource_id = Column(Integer, nullable=True, index=True)

    changes = Column(JSON, nullable=True)  # {field: {"old": value, "new": value}}

    # Request context
    request_method = Column(String, nullable=True)
    request_path = Column(String, nullable=True)

    # Outcome
    status = Column(String, nullable=False, index=True)  # "success", "failure", "error"
    status_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    duration_ms = Column(Integer, nullable=True)

    user = relationship("User", foreign_keys=[user_id])

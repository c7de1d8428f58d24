from sqlalchemy import Column, Integer, String, Boolean
from ddproperty.database import Base


class Icon(Base):
    __tablename__ = "icons"

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String(50), nullable=False, index=True)  # e.g. "facility", "view"
    name = Column(String(100), nullable=False)
    key = Column(String(100), nullable=False)  # canonical taxonomy value it illustrates
    icon_path = Column(String(500), nullable=False)
    sub_name = Column(String(100), nullable=True)
    active = Column(Boolean, default=True)

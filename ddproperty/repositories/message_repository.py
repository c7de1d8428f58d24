from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ddproperty.models import Message, MessageStatus, Property
from ddproperty.schemas.common import build_page_meta
from ddproperty.schemas.message import MessageCreate


class MessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, payload: MessageCreate) -> Message:
        message = Message(**payload.model_dump(), status=MessageStatus.NEW)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def get(self, message_id: int) -> Optional[Message]:
        stmt = (
            select(Message)
            .where(Message.id == message_id)
            .options(joinedload(Message.property))
        )
        return self.db.scalars(stmt).first()

    def _paginate(self, conditions: list, page: int, limit: int, status=None):
        if status is not None:
            conditions = conditions + [Message.status == status]
        count_stmt = select(func.count(Message.id)).join(Message.property).where(*conditions)
        total = self.db.scalar(count_stmt) or 0
        stmt = (
            select(Message)
            .join(Message.property)
            .where(*conditions)
            .options(joinedload(Message.property))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = list(self.db.scalars(stmt).unique().all())
        return rows, build_page_meta(total, page, limit)

    def find_all(self, page: int, limit: int, status: Optional[MessageStatus] = None):
        return self._paginate([], page, limit, status)

    def find_by_owner(
        self, user_id: int, page: int, limit: int, status: Optional[MessageStatus] = None
    ):
        return self._paginate([Property.user_id == user_id], page, limit, status)

    def find_by_property(
        self, property_id: int, page: int, limit: int, status: Optional[MessageStatus] = None
    ):
        return self._paginate([Message.property_id == property_id], page, limit, status)

    def update_status(self, message: Message, status: MessageStatus) -> Message:
        message.status = status
        self.db.commit()
        self.db.refresh(message)
        return message

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ddproperty.authorization import Actor, ensure_can_modify
from ddproperty.exceptions import NotFoundError
from ddproperty.models import Message, MessageStatus, Property
from ddproperty.repositories.message_repository import MessageRepository
from ddproperty.schemas.message import MessageCreate

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = MessageRepository(db)

    async def create_message(self, payload: MessageCreate) -> Message:
        if self.db.get(Property, payload.property_id) is None:
            raise NotFoundError(f"Property with ID {payload.property_id} not found")
        message = self.repository.create(payload)
        logger.info("Inquiry %s received for property %s", message.id, message.property_id)
        return message

    async def get_all_messages(
        self, page: int, limit: int, status: Optional[MessageStatus] = None
    ):
        return self.repository.find_all(page, limit, status)

    async def get_user_messages(
        self, actor: Actor, page: int, limit: int, status: Optional[MessageStatus] = None
    ):
        return self.repository.find_by_owner(actor.id, page, limit, status)

    async def get_property_messages(
        self,
        property_id: int,
        actor: Actor,
        page: int,
        limit: int,
        status: Optional[MessageStatus] = None,
    ):
        prop = self.db.get(Property, property_id)
        if prop is None:
            raise NotFoundError(f"Property with ID {property_id} not found")
        ensure_can_modify(actor, prop.user_id, "You are not authorized to view these messages")
        return self.repository.find_by_property(property_id, page, limit, status)

    async def update_message_status(
        self, message_id: int, status: MessageStatus, actor: Actor
    ) -> Message:
        message = self.repository.get(message_id)
        if message is None:
            raise NotFoundError(f"Message with ID {message_id} not found")
        ensure_can_modify(
            actor, message.property.user_id, "You are not authorized to update this message"
        )
        return self.repository.update_status(message, status)

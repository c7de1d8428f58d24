from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ddproperty.authorization import Actor
from ddproperty.models import Message, MessageStatus, Property
from ddproperty.schemas.dashboard import DashboardStats, RecentMessage

RECENT_MESSAGES = 5


def _key(value) -> str:
    return getattr(value, "value", value)


class DashboardService:
    """Aggregates for the back-office dashboard.

    Admins see platform-wide numbers, everyone else only their own listings.
    """

    def __init__(self, db: Session):
        self.db = db

    def _scope(self, actor: Actor) -> list:
        return [] if actor.is_admin else [Property.user_id == actor.id]

    async def get_stats(self, actor: Actor) -> DashboardStats:
        scope = self._scope(actor)

        by_type = {
            _key(t): n
            for t, n in self.db.execute(
                select(Property.property_type, func.count(Property.id))
                .where(*scope)
                .group_by(Property.property_type)
            )
        }
        by_status = {
            _key(s): n
            for s, n in self.db.execute(
                select(Property.status, func.count(Property.id))
                .where(*scope)
                .group_by(Property.status)
            )
        }
        total_views = (
            self.db.scalar(select(func.coalesce(func.sum(Property.view_count), 0)).where(*scope))
            or 0
        )

        messages_by_status = {
            _key(s): n
            for s, n in self.db.execute(
                select(Message.status, func.count(Message.id))
                .join(Message.property)
                .where(*scope)
                .group_by(Message.status)
            )
        }
        messages_by_type = {
            _key(t): n
            for t, n in self.db.execute(
                select(Property.property_type, func.count(Message.id))
                .select_from(Message)
                .join(Message.property)
                .where(*scope)
                .group_by(Property.property_type)
            )
        }

        recent = self.db.scalars(
            select(Message)
            .join(Message.property)
            .where(*scope)
            .options(joinedload(Message.property))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(RECENT_MESSAGES)
        ).all()

        return DashboardStats(
            total_properties=sum(by_type.values()),
            properties_by_type=by_type,
            properties_by_status=by_status,
            total_views=total_views,
            total_messages=sum(messages_by_status.values()),
            new_messages=messages_by_status.get(MessageStatus.NEW.value, 0),
            messages_by_status=messages_by_status,
            messages_by_property_type=messages_by_type,
            recent_messages=[
                RecentMessage(
                    id=m.id,
                    name=m.name,
                    phone=m.phone,
                    email=m.email,
                    status=m.status,
                    created_at=m.created_at,
                    property_id=m.property_id,
                    property_title=m.property.title,
                    project_name=m.property.project_name,
                )
                for m in recent
            ],
        )

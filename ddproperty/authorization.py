"""Who is calling, and may they touch this resource.

Every mutating service call receives an :class:`Actor` and checks ownership
before it writes; there is no path that mutates a property without one.
"""
from dataclasses import dataclass

from ddproperty.exceptions import ForbiddenError, UnauthorizedError
from ddproperty.models.user import UserRole


@dataclass(frozen=True)
class Actor:
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_token(cls, user: dict) -> "Actor":
        """Build from the dict ``get_current_user`` returns."""
        try:
            return cls(id=int(user["id"]), role=UserRole(user["role"]))
        except (KeyError, TypeError, ValueError):
            raise UnauthorizedError("Could not validate credentials")


def can_modify(actor: Actor, owner_id: int) -> bool:
    return actor.is_admin or actor.id == owner_id


def ensure_can_modify(
    actor: Actor, owner_id: int, message: str = "Not authorized to modify this resource"
) -> None:
    if not can_modify(actor, owner_id):
        raise ForbiddenError(message)

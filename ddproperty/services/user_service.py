import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ddproperty.authorization import Actor
from ddproperty.exceptions import BadRequestError, NotFoundError
from ddproperty.models import User, UserRole
from ddproperty.schemas.common import build_page_meta
from ddproperty.schemas.user import PasswordChange, UserCreate, UserUpdate
from ddproperty.services.auth_service import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.db.scalar(stmt) is not None

    async def list_users(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
    ):
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if search and search.strip():
            term = search.strip().lower()
            conditions.append(
                or_(
                    func.lower(User.name).contains(term, autoescape=True),
                    func.lower(User.email).contains(term, autoescape=True),
                )
            )
        total = self.db.scalar(select(func.count(User.id)).where(*conditions)) or 0
        rows = self.db.scalars(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(rows), build_page_meta(total, page, limit)

    async def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def create_user(self, payload: UserCreate) -> User:
        email = payload.email.lower()
        if self._email_taken(email):
            raise BadRequestError("Email is already registered")
        user = User(
            name=payload.name,
            email=email,
            password_hash=get_password_hash(payload.password),
            role=payload.role,
            phone=payload.phone,
            is_active=True,
            **(payload.social_media.to_columns() if payload.social_media else {}),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s created with role %s", user.id, user.role.value)
        return user

    async def update_user(self, user_id: int, payload: UserUpdate) -> User:
        user = await self.get_user(user_id)
        data = payload.model_dump(exclude_unset=True)

        if data.get("email"):
            email = data["email"].lower()
            if self._email_taken(email, exclude_id=user.id):
                raise BadRequestError("Email is already registered")
            user.email = email
        for field in ("name", "phone", "role", "is_active"):
            if field in data and data[field] is not None:
                setattr(user, field, data[field])
        if data.get("password"):
            user.password_hash = get_password_hash(data["password"])
        if payload.social_media is not None:
            for column, value in payload.social_media.to_columns().items():
                setattr(user, column, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    async def delete_user(self, user_id: int, actor: Actor) -> None:
        user = await self.get_user(user_id)
        if user.id == actor.id:
            raise BadRequestError("You cannot delete your own account")
        self.db.delete(user)
        self.db.commit()

    async def change_password(self, actor: Actor, payload: PasswordChange) -> None:
        user = await self.get_user(actor.id)
        if not verify_password(payload.current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        user.password_hash = get_password_hash(payload.new_password)
        self.db.commit()

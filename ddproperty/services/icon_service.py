from collections import OrderedDict

from sqlalchemy import select
from sqlalchemy.orm import Session

from ddproperty.config import settings
from ddproperty.exceptions import NotFoundError
from ddproperty.models import Icon
from ddproperty.schemas.icon import IconGroup, IconResponse


def icon_url(icon_path: str) -> str:
    if icon_path.startswith(("http://", "https://")):
        return icon_path
    return f"{settings.ICON_BASE_URL}/{icon_path.lstrip('/')}"


def to_response(icon: Icon) -> IconResponse:
    response = IconResponse.model_validate(icon)
    response.icon_url = icon_url(icon.icon_path)
    return response


class IconService:
    def __init__(self, db: Session):
        self.db = db

    async def get_all_icons(self, active_only: bool = True) -> list[IconResponse]:
        stmt = select(Icon).order_by(Icon.prefix, Icon.sub_name, Icon.name)
        if active_only:
            stmt = stmt.where(Icon.active.is_(True))
        return [to_response(icon) for icon in self.db.scalars(stmt)]

    async def get_icons_by_prefix(self, prefix: str) -> list[IconGroup]:
        """Active icons for one prefix, grouped by ``sub_name``."""
        stmt = (
            select(Icon)
            .where(Icon.prefix == prefix, Icon.active.is_(True))
            .order_by(Icon.sub_name, Icon.name)
        )
        groups: "OrderedDict[str, list[IconResponse]]" = OrderedDict()
        for icon in self.db.scalars(stmt):
            groups.setdefault(icon.sub_name, []).append(to_response(icon))
        return [IconGroup(sub_name=name, icons=icons) for name, icons in groups.items()]

    async def get_icon(self, icon_id: int) -> IconResponse:
        icon = self.db.get(Icon, icon_id)
        if not icon:
            raise NotFoundError(f"Icon with ID {icon_id} not found")
        return to_response(icon)

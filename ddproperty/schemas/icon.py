from typing import Optional

from ddproperty.schemas.common import CamelModel


class IconResponse(CamelModel):
    id: int
    prefix: str
    name: str
    key: str
    icon_path: str
    icon_url: Optional[str] = None
    sub_name: Optional[str] = None
    active: bool = True


class IconGroup(CamelModel):
    sub_name: Optional[str] = None
    icons: list[IconResponse]

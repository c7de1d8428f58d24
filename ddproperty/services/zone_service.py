from collections import OrderedDict

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ddproperty.exceptions import NotFoundError
from ddproperty.models import PropertyStatus, Zone
from ddproperty.repositories.property_repository import PropertyRepository
from ddproperty.schemas.common import build_page_meta
from ddproperty.schemas.property import PropertyQueryParams
from ddproperty.schemas.zone import ZoneQueryParams

ZONE_SORT_FIELDS = {"name", "name_en", "name_th", "city", "province", "created_at", "id"}


class ZoneService:
    def __init__(self, db: Session):
        self.db = db

    async def get_all_zones(self, params: ZoneQueryParams):
        conditions = []
        if params.city:
            conditions.append(func.lower(Zone.city) == params.city.strip().lower())
        if params.province:
            conditions.append(func.lower(Zone.province) == params.province.strip().lower())
        if params.search and params.search.strip():
            term = params.search.strip().lower()
            conditions.append(
                or_(
                    func.lower(Zone.name).contains(term, autoescape=True),
                    func.lower(Zone.name_en).contains(term, autoescape=True),
                    func.lower(Zone.name_th).contains(term, autoescape=True),
                )
            )

        sort_field = params.sort_by if params.sort_by in ZONE_SORT_FIELDS else "name"
        column = getattr(Zone, sort_field)
        order = column.asc() if params.sort_order == "asc" else column.desc()

        total = self.db.scalar(select(func.count(Zone.id)).where(*conditions)) or 0
        rows = self.db.scalars(
            select(Zone)
            .where(*conditions)
            .order_by(order, Zone.id.asc())
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        ).all()
        return list(rows), build_page_meta(total, params.page, params.limit)

    async def get_zone_by_id(self, zone_id: int) -> Zone:
        zone = self.db.get(Zone, zone_id)
        if not zone:
            raise NotFoundError(f"Zone with ID {zone_id} not found")
        return zone

    async def get_properties_by_zone(self, zone_id: int, params: PropertyQueryParams):
        await self.get_zone_by_id(zone_id)
        update = {"zone_id": zone_id}
        if params.status is None:
            update["status"] = PropertyStatus.ACTIVE
        return PropertyRepository(self.db).find_all(params.model_copy(update=update))

    async def get_cities_with_zones(self) -> list[dict]:
        zones = self.db.scalars(select(Zone).order_by(Zone.city.asc(), Zone.name.asc())).all()
        grouped: "OrderedDict[str, list[Zone]]" = OrderedDict()
        for zone in zones:
            grouped.setdefault(zone.city, []).append(zone)
        return [
            {"city": city, "zone_count": len(items), "zones": items}
            for city, items in grouped.items()
        ]

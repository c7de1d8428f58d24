from fastapi import APIRouter, Request
from starlette import status

from ddproperty.dependencies import db_dependency, parse_query
from ddproperty.schemas.common import envelope
from ddproperty.schemas.property import PropertyQueryParams, PropertySummary
from ddproperty.schemas.zone import CityZones, ZoneQueryParams, ZoneResponse
from ddproperty.services.zone_service import ZoneService

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_zones(db: db_dependency, request: Request):
    rows, meta = await ZoneService(db).get_all_zones(parse_query(ZoneQueryParams, request))
    return envelope([ZoneResponse.model_validate(z) for z in rows], meta)


@router.get("/cities", status_code=status.HTTP_200_OK)
async def get_cities_with_zones(db: db_dependency):
    groups = await ZoneService(db).get_cities_with_zones()
    return envelope([CityZones.model_validate(group) for group in groups])


@router.get("/{zone_id}", status_code=status.HTTP_200_OK)
async def get_zone(db: db_dependency, zone_id: int):
    return envelope(ZoneResponse.model_validate(await ZoneService(db).get_zone_by_id(zone_id)))


@router.get("/{zone_id}/properties", status_code=status.HTTP_200_OK)
async def get_zone_properties(db: db_dependency, zone_id: int, request: Request):
    params = parse_query(PropertyQueryParams, request)
    rows, meta = await ZoneService(db).get_properties_by_zone(zone_id, params)
    return envelope([PropertySummary.model_validate(p) for p in rows], meta)

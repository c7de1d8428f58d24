from fastapi import APIRouter, Request
from starlette import status

from ddproperty.dependencies import db_dependency, parse_query
from ddproperty.schemas.common import envelope
from ddproperty.schemas.property import PropertyQueryParams
from ddproperty.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", status_code=status.HTTP_200_OK)
async def search_properties(db: db_dependency, request: Request):
    """Free-text and filter search; accepts ``q`` as a shorthand for ``search``."""
    overrides = {}
    if "q" in request.query_params and "search" not in request.query_params:
        overrides["search"] = request.query_params["q"]
    params = parse_query(PropertyQueryParams, request, **overrides)
    results, meta = await SearchService(db).search_properties(params)
    return envelope(results, meta)

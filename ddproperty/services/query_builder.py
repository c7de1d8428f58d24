"""Translate list/search query parameters into SQLAlchemy clauses.

Shared by the public property list, search, zone and per-owner views so the
pagination envelope and filter semantics are identical everywhere.
"""
import re
from typing import Optional, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from ddproperty.models.property import Property, Listing
from ddproperty.schemas.common import build_page_meta
from ddproperty.schemas.property import PropertyQueryParams

DEFAULT_SORT_FIELD = "created_at"

SEARCH_COLUMNS = (
    Property.title,
    Property.description,
    Property.address,
    Property.city,
    Property.project_name,
    Property.district,
    Property.province,
    Property.search_address,
)

SORTABLE_COLUMNS = frozenset(column.key for column in Property.__table__.columns)

_CAMEL_HUMP = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_HUMP.sub("_", name.strip()).lower()


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str] = "desc"):
    """ORDER BY clauses for a client-supplied sort; unknown fields fall back."""
    field_name = to_snake(sort_by) if sort_by else DEFAULT_SORT_FIELD
    if field_name not in SORTABLE_COLUMNS:
        field_name = DEFAULT_SORT_FIELD
    column = getattr(Property, field_name)
    descending = (sort_order or "desc").lower() != "asc"
    primary = column.desc() if descending else column.asc()
    tie_breaker = Property.id.desc() if descending else Property.id.asc()
    return [primary, tie_breaker]


def search_condition(term: str):
    term = term.strip().lower()
    return or_(
        *[func.lower(column).contains(term, autoescape=True) for column in SEARCH_COLUMNS]
    )


def listing_condition(params: PropertyQueryParams):
    """One listing must satisfy every listing criterion at once."""
    criteria = []
    if params.listing_type is not None:
        criteria.append(Listing.listing_type == params.listing_type)
    if params.min_price is not None:
        criteria.append(Listing.price >= params.min_price)
    if params.max_price is not None:
        criteria.append(Listing.price <= params.max_price)
    if not criteria:
        return None
    return Property.listings.any(and_(*criteria))


def build_property_conditions(params: PropertyQueryParams) -> list:
    conditions = []
    if params.property_type is not None:
        conditions.append(Property.property_type == params.property_type)
    if params.status is not None:
        conditions.append(Property.status == params.status)
    if params.bedrooms is not None:
        conditions.append(Property.bedrooms == params.bedrooms)
    if params.bathrooms is not None:
        conditions.append(Property.bathrooms == params.bathrooms)
    if params.city:
        conditions.append(func.lower(Property.city) == params.city.strip().lower())
    if params.district:
        conditions.append(func.lower(Property.district) == params.district.strip().lower())
    if params.province:
        conditions.append(func.lower(Property.province) == params.province.strip().lower())
    if params.zone_id is not None:
        conditions.append(Property.zone_id == params.zone_id)
    if params.user_id is not None:
        conditions.append(Property.user_id == params.user_id)
    if params.search and params.search.strip():
        conditions.append(search_condition(params.search))

    listing_filter = listing_condition(params)
    if listing_filter is not None:
        conditions.append(listing_filter)
    return conditions


def paginate_properties(
    db: Session,
    params: PropertyQueryParams,
    *,
    extra_conditions: Sequence = (),
    options: Sequence = (),
) -> tuple[list[Property], dict]:
    """Run a filtered, sorted, paginated property query.

    Returns ``(rows, meta)`` where ``meta`` feeds ``PageMeta``.
    """
    conditions = build_property_conditions(params) + list(extra_conditions)

    total = db.scalar(select(func.count(Property.id)).where(*conditions)) or 0

    stmt = (
        select(Property)
        .where(*conditions)
        .order_by(*resolve_sort(params.sort_by, params.sort_order))
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
    )
    if options:
        stmt = stmt.options(*options)
    rows = list(db.scalars(stmt).unique().all())
    return rows, build_page_meta(total, params.page, params.limit)

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import Field, field_validator, model_validator

from ddproperty.models.property import (
    PropertyType,
    PropertyStatus,
    ListingType,
    ListingStatus,
)
from ddproperty.schemas.common import CamelModel, blank_to_none, parse_json_value
from ddproperty.schemas.user import UserBrief
from ddproperty.schemas.zone import ZoneResponse
from ddproperty.services.property_code import PROPERTY_CODE_PREFIX
from ddproperty.services.taxonomy import TAXONOMY_KINDS, decode_json_field

CODE_PATTERN = rf"^{PROPERTY_CODE_PREFIX}\d{{5,}}$"


# ---------------------------------------------------------------- input

class ListingIn(CamelModel):
    listing_type: ListingType
    price: Optional[float] = Field(None, ge=0)
    rental_price: Optional[float] = Field(None, ge=0)
    short_term_daily: Optional[float] = Field(None, ge=0)
    short_term_weekly: Optional[float] = Field(None, ge=0)
    short_term_monthly: Optional[float] = Field(None, ge=0)
    status: ListingStatus = ListingStatus.ACTIVE


class MediaIn(CamelModel):
    url: str = Field(..., min_length=1, max_length=1000)
    title: Optional[str] = Field(None, max_length=200)
    sort_order: Optional[int] = Field(None, ge=0)
    is_featured: bool = False

    @model_validator(mode="before")
    @classmethod
    def accept_bare_url(cls, data):
        if isinstance(data, str):
            return {"url": data}
        return data

    @field_validator("url")
    @classmethod
    def reject_parent_segments(cls, v):
        if ".." in urlsplit(v).path.replace("\\", "/").split("/"):
            raise ValueError("url must not contain '..' path segments")
        return v


class PropertyFields(CamelModel):
    """Scalar columns shared by create and update."""

    reference_id: Optional[str] = Field(None, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    project_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    payment_plan: Optional[str] = None
    translated_titles: Optional[dict[str, str]] = None
    translated_descriptions: Optional[dict[str, str]] = None
    translated_payment_plans: Optional[dict[str, str]] = None
    contact_info: Optional[dict[str, Any]] = None

    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None

    address: Optional[str] = Field(None, max_length=500)
    search_address: Optional[str] = Field(None, max_length=500)
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    zone_id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    floors: Optional[int] = Field(None, ge=0)
    floor: Optional[int] = None
    usable_area: Optional[float] = Field(None, ge=0)
    land_area: Optional[float] = Field(None, ge=0)
    land_width: Optional[float] = Field(None, ge=0)
    land_depth: Optional[float] = Field(None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def drop_blanks(cls, data):
        return blank_to_none(data)

    @field_validator(
        "translated_titles",
        "translated_descriptions",
        "translated_payment_plans",
        "contact_info",
        mode="before",
    )
    @classmethod
    def parse_json_maps(cls, v):
        return parse_json_value(v)

    def column_values(self, *, exclude_unset: bool = False) -> dict:
        return self.model_dump(
            include=set(PropertyFields.model_fields), exclude_unset=exclude_unset
        )


class PropertyCreate(PropertyFields):
    title: str = Field(..., min_length=1, max_length=200)
    property_type: PropertyType
    status: PropertyStatus = PropertyStatus.ACTIVE
    country: str = Field("Thailand", max_length=100)
    property_code: Optional[str] = Field(None, pattern=CODE_PATTERN)

    listings: list[ListingIn] = []
    images: list[MediaIn] = []
    floor_plans: list[MediaIn] = []
    unit_plans: list[MediaIn] = []

    # Single-listing shorthand used by older forms
    listing_type: Optional[ListingType] = None
    price: Optional[float] = Field(None, ge=0)
    rental_price: Optional[float] = Field(None, ge=0)

    # Flag maps / record lists, normalized by the repository
    features: Any = None
    amenities: Any = None
    facilities: Any = None
    views: Any = None
    highlights: Any = None
    labels: Any = None
    nearby: Any = None

    @field_validator("listings", "images", "floor_plans", "unit_plans", mode="before")
    @classmethod
    def parse_json_lists(cls, v):
        v = parse_json_value(v)
        return [] if v is None else v

    @field_validator(*TAXONOMY_KINDS, mode="before")
    @classmethod
    def decode_taxonomy(cls, v, info):
        # Unparseable taxonomy JSON is treated as empty rather than rejected
        return decode_json_field(v, info.field_name)

    @model_validator(mode="after")
    def fold_single_listing(self):
        if not self.listings and self.listing_type is not None:
            self.listings = [
                ListingIn(
                    listing_type=self.listing_type,
                    price=self.price,
                    rental_price=self.rental_price,
                )
            ]
        return self

    def taxonomy_input(self) -> dict:
        return {kind: getattr(self, kind) for kind in TAXONOMY_KINDS}


class PropertyUpdate(PropertyFields):
    """Scalar fields only; taxonomy goes through ``TaxonomyUpdate``."""


class TaxonomyUpdate(CamelModel):
    """Kinds present in the body are replaced; absent kinds are left alone."""

    features: Any = None
    amenities: Any = None
    facilities: Any = None
    views: Any = None
    highlights: Any = None
    labels: Any = None
    nearby: Any = None

    @field_validator(*TAXONOMY_KINDS, mode="before")
    @classmethod
    def decode_taxonomy(cls, v, info):
        return decode_json_field(v, info.field_name)

    def present_kinds(self) -> list[str]:
        return [kind for kind in TAXONOMY_KINDS if kind in self.model_fields_set]


class ImagesCreate(CamelModel):
    images: list[MediaIn] = Field(..., min_length=1)


class FeatureCreate(CamelModel):
    type: str = Field(..., min_length=1)
    active: bool = True


class PropertyQueryParams(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: str = "created_at"
    sort_order: str = Field("desc", pattern="^(asc|desc)$")
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    city: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    zone_id: Optional[int] = None
    search: Optional[str] = None
    user_id: Optional[int] = None
    status: Optional[PropertyStatus] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blanks(cls, data):
        return blank_to_none(data)

    @field_validator("sort_order", mode="before")
    @classmethod
    def lower_sort_order(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


# ---------------------------------------------------------------- output

class ListingResponse(CamelModel):
    id: int
    listing_type: ListingType
    price: Optional[float] = None
    rental_price: Optional[float] = None
    short_term_daily: Optional[float] = None
    short_term_weekly: Optional[float] = None
    short_term_monthly: Optional[float] = None
    status: ListingStatus


class ImageResponse(CamelModel):
    id: int
    url: str
    title: Optional[str] = None
    is_featured: bool = False
    sort_order: int = 0


class PlanResponse(CamelModel):
    id: int
    url: str
    title: Optional[str] = None
    sort_order: int = 0


class TaxonomyResponse(CamelModel):
    id: int
    type: str
    active: bool = True

    @field_validator("type", mode="before")
    @classmethod
    def enum_value(cls, v):
        return v.value if isinstance(v, Enum) else v


class FacilityResponse(TaxonomyResponse):
    category: str

    @field_validator("category", mode="before")
    @classmethod
    def category_value(cls, v):
        return v.value if isinstance(v, Enum) else v


class NearbyResponse(TaxonomyResponse):
    distance: Optional[int] = None


def _only_active(items):
    return [item for item in items if item.active]


class PropertySummary(CamelModel):
    id: int
    property_code: str
    reference_id: Optional[str] = None
    title: str
    project_name: Optional[str] = None
    property_type: PropertyType
    status: PropertyStatus
    address: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    zone_id: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    usable_area: Optional[float] = None
    land_area: Optional[float] = None
    view_count: int = 0
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    listings: list[ListingResponse] = []
    images: list[ImageResponse] = []
    featured_image: Optional[ImageResponse] = None


class OwnedPropertySummary(PropertySummary):
    inquiry_count: int = 0


class PropertyDetail(PropertySummary):
    description: Optional[str] = None
    payment_plan: Optional[str] = None
    translated_titles: Optional[dict[str, str]] = None
    translated_descriptions: Optional[dict[str, str]] = None
    translated_payment_plans: Optional[dict[str, str]] = None
    contact_info: Optional[dict[str, Any]] = None
    search_address: Optional[str] = None
    postal_code: Optional[str] = None
    floors: Optional[int] = None
    floor: Optional[int] = None
    land_width: Optional[float] = None
    land_depth: Optional[float] = None
    zone: Optional[ZoneResponse] = None
    user: Optional[UserBrief] = None
    floor_plans: list[PlanResponse] = []
    unit_plans: list[PlanResponse] = []
    features: list[TaxonomyResponse] = []
    amenities: list[TaxonomyResponse] = []
    facilities: list[FacilityResponse] = []
    views: list[TaxonomyResponse] = []
    highlights: list[TaxonomyResponse] = []
    labels: list[TaxonomyResponse] = []
    nearby_places: list[NearbyResponse] = []

    @field_validator("amenities", "nearby_places", mode="after")
    @classmethod
    def active_only(cls, v):
        return _only_active(v)


class PropertyTypeInfo(CamelModel):
    value: PropertyType
    name_en: str
    name_th: str
    description: str
    count: int = 0


class PropertyPriceStats(CamelModel):
    property_type: PropertyType
    count: int = 0
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    avg_price: Optional[float] = None


class RelocationSummary(CamelModel):
    moved: int = 0
    skipped: int = 0
    failed: int = 0

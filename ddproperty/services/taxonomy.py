"""Normalize client-submitted attribute flag maps into canonical records.

Clients send features/amenities/facilities/views/highlights/labels/nearby in
whatever shape their form produced: ``{"wifi": true, "seaView": "true"}``, a
JSON string of that map, or an already-parsed list of ``{"type": ...}``
records. The key sets evolve independently of the enumerations in
``ddproperty.models.taxonomy``, so resolution is best-effort: a key is matched
against the enumeration, then an alias table, then a substring heuristic, and
anything still unknown is dropped with a warning instead of failing the
request.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from ddproperty.models.taxonomy import (
    AmenityType,
    FacilityCategory,
    FacilityType,
    FeatureType,
    HighlightType,
    LabelType,
    NearbyType,
    ViewType,
)

logger = logging.getLogger(__name__)

TAXONOMY_KINDS = (
    "features",
    "amenities",
    "facilities",
    "views",
    "highlights",
    "labels",
    "nearby",
)

TRUE_STRINGS = {"true", "1", "yes", "y", "on"}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True)
class KindRules:
    enum: type[Enum]
    aliases: dict[str, str]
    # (substring of the compacted lowercase key, canonical value), first match wins
    heuristics: tuple[tuple[str, str], ...]

    @property
    def values(self) -> set[str]:
        return {member.value for member in self.enum}


KIND_RULES: dict[str, KindRules] = {
    "features": KindRules(
        enum=FeatureType,
        aliases={
            "WI_FI": "WIFI",
            "INTERNET": "WIFI",
            "CAR_PARK": "PARKING",
            "AIRCON": "AIR_CONDITIONING",
            "AIR_CON": "AIR_CONDITIONING",
            "AC": "AIR_CONDITIONING",
            "FULLY_FURNISHED": "FURNISHED",
            "PETS_ALLOWED": "PET_FRIENDLY",
            "SECURITY": "SECURITY_24H",
            "SECURITY24H": "SECURITY_24H",
            "LIFT": "ELEVATOR",
            "WASHER": "WASHING_MACHINE",
        },
        heuristics=(
            ("wifi", "WIFI"),
            ("internet", "WIFI"),
            ("aircon", "AIR_CONDITIONING"),
            ("carpark", "PARKING"),
            ("parking", "PARKING"),
            ("garage", "PARKING"),
            ("partial", "PARTIALLY_FURNISHED"),
            ("furnish", "FURNISHED"),
            ("balcon", "BALCONY"),
            ("garden", "GARDEN"),
            ("pool", "PRIVATE_POOL"),
            ("cctv", "CCTV"),
            ("camera", "CCTV"),
            ("secur", "SECURITY_24H"),
            ("guard", "SECURITY_24H"),
            ("elevator", "ELEVATOR"),
            ("lift", "ELEVATOR"),
            ("washing", "WASHING_MACHINE"),
            ("kitchen", "KITCHEN"),
            ("heater", "WATER_HEATER"),
            ("storage", "STORAGE"),
            ("smart", "SMART_HOME"),
            ("maid", "MAID_ROOM"),
            ("corner", "CORNER_UNIT"),
            ("duplex", "DUPLEX"),
            ("pet", "PET_FRIENDLY"),
        ),
    ),
    "amenities": KindRules(
        enum=AmenityType,
        aliases={
            "POOL": "SWIMMING_POOL",
            "GYM": "FITNESS",
            "FITNESS_CENTER": "FITNESS",
            "COWORKING": "CO_WORKING_SPACE",
            "PLAYGROUND": "KIDS_PLAYGROUND",
            "BBQ": "BBQ_AREA",
        },
        heuristics=(
            ("swim", "SWIMMING_POOL"),
            ("pool", "SWIMMING_POOL"),
            ("gym", "FITNESS"),
            ("fitness", "FITNESS"),
            ("sauna", "SAUNA"),
            ("steam", "STEAM_ROOM"),
            ("jacuzzi", "JACUZZI"),
            ("hottub", "JACUZZI"),
            ("library", "LIBRARY"),
            ("cowork", "CO_WORKING_SPACE"),
            ("playground", "KIDS_PLAYGROUND"),
            ("kid", "KIDS_PLAYGROUND"),
            ("bbq", "BBQ_AREA"),
            ("barbecue", "BBQ_AREA"),
            ("rooftop", "ROOFTOP_GARDEN"),
            ("lounge", "SKY_LOUNGE"),
            ("shuttle", "SHUTTLE_SERVICE"),
            ("convenience", "CONVENIENCE_STORE"),
            ("minimart", "CONVENIENCE_STORE"),
            ("laundry", "LAUNDRY"),
            ("restaurant", "RESTAURANT"),
            ("cinema", "CINEMA_ROOM"),
            ("theater", "CINEMA_ROOM"),
            ("game", "GAME_ROOM"),
            ("pet", "PET_AREA"),
        ),
    ),
    "facilities": KindRules(
        enum=FacilityType,
        aliases={
            "FITNESS": "GYM",
            "FITNESS_CENTER": "GYM",
            "POOL": "SWIMMING_POOL",
            "SECURITY": "SECURITY_GUARD",
            "SECURITY_24H": "SECURITY_GUARD",
            "PARKING": "CAR_PARK",
            "BBQ": "BBQ_AREA",
            "LAUNDRY": "LAUNDRY_SERVICE",
        },
        heuristics=(
            ("gym", "GYM"),
            ("fitness", "GYM"),
            ("swim", "SWIMMING_POOL"),
            ("pool", "SWIMMING_POOL"),
            ("tennis", "TENNIS_COURT"),
            ("basketball", "BASKETBALL_COURT"),
            ("jog", "JOGGING_TRACK"),
            ("running", "JOGGING_TRACK"),
            ("yoga", "YOGA_ROOM"),
            ("sauna", "SAUNA"),
            ("steam", "STEAM_ROOM"),
            ("jacuzzi", "JACUZZI"),
            ("spa", "SPA"),
            ("bbq", "BBQ_AREA"),
            ("barbecue", "BBQ_AREA"),
            ("bar", "ROOFTOP_BAR"),
            ("garden", "GARDEN"),
            ("cctv", "CCTV"),
            ("camera", "CCTV"),
            ("keycard", "KEYCARD_ACCESS"),
            ("access", "KEYCARD_ACCESS"),
            ("guard", "SECURITY_GUARD"),
            ("secur", "SECURITY_GUARD"),
            ("fire", "FIRE_ALARM"),
            ("lobby", "LOBBY"),
            ("cowork", "CO_WORKING_SPACE"),
            ("library", "LIBRARY"),
            ("meeting", "MEETING_ROOM"),
            ("kid", "KIDS_CLUB"),
            ("laundry", "LAUNDRY_SERVICE"),
            ("concierge", "CONCIERGE"),
            ("housekeep", "HOUSEKEEPING"),
            ("shuttle", "SHUTTLE_BUS"),
            ("reception", "RECEPTION"),
            ("charger", "EV_CHARGER"),
            ("evcharg", "EV_CHARGER"),
            ("bicycle", "BICYCLE_PARKING"),
            ("bike", "BICYCLE_PARKING"),
            ("valet", "VALET_PARKING"),
            ("carpark", "CAR_PARK"),
            ("parking", "CAR_PARK"),
        ),
    ),
    "views": KindRules(
        enum=ViewType,
        aliases={},
        heuristics=(
            ("sea", "SEA_VIEW"),
            ("ocean", "SEA_VIEW"),
            ("beach", "SEA_VIEW"),
            ("city", "CITY_VIEW"),
            ("skyline", "CITY_VIEW"),
            ("mountain", "MOUNTAIN_VIEW"),
            ("hill", "MOUNTAIN_VIEW"),
            ("garden", "GARDEN_VIEW"),
            ("pool", "POOL_VIEW"),
            ("lake", "LAKE_VIEW"),
            ("river", "RIVER_VIEW"),
            ("golf", "GOLF_VIEW"),
            ("park", "PARK_VIEW"),
        ),
    ),
    "highlights": KindRules(
        enum=HighlightType,
        aliases={"NEW": "NEW_DEVELOPMENT", "READY_TO_MOVE": "READY_TO_MOVE_IN"},
        heuristics=(
            ("newdev", "NEW_DEVELOPMENT"),
            ("newproject", "NEW_DEVELOPMENT"),
            ("ready", "READY_TO_MOVE_IN"),
            ("furnish", "FULLY_FURNISHED"),
            ("bts", "NEAR_BTS"),
            ("skytrain", "NEAR_BTS"),
            ("mrt", "NEAR_MRT"),
            ("subway", "NEAR_MRT"),
            ("beach", "NEAR_BEACH"),
            ("foreign", "FOREIGN_QUOTA"),
            ("reduced", "PRICE_REDUCED"),
            ("discount", "PRICE_REDUCED"),
            ("luxur", "LUXURY"),
            ("yield", "HIGH_RENTAL_YIELD"),
            ("lift", "PRIVATE_LIFT"),
            ("pet", "PET_FRIENDLY"),
        ),
    ),
    "labels": KindRules(
        enum=LabelType,
        aliases={"SALE": "REDUCED", "PROMOTION": "REDUCED"},
        heuristics=(
            ("openhouse", "OPEN_HOUSE"),
            ("soldout", "SOLD_OUT"),
            ("sold", "SOLD_OUT"),
            ("exclusive", "EXCLUSIVE"),
            ("featur", "FEATURED"),
            ("recommend", "RECOMMENDED"),
            ("reduc", "REDUCED"),
            ("discount", "REDUCED"),
            ("hot", "HOT"),
            ("new", "NEW"),
        ),
    ),
    "nearby": KindRules(
        enum=NearbyType,
        aliases={"SKYTRAIN": "BTS", "SUBWAY": "MRT", "MALL": "SHOPPING_MALL"},
        heuristics=(
            ("bts", "BTS"),
            ("skytrain", "BTS"),
            ("mrt", "MRT"),
            ("subway", "MRT"),
            ("airportlink", "AIRPORT_LINK"),
            ("airport", "AIRPORT"),
            ("mall", "SHOPPING_MALL"),
            ("shopping", "SHOPPING_MALL"),
            ("hospital", "HOSPITAL"),
            ("clinic", "HOSPITAL"),
            ("university", "UNIVERSITY"),
            ("college", "UNIVERSITY"),
            ("school", "SCHOOL"),
            ("beach", "BEACH"),
            ("market", "MARKET"),
            ("convenience", "CONVENIENCE_STORE"),
            ("7eleven", "CONVENIENCE_STORE"),
            ("restaurant", "RESTAURANT"),
            ("golf", "GOLF_COURSE"),
            ("park", "PARK"),
        ),
    ),
}

FACILITY_CATEGORIES: dict[str, str] = {
    "GYM": FacilityCategory.FITNESS_SPORTS.value,
    "SWIMMING_POOL": FacilityCategory.FITNESS_SPORTS.value,
    "TENNIS_COURT": FacilityCategory.FITNESS_SPORTS.value,
    "BASKETBALL_COURT": FacilityCategory.FITNESS_SPORTS.value,
    "JOGGING_TRACK": FacilityCategory.FITNESS_SPORTS.value,
    "YOGA_ROOM": FacilityCategory.FITNESS_SPORTS.value,
    "SAUNA": FacilityCategory.LEISURE_WELLNESS.value,
    "SPA": FacilityCategory.LEISURE_WELLNESS.value,
    "STEAM_ROOM": FacilityCategory.LEISURE_WELLNESS.value,
    "JACUZZI": FacilityCategory.LEISURE_WELLNESS.value,
    "ROOFTOP_BAR": FacilityCategory.LEISURE_WELLNESS.value,
    "GARDEN": FacilityCategory.LEISURE_WELLNESS.value,
    "CCTV": FacilityCategory.SECURITY.value,
    "SECURITY_GUARD": FacilityCategory.SECURITY.value,
    "KEYCARD_ACCESS": FacilityCategory.SECURITY.value,
    "FIRE_ALARM": FacilityCategory.SECURITY.value,
    "LOBBY": FacilityCategory.COMMON_AREAS.value,
    "CO_WORKING_SPACE": FacilityCategory.COMMON_AREAS.value,
    "LIBRARY": FacilityCategory.COMMON_AREAS.value,
    "MEETING_ROOM": FacilityCategory.COMMON_AREAS.value,
    "KIDS_CLUB": FacilityCategory.COMMON_AREAS.value,
    "BBQ_AREA": FacilityCategory.COMMON_AREAS.value,
    "LAUNDRY_SERVICE": FacilityCategory.SERVICES.value,
    "CONCIERGE": FacilityCategory.SERVICES.value,
    "HOUSEKEEPING": FacilityCategory.SERVICES.value,
    "SHUTTLE_BUS": FacilityCategory.SERVICES.value,
    "RECEPTION": FacilityCategory.SERVICES.value,
    "CAR_PARK": FacilityCategory.PARKING_TRANSPORT.value,
    "EV_CHARGER": FacilityCategory.PARKING_TRANSPORT.value,
    "BICYCLE_PARKING": FacilityCategory.PARKING_TRANSPORT.value,
    "VALET_PARKING": FacilityCategory.PARKING_TRANSPORT.value,
}


@dataclass(frozen=True)
class TaxonomyRecord:
    type: str
    category: Optional[str] = None
    distance: Optional[int] = None


@dataclass
class NormalizedTaxonomy:
    features: list[TaxonomyRecord] = field(default_factory=list)
    amenities: list[TaxonomyRecord] = field(default_factory=list)
    facilities: list[TaxonomyRecord] = field(default_factory=list)
    views: list[TaxonomyRecord] = field(default_factory=list)
    highlights: list[TaxonomyRecord] = field(default_factory=list)
    labels: list[TaxonomyRecord] = field(default_factory=list)
    nearby: list[TaxonomyRecord] = field(default_factory=list)
    # kind -> raw keys that could not be mapped
    dropped: dict[str, list[str]] = field(default_factory=dict)

    def items(self) -> Iterator[tuple[str, list[TaxonomyRecord]]]:
        for kind in TAXONOMY_KINDS:
            yield kind, getattr(self, kind)

    def types(self, kind: str) -> list[str]:
        return [record.type for record in getattr(self, kind)]

    @property
    def total(self) -> int:
        return sum(len(records) for _, records in self.items())


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def to_enum_key(raw: Any) -> str:
    """``"seaView"`` / ``"sea view"`` / ``"sea-view"`` -> ``"SEA_VIEW"``."""
    text = _CAMEL_BOUNDARY.sub("_", str(raw).strip())
    return _NON_ALNUM.sub("_", text).strip("_").upper()


def decode_json_field(value: Any, field_name: str = "value") -> Any:
    """Decode a JSON-encoded form field, returning None when it can't be parsed."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Ignoring %s: not valid JSON (%r)", field_name, text[:100])
        return None


def resolve_type(kind: str, raw_key: Any) -> Optional[str]:
    """Map a client key to the canonical enumeration value for ``kind``."""
    rules = KIND_RULES[kind]
    key = to_enum_key(raw_key)
    if not key:
        return None
    if key in rules.values:
        return key
    if key in rules.aliases:
        return rules.aliases[key]
    compact = key.replace("_", "").lower()
    for needle, canonical in rules.heuristics:
        if needle in compact:
            return canonical
    return None


def _coerce_distance(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _iter_entries(kind: str, value: Any) -> Iterator[tuple[Any, dict]]:
    """Yield (raw key, extra attributes) for every entry flagged true."""
    if isinstance(value, Mapping):
        if isinstance(value.get("type"), str):
            # a single record rather than a flag map
            value = [value]
        else:
            for key, flag in value.items():
                if isinstance(flag, Mapping):
                    if is_truthy(flag.get("active", True)):
                        yield key, dict(flag)
                elif is_truthy(flag):
                    yield key, {}
            return

    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str):
                yield item, {}
            elif isinstance(item, Mapping):
                raw = item.get("type") or item.get("key") or item.get("name")
                if raw is None:
                    logger.warning("Dropping %s entry without a type: %r", kind, item)
                    continue
                if is_truthy(item.get("active", True)):
                    yield raw, dict(item)
            else:
                logger.warning("Dropping unsupported %s entry: %r", kind, item)
        return

    logger.warning("Ignoring %s of unsupported shape: %r", kind, type(value).__name__)


def normalize_kind(kind: str, value: Any) -> tuple[list[TaxonomyRecord], list[str]]:
    """Normalize one attribute kind. Returns (records, dropped raw keys)."""
    if kind not in KIND_RULES:
        raise ValueError(f"Unknown taxonomy kind: {kind}")

    value = decode_json_field(value, kind)
    if value is None or value == "" or value == {} or value == []:
        return [], []

    records: list[TaxonomyRecord] = []
    dropped: list[str] = []
    seen: set[str] = set()

    for raw_key, extra in _iter_entries(kind, value):
        canonical = resolve_type(kind, raw_key)
        if canonical is None:
            logger.warning("Dropping unrecognized %s key %r", kind, raw_key)
            dropped.append(str(raw_key))
            continue
        if canonical in seen:
            continue
        seen.add(canonical)

        category = None
        if kind == "facilities":
            explicit = extra.get("category")
            if explicit is not None and to_enum_key(explicit) in FACILITY_CATEGORIES.values():
                category = to_enum_key(explicit)
            else:
                category = FACILITY_CATEGORIES[canonical]

        distance = _coerce_distance(extra.get("distance")) if kind == "nearby" else None
        records.append(TaxonomyRecord(type=canonical, category=category, distance=distance))

    return records, dropped


def normalize_taxonomy(payload: Mapping[str, Any]) -> NormalizedTaxonomy:
    """Normalize every attribute kind present in ``payload``.

    Absent or empty kinds produce empty lists; nothing here raises for bad
    client input.
    """
    result = NormalizedTaxonomy()
    for kind in TAXONOMY_KINDS:
        records, dropped = normalize_kind(kind, payload.get(kind))
        setattr(result, kind, records)
        if dropped:
            result.dropped[kind] = dropped
    return result

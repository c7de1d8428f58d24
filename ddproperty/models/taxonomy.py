"""Boolean-flag attribute rows owned by a property.

Each table stores one canonical enumerated ``type`` per row. The rows are a
denormalization of the flag maps clients submit (``{"wifi": true, ...}``); see
``ddproperty.services.taxonomy`` for how those maps are resolved to the
enumerations below.
"""
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ddproperty.database import Base
import enum


class FeatureType(str, enum.Enum):
    WIFI = "WIFI"
    PARKING = "PARKING"
    AIR_CONDITIONING = "AIR_CONDITIONING"
    FURNISHED = "FURNISHED"
    PARTIALLY_FURNISHED = "PARTIALLY_FURNISHED"
    PET_FRIENDLY = "PET_FRIENDLY"
    BALCONY = "BALCONY"
    GARDEN = "GARDEN"
    PRIVATE_POOL = "PRIVATE_POOL"
    SECURITY_24H = "SECURITY_24H"
    CCTV = "CCTV"
    ELEVATOR = "ELEVATOR"
    WASHING_MACHINE = "WASHING_MACHINE"
    KITCHEN = "KITCHEN"
    WATER_HEATER = "WATER_HEATER"
    STORAGE = "STORAGE"
    SMART_HOME = "SMART_HOME"
    MAID_ROOM = "MAID_ROOM"
    CORNER_UNIT = "CORNER_UNIT"
    DUPLEX = "DUPLEX"


class AmenityType(str, enum.Enum):
    SWIMMING_POOL = "SWIMMING_POOL"
    FITNESS = "FITNESS"
    SAUNA = "SAUNA"
    STEAM_ROOM = "STEAM_ROOM"
    JACUZZI = "JACUZZI"
    LIBRARY = "LIBRARY"
    CO_WORKING_SPACE = "CO_WORKING_SPACE"
    KIDS_PLAYGROUND = "KIDS_PLAYGROUND"
    BBQ_AREA = "BBQ_AREA"
    ROOFTOP_GARDEN = "ROOFTOP_GARDEN"
    SKY_LOUNGE = "SKY_LOUNGE"
    SHUTTLE_SERVICE = "SHUTTLE_SERVICE"
    CONVENIENCE_STORE = "CONVENIENCE_STORE"
    LAUNDRY = "LAUNDRY"
    RESTAURANT = "RESTAURANT"
    CINEMA_ROOM = "CINEMA_ROOM"
    GAME_ROOM = "GAME_ROOM"
    PET_AREA = "PET_AREA"


class FacilityCategory(str, enum.Enum):
    FITNESS_SPORTS = "FITNESS_SPORTS"
    LEISURE_WELLNESS = "LEISURE_WELLNESS"
    SECURITY = "SECURITY"
    COMMON_AREAS = "COMMON_AREAS"
    SERVICES = "SERVICES"
    PARKING_TRANSPORT = "PARKING_TRANSPORT"


class FacilityType(str, enum.Enum):
    GYM = "GYM"
    SWIMMING_POOL = "SWIMMING_POOL"
    TENNIS_COURT = "TENNIS_COURT"
    BASKETBALL_COURT = "BASKETBALL_COURT"
    JOGGING_TRACK = "JOGGING_TRACK"
    YOGA_ROOM = "YOGA_ROOM"
    SAUNA = "SAUNA"
    SPA = "SPA"
    STEAM_ROOM = "STEAM_ROOM"
    JACUZZI = "JACUZZI"
    ROOFTOP_BAR = "ROOFTOP_BAR"
    GARDEN = "GARDEN"
    CCTV = "CCTV"
    SECURITY_GUARD = "SECURITY_GUARD"
    KEYCARD_ACCESS = "KEYCARD_ACCESS"
    FIRE_ALARM = "FIRE_ALARM"
    LOBBY = "LOBBY"
    CO_WORKING_SPACE = "CO_WORKING_SPACE"
    LIBRARY = "LIBRARY"
    MEETING_ROOM = "MEETING_ROOM"
    KIDS_CLUB = "KIDS_CLUB"
    BBQ_AREA = "BBQ_AREA"
    LAUNDRY_SERVICE = "LAUNDRY_SERVICE"
    CONCIERGE = "CONCIERGE"
    HOUSEKEEPING = "HOUSEKEEPING"
    SHUTTLE_BUS = "SHUTTLE_BUS"
    RECEPTION = "RECEPTION"
    CAR_PARK = "CAR_PARK"
    EV_CHARGER = "EV_CHARGER"
    BICYCLE_PARKING = "BICYCLE_PARKING"
    VALET_PARKING = "VALET_PARKING"


class ViewType(str, enum.Enum):
    SEA_VIEW = "SEA_VIEW"
    CITY_VIEW = "CITY_VIEW"
    MOUNTAIN_VIEW = "MOUNTAIN_VIEW"
    GARDEN_VIEW = "GARDEN_VIEW"
    POOL_VIEW = "POOL_VIEW"
    LAKE_VIEW = "LAKE_VIEW"
    RIVER_VIEW = "RIVER_VIEW"
    GOLF_VIEW = "GOLF_VIEW"
    PARK_VIEW = "PARK_VIEW"


class HighlightType(str, enum.Enum):
    NEW_DEVELOPMENT = "NEW_DEVELOPMENT"
    READY_TO_MOVE_IN = "READY_TO_MOVE_IN"
    FULLY_FURNISHED = "FULLY_FURNISHED"
    NEAR_BTS = "NEAR_BTS"
    NEAR_MRT = "NEAR_MRT"
    NEAR_BEACH = "NEAR_BEACH"
    FOREIGN_QUOTA = "FOREIGN_QUOTA"
    PRICE_REDUCED = "PRICE_REDUCED"
    LUXURY = "LUXURY"
    PET_FRIENDLY = "PET_FRIENDLY"
    HIGH_RENTAL_YIELD = "HIGH_RENTAL_YIELD"
    PRIVATE_LIFT = "PRIVATE_LIFT"


class LabelType(str, enum.Enum):
    NEW = "NEW"
    HOT = "HOT"
    FEATURED = "FEATURED"
    EXCLUSIVE = "EXCLUSIVE"
    REDUCED = "REDUCED"
    SOLD_OUT = "SOLD_OUT"
    OPEN_HOUSE = "OPEN_HOUSE"
    RECOMMENDED = "RECOMMENDED"


class NearbyType(str, enum.Enum):
    BTS = "BTS"
    MRT = "MRT"
    AIRPORT_LINK = "AIRPORT_LINK"
    SHOPPING_MALL = "SHOPPING_MALL"
    HOSPITAL = "HOSPITAL"
    SCHOOL = "SCHOOL"
    UNIVERSITY = "UNIVERSITY"
    AIRPORT = "AIRPORT"
    BEACH = "BEACH"
    MARKET = "MARKET"
    PARK = "PARK"
    CONVENIENCE_STORE = "CONVENIENCE_STORE"
    RESTAURANT = "RESTAURANT"
    GOLF_COURSE = "GOLF_COURSE"


def _type_column(enum_cls):
    return Column(
        Enum(enum_cls, native_enum=False, length=50, validate_strings=True),
        nullable=False,
    )


class TaxonomyMixin:
    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Feature(TaxonomyMixin, Base):
    __tablename__ = "property_features"

    type = _type_column(FeatureType)
    property = relationship("Property", back_populates="features")


class Amenity(TaxonomyMixin, Base):
    __tablename__ = "property_amenities"

    type = _type_column(AmenityType)
    property = relationship("Property", back_populates="amenities")


class Facility(TaxonomyMixin, Base):
    __tablename__ = "property_facilities"

    type = _type_column(FacilityType)
    category = Column(
        Enum(FacilityCategory, native_enum=False, length=50, validate_strings=True),
        nullable=False,
    )
    property = relationship("Property", back_populates="facilities")


class View(TaxonomyMixin, Base):
    __tablename__ = "property_views"

    type = _type_column(ViewType)
    property = relationship("Property", back_populates="views")


class Highlight(TaxonomyMixin, Base):
    __tablename__ = "property_highlights"

    type = _type_column(HighlightType)
    property = relationship("Property", back_populates="highlights")


class Label(TaxonomyMixin, Base):
    __tablename__ = "property_labels"

    type = _type_column(LabelType)
    property = relationship("Property", back_populates="labels")


class NearbyPlace(TaxonomyMixin, Base):
    __tablename__ = "property_nearby_places"

    type = _type_column(NearbyType)
    distance = Column(Integer, nullable=True)  # metres, when the client supplies one
    property = relationship("Property", back_populates="nearby_places")


# kind name -> (model, enum), in the order the kinds are written on create
TAXONOMY_MODELS = {
    "features": (Feature, FeatureType),
    "amenities": (Amenity, AmenityType),
    "facilities": (Facility, FacilityType),
    "views": (View, ViewType),
    "highlights": (Highlight, HighlightType),
    "labels": (Label, LabelType),
    "nearby": (NearbyPlace, NearbyType),
}

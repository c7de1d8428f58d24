from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Enum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ddproperty.database import Base
import enum


class PropertyType(str, enum.Enum):
    CONDO = "CONDO"
    HOUSE = "HOUSE"
    TOWNHOUSE = "TOWNHOUSE"
    VILLA = "VILLA"
    LAND = "LAND"
    APARTMENT = "APARTMENT"
    COMMERCIAL = "COMMERCIAL"
    OFFICE = "OFFICE"
    RETAIL = "RETAIL"
    WAREHOUSE = "WAREHOUSE"
    FACTORY = "FACTORY"
    HOTEL = "HOTEL"
    RESORT = "RESORT"


class PropertyStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    SOLD = "SOLD"
    RENTED = "RENTED"


class ListingType(str, enum.Enum):
    SALE = "SALE"
    RENT = "RENT"


class ListingStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SOLD = "SOLD"
    RENTED = "RENTED"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    property_code = Column(String(20), unique=True, index=True, nullable=False)
    reference_id = Column(String(100), nullable=True)

    title = Column(String(200), nullable=False)
    project_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    payment_plan = Column(Text, nullable=True)

    # Per-language maps: {"en": "...", "th": "..."}
    translated_titles = Column(JSON, nullable=True)
    translated_descriptions = Column(JSON, nullable=True)
    translated_payment_plans = Column(JSON, nullable=True)
    contact_info = Column(JSON, nullable=True)

    property_type = Column(Enum(PropertyType), nullable=False, index=True)
    status = Column(
        Enum(PropertyStatus), default=PropertyStatus.ACTIVE, nullable=False, index=True
    )

    # Location
    address = Column(String(500), nullable=True)
    search_address = Column(String(500), nullable=True)
    district = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), default="Thailand")
    zone_id = Column(
        Integer, ForeignKey("zones.id", ondelete="SET NULL"), nullable=True, index=True
    )
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Physical attributes, null when not applicable to the type (e.g. LAND)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    floors = Column(Integer, nullable=True)
    floor = Column(Integer, nullable=True)
    usable_area = Column(Float, nullable=True)
    land_area = Column(Float, nullable=True)
    land_width = Column(Float, nullable=True)
    land_depth = Column(Float, nullable=True)

    view_count = Column(Integer, default=0, nullable=False)

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="properties")
    zone = relationship("Zone", back_populates="properties")
    listings = relationship(
        "Listing",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="Listing.id",
    )
    images = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PropertyImage.sort_order",
    )
    floor_plans = relationship(
        "FloorPlan",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="FloorPlan.sort_order",
    )
    unit_plans = relationship(
        "UnitPlan",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="UnitPlan.sort_order",
    )
    features = relationship(
        "Feature", back_populates="property", cascade="all, delete-orphan"
    )
    amenities = relationship(
        "Amenity", back_populates="property", cascade="all, delete-orphan"
    )
    facilities = relationship(
        "Facility", back_populates="property", cascade="all, delete-orphan"
    )
    views = relationship(
        "View", back_populates="property", cascade="all, delete-orphan"
    )
    highlights = relationship(
        "Highlight", back_populates="property", cascade="all, delete-orphan"
    )
    labels = relationship(
        "Label", back_populates="property", cascade="all, delete-orphan"
    )
    nearby_places = relationship(
        "NearbyPlace", back_populates="property", cascade="all, delete-orphan"
    )
    messages = relationship(
        "Message", back_populates="property", cascade="all, delete-orphan"
    )

    @property
    def featured_image(self):
        for image in self.images:
            if image.is_featured:
                return image
        return self.images[0] if self.images else None


class Listing(Base):
    __tablename__ = "property_listings"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    listing_type = Column(Enum(ListingType), nullable=False, index=True)
    price = Column(Float, nullable=True, index=True)
    rental_price = Column(Float, nullable=True)
    short_term_daily = Column(Float, nullable=True)
    short_term_weekly = Column(Float, nullable=True)
    short_term_monthly = Column(Float, nullable=True)
    status = Column(Enum(ListingStatus), default=ListingStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    property = relationship("Property", back_populates="listings")

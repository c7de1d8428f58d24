# Import all models so they're registered with Base.metadata
from ddproperty.models.user import User, UserRole
from ddproperty.models.zone import Zone
from ddproperty.models.property import (
    Property,
    PropertyType,
    PropertyStatus,
    Listing,
    ListingType,
    ListingStatus,
)
from ddproperty.models.media import PropertyImage, FloorPlan, UnitPlan
from ddproperty.models.taxonomy import (
    Feature,
    Amenity,
    Facility,
    View,
    Highlight,
    Label,
    NearbyPlace,
    TAXONOMY_MODELS,
)
from ddproperty.models.message import Message, MessageStatus
from ddproperty.models.icon import Icon
from ddproperty.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Zone",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "Listing",
    "ListingType",
    "ListingStatus",
    "PropertyImage",
    "FloorPlan",
    "UnitPlan",
    "Feature",
    "Amenity",
    "Facility",
    "View",
    "Highlight",
    "Label",
    "NearbyPlace",
    "TAXONOMY_MODELS",
    "Message",
    "MessageStatus",
    "Icon",
    "AuditLog",
]

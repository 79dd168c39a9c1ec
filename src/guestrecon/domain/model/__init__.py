"""Domain model: dataclasses mapped imperatively by the SQLAlchemy adapter."""

from __future__ import annotations

from .audit import EntityMerge, FieldChange
from .base import Entity, IdentityEntity, LegacyIdentifier, new_id, utcnow
from .catalog import NameMapping, TourProduct
from .entities import DEFAULT_VENDOR_COLOR, Guest, IdentityRecord, Vendor
from .enums import (
    BookingStatus,
    EntityKind,
    ImportDomain,
    MappingKind,
    MergeReason,
    ProfileType,
    VendorType,
)
from .records import (
    Conversation,
    Message,
    Order,
    OtherHotelBooking,
    Reservation,
    RomanticDinner,
    SpecialRequest,
    TourBooking,
    Transfer,
    VendorUser,
)

__all__ = [
    "DEFAULT_VENDOR_COLOR",
    "BookingStatus",
    "Conversation",
    "Entity",
    "EntityKind",
    "EntityMerge",
    "FieldChange",
    "Guest",
    "IdentityEntity",
    "IdentityRecord",
    "ImportDomain",
    "LegacyIdentifier",
    "MappingKind",
    "MergeReason",
    "Message",
    "NameMapping",
    "Order",
    "OtherHotelBooking",
    "ProfileType",
    "Reservation",
    "RomanticDinner",
    "SpecialRequest",
    "TourBooking",
    "TourProduct",
    "Transfer",
    "Vendor",
    "VendorType",
    "VendorUser",
]

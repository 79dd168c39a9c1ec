"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Identity entities that can be matched, deduplicated and merged."""

    GUEST = "guest"
    VENDOR = "vendor"


class ImportDomain(StrEnum):
    GUEST = "guest"
    VENDOR = "vendor"
    TRANSFER = "transfer"
    TOUR_BOOKING = "tour_booking"
    SPECIAL_REQUEST = "special_request"
    RESERVATION = "reservation"


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class VendorType(StrEnum):
    TRANSFER = "transfer"
    TOUR = "tour"
    SPA = "spa"
    RESTAURANT = "restaurant"
    OTHER = "other"


class ProfileType(StrEnum):
    GUEST = "guest"
    STAFF = "staff"
    VISITOR = "visitor"
    MUSICIAN = "musician"
    ARTIST = "artist"
    OTHER = "other"


class MappingKind(StrEnum):
    TOUR = "tour"
    VENDOR = "vendor"


class MergeReason(StrEnum):
    DUPLICATE = "duplicate"
    MANUAL = "manual"

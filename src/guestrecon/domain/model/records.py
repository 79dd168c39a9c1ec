"""Records that hang off guests and vendors through nullable foreign keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from guestrecon.domain.model.base import Entity, utcnow
from guestrecon.domain.model.enums import BookingStatus

if TYPE_CHECKING:
    from datetime import date, datetime, time
    from decimal import Decimal
    from uuid import UUID

    from guestrecon.domain.model.enums import EntityKind


@dataclass(eq=False, kw_only=True)
class Transfer(Entity):
    legacy_id: str | None = None
    transfer_date: date | None = None
    transfer_time: time | None = None
    guest_id: UUID | None = None
    vendor_id: UUID | None = None
    legacy_vendor_id: str | None = None
    origin: str | None = None
    destination: str | None = None
    num_passengers: int = 1
    guest_status: BookingStatus = BookingStatus.PENDING
    vendor_status: BookingStatus = BookingStatus.PENDING
    billed_date: date | None = None
    paid_date: date | None = None
    price: Decimal | None = None
    notes: str | None = None


@dataclass(eq=False, kw_only=True)
class TourBooking(Entity):
    legacy_id: str | None = None
    activity_date: date | None = None
    start_time: time | None = None
    guest_id: UUID | None = None
    product_id: UUID | None = None
    legacy_vendor_id: str | None = None
    num_guests: int = 1
    guest_status: BookingStatus = BookingStatus.PENDING
    vendor_status: BookingStatus = BookingStatus.PENDING
    billed_date: date | None = None
    paid_date: date | None = None
    total_price: Decimal | None = None
    special_requests: str | None = None
    legacy_activity_name: str | None = None


@dataclass(eq=False, kw_only=True)
class SpecialRequest(Entity):
    legacy_id: str | None = None
    guest_id: UUID | None = None
    request_date: date | None = None
    request: str | None = None
    status: BookingStatus = BookingStatus.PENDING
    notes: str | None = None


@dataclass(eq=False, kw_only=True)
class RomanticDinner(Entity):
    guest_id: UUID | None = None
    dinner_date: date | None = None
    num_guests: int = 2
    status: BookingStatus = BookingStatus.PENDING


@dataclass(eq=False, kw_only=True)
class Reservation(Entity):
    """Room reservation as delivered by the property management system (PMS)."""

    pms_id: str
    guest_id: UUID | None = None
    pms_guest_name: str | None = None
    status: str | None = None
    short_status: str | None = None
    room: str | None = None
    arrival: date | None = None
    departure: date | None = None
    persons: int | None = None
    nights: int | None = None
    room_count: int | None = None
    room_category: str | None = None
    rate_code: str | None = None
    guarantee_code: str | None = None
    group_name: str | None = None
    travel_agent: str | None = None
    company: str | None = None
    share_amount: Decimal | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Conversation(Entity):
    guest_id: UUID | None = None
    subject: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Message(Entity):
    """Chat message; the sender is a typed reference, not a foreign key."""

    conversation_id: UUID | None = None
    sender_type: EntityKind | None = None
    sender_id: UUID | None = None
    body: str = ""
    sent_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Order(Entity):
    guest_id: UUID | None = None
    description: str | None = None
    total: Decimal | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class VendorUser(Entity):
    vendor_id: UUID | None = None
    email: str


@dataclass(eq=False, kw_only=True)
class OtherHotelBooking(Entity):
    """Stay booked for a guest at a partner property before or after ours."""

    guest_id: UUID | None = None
    hotel_name: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    notes: str | None = None

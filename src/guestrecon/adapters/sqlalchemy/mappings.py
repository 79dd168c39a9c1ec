"""SQLAlchemy mapping metadata for the guestrecon domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Time,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    and_,
    func,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from guestrecon.domain.model import (
    BookingStatus,
    Conversation,
    EntityKind,
    EntityMerge,
    FieldChange,
    Guest,
    ImportDomain,
    LegacyIdentifier,
    MappingKind,
    MergeReason,
    Message,
    NameMapping,
    Order,
    OtherHotelBooking,
    ProfileType,
    Reservation,
    RomanticDinner,
    SpecialRequest,
    TourBooking,
    TourProduct,
    Transfer,
    Vendor,
    VendorType,
    VendorUser,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]
MoneyType = Numeric(12, 2, asdecimal=True)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _status_column(name: str) -> Column[BookingStatus]:
    return Column(
        name,
        Enum(BookingStatus, native_enum=False),
        nullable=False,
        default=BookingStatus.PENDING,
    )


# Identities ------------------------------------------------------------------

guest_table = Table(
    "guest",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("full_name", String, nullable=False),
    Column("first_name", String, nullable=True),
    Column("last_name", String, nullable=True),
    Column("email", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("nationality", String, nullable=True),
    Column("notes", Text, nullable=True),
    Column("companion_name", String, nullable=True),
    Column("profile_type", Enum(ProfileType, native_enum=False), nullable=False),
    Column("crm_metadata", JSON, nullable=False, default=dict),
    Column("legacy_profiles", JSON, nullable=False, default=list),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
    Index("ix_guest_full_name", "full_name"),
    Index("ix_guest_last_name", "last_name"),
)

vendor_table = Table(
    "vendor",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("email", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("type", Enum(VendorType, native_enum=False), nullable=False),
    Column("color_code", String(16), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("notes", Text, nullable=True),
    Column("legacy_profiles", JSON, nullable=False, default=list),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
)

legacy_identifier_table = Table(
    "legacy_identifier",
    mapper_registry.metadata,
    Column("owner_type", Enum(EntityKind, native_enum=False), primary_key=True),
    Column("owner_id", UUIDColumnType, primary_key=True),
    Column("value", String, primary_key=True),
    Column("created_at", UTCDateTime(), nullable=True, server_default=func.now()),
    Index("ix_legacy_identifier_value", "owner_type", "value"),
)

# Dependent records -----------------------------------------------------------

tour_product_table = Table(
    "tour_product",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name_en", String, nullable=False),
    Column("name_es", String, nullable=True),
    Column("vendor_id", UUIDColumnType, ForeignKey("vendor.id"), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
)

transfer_table = Table(
    "transfer",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("legacy_id", String, nullable=True, index=True),
    Column("transfer_date", Date, nullable=True),
    Column("transfer_time", Time, nullable=True),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("vendor_id", UUIDColumnType, ForeignKey("vendor.id"), nullable=True),
    Column("legacy_vendor_id", String, nullable=True),
    Column("origin", String, nullable=True),
    Column("destination", String, nullable=True),
    Column("num_passengers", Integer, nullable=False, default=1),
    _status_column("guest_status"),
    _status_column("vendor_status"),
    Column("billed_date", Date, nullable=True),
    Column("paid_date", Date, nullable=True),
    Column("price", MoneyType, nullable=True),
    Column("notes", Text, nullable=True),
)

tour_booking_table = Table(
    "tour_booking",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("legacy_id", String, nullable=True, index=True),
    Column("activity_date", Date, nullable=True),
    Column("start_time", Time, nullable=True),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("product_id", UUIDColumnType, ForeignKey("tour_product.id"), nullable=True),
    Column("legacy_vendor_id", String, nullable=True),
    Column("num_guests", Integer, nullable=False, default=1),
    _status_column("guest_status"),
    _status_column("vendor_status"),
    Column("billed_date", Date, nullable=True),
    Column("paid_date", Date, nullable=True),
    Column("total_price", MoneyType, nullable=True),
    Column("special_requests", Text, nullable=True),
    Column("legacy_activity_name", String, nullable=True),
)

special_request_table = Table(
    "special_request",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("legacy_id", String, nullable=True, index=True),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("request_date", Date, nullable=True),
    Column("request", Text, nullable=True),
    _status_column("status"),
    Column("notes", Text, nullable=True),
)

romantic_dinner_table = Table(
    "romantic_dinner",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("dinner_date", Date, nullable=True),
    Column("num_guests", Integer, nullable=False, default=2),
    _status_column("status"),
)

other_hotel_booking_table = Table(
    "other_hotel_booking",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("hotel_name", String, nullable=True),
    Column("check_in", Date, nullable=True),
    Column("check_out", Date, nullable=True),
    Column("notes", Text, nullable=True),
)

reservation_table = Table(
    "reservation",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("pms_id", String, nullable=False, unique=True),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("pms_guest_name", String, nullable=True),
    Column("status", String, nullable=True),
    Column("short_status", String, nullable=True),
    Column("room", String, nullable=True),
    Column("arrival", Date, nullable=True),
    Column("departure", Date, nullable=True),
    Column("persons", Integer, nullable=True),
    Column("nights", Integer, nullable=True),
    Column("room_count", Integer, nullable=True),
    Column("room_category", String, nullable=True),
    Column("rate_code", String, nullable=True),
    Column("guarantee_code", String, nullable=True),
    Column("group_name", String, nullable=True),
    Column("travel_agent", String, nullable=True),
    Column("company", String, nullable=True),
    Column("share_amount", MoneyType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
)

conversation_table = Table(
    "conversation",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("subject", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
)

message_table = Table(
    "message",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "conversation_id",
        UUIDColumnType,
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("sender_type", Enum(EntityKind, native_enum=False), nullable=True),
    Column("sender_id", UUIDColumnType, nullable=True),
    Column("body", Text, nullable=False, default=""),
    Column("sent_at", UTCDateTime(), nullable=False, server_default=func.now()),
    Index("ix_message_sender", "sender_type", "sender_id"),
)

order_table = Table(
    "customer_order",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("guest_id", UUIDColumnType, ForeignKey("guest.id"), nullable=True),
    Column("description", String, nullable=True),
    Column("total", MoneyType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
)

vendor_user_table = Table(
    "vendor_user",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("vendor_id", UUIDColumnType, ForeignKey("vendor.id"), nullable=True),
    Column("email", String, nullable=False, unique=True),
)

name_mapping_table = Table(
    "name_mapping",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("kind", Enum(MappingKind, native_enum=False), nullable=False),
    Column("original_name", String, nullable=False),
    Column("product_id", UUIDColumnType, ForeignKey("tour_product.id"), nullable=True),
    Column("vendor_id", UUIDColumnType, ForeignKey("vendor.id"), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, server_default=func.now()),
    UniqueConstraint("kind", "original_name", name="uq_name_mapping_original"),
)

# Audit -----------------------------------------------------------------------

field_change_table = Table(
    "field_change",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", Enum(ImportDomain, native_enum=False), nullable=False),
    Column("entity_id", UUIDColumnType, nullable=False, index=True),
    Column("field_name", String, nullable=False),
    Column("old_value", Text, nullable=True),
    Column("new_value", Text, nullable=True),
    Column("changed_by", String, nullable=True),
    Column("changed_at", UTCDateTime(), nullable=False, server_default=func.now()),
)

entity_merge_table = Table(
    "entity_merge",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_kind", Enum(EntityKind, native_enum=False), nullable=False),
    Column("source_id", UUIDColumnType, nullable=False),
    Column("target_id", UUIDColumnType, nullable=False, index=True),
    Column("reason", Enum(MergeReason, native_enum=False), nullable=False),
    Column("relinked", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.now()),
    Column("created_by", String, nullable=True),
)

TABLE_BY_KIND: Final[dict[EntityKind, Table]] = {
    EntityKind.GUEST: guest_table,
    EntityKind.VENDOR: vendor_table,
}


def _legacy_ids_relationship(
    entity_table: Table, kind: EntityKind
) -> orm.RelationshipProperty[LegacyIdentifier]:
    return relationship(
        LegacyIdentifier,
        cascade="all, delete-orphan",
        primaryjoin=and_(
            legacy_identifier_table.c.owner_id == entity_table.c.id,
            legacy_identifier_table.c.owner_type == kind,
        ),
        foreign_keys=[legacy_identifier_table.c.owner_id],
        order_by=legacy_identifier_table.c.created_at,
        overlaps="_legacy_ids",
    )


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Guest,
        guest_table,
        properties={"_legacy_ids": _legacy_ids_relationship(guest_table, EntityKind.GUEST)},
    )
    mapper_registry.map_imperatively(
        Vendor,
        vendor_table,
        properties={"_legacy_ids": _legacy_ids_relationship(vendor_table, EntityKind.VENDOR)},
    )
    mapper_registry.map_imperatively(LegacyIdentifier, legacy_identifier_table)

    for domain_class, table in (
        (TourProduct, tour_product_table),
        (Transfer, transfer_table),
        (TourBooking, tour_booking_table),
        (SpecialRequest, special_request_table),
        (RomanticDinner, romantic_dinner_table),
        (OtherHotelBooking, other_hotel_booking_table),
        (Reservation, reservation_table),
        (Conversation, conversation_table),
        (Message, message_table),
        (Order, order_table),
        (VendorUser, vendor_user_table),
        (NameMapping, name_mapping_table),
        (FieldChange, field_change_table),
        (EntityMerge, entity_merge_table),
    ):
        mapper_registry.map_imperatively(domain_class, table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)

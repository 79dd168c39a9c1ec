"""Every column that points at a guest or a vendor.

The merge executor relinks exactly these columns, and the duplicate finder
weighs profiles by counting rows through them. A test keeps the list in step
with the foreign keys declared in the mapped metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from guestrecon.adapters.sqlalchemy.mappings import (
    conversation_table,
    name_mapping_table,
    order_table,
    other_hotel_booking_table,
    reservation_table,
    romantic_dinner_table,
    special_request_table,
    tour_booking_table,
    tour_product_table,
    transfer_table,
    vendor_user_table,
)
from guestrecon.domain.model import EntityKind

if TYPE_CHECKING:
    from sqlalchemy import Column, Table


@dataclass(frozen=True, slots=True)
class DependentReference:
    table: Table
    column_name: str

    @property
    def name(self) -> str:
        return self.table.name

    @property
    def column(self) -> Column[object]:
        return self.table.c[self.column_name]


DEPENDENT_REFERENCES: Final[dict[EntityKind, tuple[DependentReference, ...]]] = {
    EntityKind.GUEST: (
        DependentReference(transfer_table, "guest_id"),
        DependentReference(tour_booking_table, "guest_id"),
        DependentReference(special_request_table, "guest_id"),
        DependentReference(romantic_dinner_table, "guest_id"),
        DependentReference(other_hotel_booking_table, "guest_id"),
        DependentReference(reservation_table, "guest_id"),
        DependentReference(conversation_table, "guest_id"),
        DependentReference(order_table, "guest_id"),
    ),
    EntityKind.VENDOR: (
        DependentReference(transfer_table, "vendor_id"),
        DependentReference(tour_product_table, "vendor_id"),
        DependentReference(vendor_user_table, "vendor_id"),
        DependentReference(name_mapping_table, "vendor_id"),
    ),
}


def reference_for(kind: EntityKind, name: str) -> DependentReference:
    """Look up one reference of ``kind`` by its table name."""

    for reference in DEPENDENT_REFERENCES[kind]:
        if reference.name == name:
            return reference
    raise KeyError(f"{name!r} does not reference a {kind}")

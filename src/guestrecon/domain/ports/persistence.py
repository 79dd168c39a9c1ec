"""Ports for reading and persisting reconciliation data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from guestrecon.domain.model import (
    Guest,
    IdentityEntity,
    Reservation,
    SpecialRequest,
    TourBooking,
    Transfer,
    Vendor,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from uuid import UUID

    from guestrecon.domain.duplicates import IdentitySummary, ReservationLink
    from guestrecon.domain.model import (
        EntityKind,
        EntityMerge,
        FieldChange,
        ImportDomain,
        MappingKind,
        NameMapping,
        TourProduct,
    )
    from guestrecon.domain.reconciliation import CandidatePool, LookupKeys, VendorUsage


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent record store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class IdentityRepository[TIdentity: IdentityEntity](Repository[TIdentity], Protocol):
    """Guests and vendors: looked up by legacy id, then by name."""

    def get_by_legacy_id(self, value: str) -> TIdentity | None: ...

    def find_by_name(self, name: str) -> list[TIdentity]: ...


@runtime_checkable
class GuestRepository(IdentityRepository[Guest], Protocol):
    def get_by_full_name(self, full_name: str) -> Guest | None: ...


@runtime_checkable
class VendorRepository(IdentityRepository[Vendor], Protocol):
    """Repository contract for vendors."""


@runtime_checkable
class LegacyRecordRepository[TRecord](Repository[TRecord], Protocol):
    """Dependent records carrying the legacy id of the row they came from."""

    def get_by_legacy_id(self, value: str) -> TRecord | None: ...


@runtime_checkable
class TransferRepository(LegacyRecordRepository[Transfer], Protocol):
    """Repository contract for transfers."""


@runtime_checkable
class TourBookingRepository(LegacyRecordRepository[TourBooking], Protocol):
    """Repository contract for tour bookings."""


@runtime_checkable
class SpecialRequestRepository(LegacyRecordRepository[SpecialRequest], Protocol):
    """Repository contract for special requests."""


@runtime_checkable
class ReservationRepository(Repository[Reservation], Protocol):
    def get_by_pms_id(self, pms_id: str) -> Reservation | None: ...


@runtime_checkable
class CatalogRepository(Protocol):
    """Tour products and confirmed raw-name mappings."""

    def add_product(self, product: TourProduct) -> None: ...

    def get_product(self, product_id: UUID) -> TourProduct | None: ...

    def list_products(self, *, active_only: bool = True) -> list[TourProduct]: ...

    def get_mapping(self, kind: MappingKind, original_name: str) -> NameMapping | None: ...

    def add_mapping(self, mapping: NameMapping) -> None: ...


@runtime_checkable
class HistoryRepository(Protocol):
    def record_change(self, change: FieldChange) -> None: ...

    def record_merge(self, merge: EntityMerge) -> None: ...

    def changes_for(self, entity_id: UUID) -> list[FieldChange]: ...


@runtime_checkable
class CandidateLookup(Protocol):
    """Bulk reads backing one batch's analysis."""

    def find_candidates(self, domain: ImportDomain, keys: LookupKeys) -> CandidatePool: ...

    def imported_legacy_ids(self, domain: ImportDomain, values: Iterable[str]) -> set[str]: ...


@runtime_checkable
class DuplicateSource(Protocol):
    """Read side of duplicate and orphan discovery."""

    def identity_summaries(self, kind: EntityKind) -> list[IdentitySummary]: ...

    def dependent_counts(
        self, kind: EntityKind, ids: Iterable[UUID]
    ) -> dict[UUID, dict[str, int]]: ...

    def reservation_links(self) -> Iterator[ReservationLink]: ...

    def suggest_guests(
        self, last_name: str, pms_guest_name: str, *, limit: int
    ) -> list[IdentitySummary]: ...

    def vendor_usage(self) -> list[VendorUsage]: ...


@runtime_checkable
class MergeExecutor(Protocol):
    """Write side of duplicate resolution; runs inside the caller's transaction."""

    def merge(
        self,
        kind: EntityKind,
        primary_id: UUID,
        secondary_id: UUID,
        *,
        actor: str | None = None,
    ) -> EntityMerge: ...

    def delete(self, kind: EntityKind, entity_id: UUID) -> None: ...

    def link(
        self, kind: EntityKind, reference: str, record_id: UUID, target_id: UUID
    ) -> None: ...

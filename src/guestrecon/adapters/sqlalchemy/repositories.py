"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import TYPE_CHECKING, cast

from sqlalchemy import String, and_, func, literal, null, or_, select

from guestrecon.adapters.sqlalchemy.mappings import (
    TABLE_BY_KIND,
    field_change_table,
    guest_table,
    legacy_identifier_table,
    name_mapping_table,
    reservation_table,
    special_request_table,
    tour_booking_table,
    tour_product_table,
    transfer_table,
    vendor_table,
)
from guestrecon.adapters.sqlalchemy.references import DEPENDENT_REFERENCES
from guestrecon.domain.duplicates import IdentitySummary, ReservationLink
from guestrecon.domain.model import (
    EntityKind,
    FieldChange,
    Guest,
    IdentityEntity,
    ImportDomain,
    MappingKind,
    NameMapping,
    Reservation,
    SpecialRequest,
    TourBooking,
    TourProduct,
    Transfer,
    Vendor,
    VendorType,
)
from guestrecon.domain.reconciliation import (
    CandidatePool,
    MatchCandidate,
    VendorUsage,
    name_key,
    trimmed,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from sqlalchemy import ColumnElement, Subquery, Table
    from sqlalchemy.orm import Session

    from guestrecon.domain.model import Entity, EntityMerge
    from guestrecon.domain.reconciliation import LookupKeys


def _lower_trim(column: ColumnElement[str | None]) -> ColumnElement[str | None]:
    return func.lower(func.trim(column))


# each pass halves a run of spaces; five passes fold runs of up to 32
_SPACE_FOLD_PASSES = 5


def _name_key_expr(column: ColumnElement[str | None]) -> ColumnElement[str | None]:
    """SQL side of ``name_key``: whitespace runs become one space, then lower and trim."""

    folded: ColumnElement[str | None] = column
    for control in ("\t", "\n", "\r"):
        folded = func.replace(folded, control, " ")
    for _ in range(_SPACE_FOLD_PASSES):
        folded = func.replace(folded, "  ", " ")
    return _lower_trim(folded)


def _count_by(column: ColumnElement[uuid.UUID | None]) -> Subquery:
    return (
        select(column.label("owner_id"), func.count().label("total"))
        .where(column.is_not(None))
        .group_by(column)
        .subquery()
    )


class SqlAlchemyIdentityRepository[TIdentity: IdentityEntity]:
    """Shared lookups for guests and vendors."""

    def __init__(self, session: Session, entity_cls: type[TIdentity], name_column: str) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._kind = entity_cls.ENTITY_KIND
        self._table = TABLE_BY_KIND[self._kind]
        self._name_column = self._table.c[name_column]

    def add(self, entity: TIdentity) -> None:
        self.session.add(entity)
        # dependents refer to the new id without an ORM relationship
        self.session.flush()

    def get(self, entity_id: uuid.UUID) -> TIdentity | None:
        return self.session.get(self._entity_cls, entity_id)

    def get_by_legacy_id(self, value: str) -> TIdentity | None:
        key = trimmed(value)
        if key is None:
            return None
        stmt = (
            select(legacy_identifier_table.c.owner_id)
            .where(legacy_identifier_table.c.owner_type == self._kind)
            .where(func.trim(legacy_identifier_table.c.value) == key)
            .limit(1)
        )
        entity_id = self.session.execute(stmt).scalar_one_or_none()
        if not isinstance(entity_id, uuid.UUID):
            return None
        return self.get(entity_id)

    def find_by_name(self, name: str) -> list[TIdentity]:
        key = name_key(name)
        if key is None:
            return []
        stmt = (
            select(self._entity_cls)
            .where(_name_key_expr(self._name_column) == key)
            .order_by(self._table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyGuestRepository(SqlAlchemyIdentityRepository[Guest]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Guest, "full_name")

    def get_by_full_name(self, full_name: str) -> Guest | None:
        stmt = (
            select(Guest)
            .where(guest_table.c.full_name == full_name)
            .order_by(guest_table.c.created_at)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyVendorRepository(SqlAlchemyIdentityRepository[Vendor]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Vendor, "name")


class SqlAlchemyLegacyRecordRepository[TRecord: Entity]:
    """Dependent records looked up by the legacy id of their source row."""

    def __init__(self, session: Session, entity_cls: type[TRecord], table: Table) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table = table

    def add(self, entity: TRecord) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> TRecord | None:
        return self.session.get(self._entity_cls, entity_id)

    def get_by_legacy_id(self, value: str) -> TRecord | None:
        key = trimmed(value)
        if key is None:
            return None
        stmt = (
            select(self._entity_cls)
            .where(func.trim(self._table.c.legacy_id) == key)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyTransferRepository(SqlAlchemyLegacyRecordRepository[Transfer]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Transfer, transfer_table)


class SqlAlchemyTourBookingRepository(SqlAlchemyLegacyRecordRepository[TourBooking]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, TourBooking, tour_booking_table)


class SqlAlchemySpecialRequestRepository(SqlAlchemyLegacyRecordRepository[SpecialRequest]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, SpecialRequest, special_request_table)


class SqlAlchemyReservationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Reservation) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> Reservation | None:
        return self.session.get(Reservation, entity_id)

    def get_by_pms_id(self, pms_id: str) -> Reservation | None:
        stmt = select(Reservation).where(reservation_table.c.pms_id == pms_id)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyCatalogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_product(self, product: TourProduct) -> None:
        self.session.add(product)
        self.session.flush()

    def get_product(self, product_id: uuid.UUID) -> TourProduct | None:
        return self.session.get(TourProduct, product_id)

    def list_products(self, *, active_only: bool = True) -> list[TourProduct]:
        stmt = select(TourProduct).order_by(tour_product_table.c.name_en)
        if active_only:
            stmt = stmt.where(tour_product_table.c.is_active.is_(True))
        return list(self.session.execute(stmt).scalars())

    def get_mapping(self, kind: MappingKind, original_name: str) -> NameMapping | None:
        key = name_key(original_name)
        if key is None:
            return None
        stmt = (
            select(NameMapping)
            .where(name_mapping_table.c.kind == kind)
            .where(_name_key_expr(name_mapping_table.c.original_name) == key)
            .order_by(name_mapping_table.c.updated_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def add_mapping(self, mapping: NameMapping) -> None:
        self.session.add(mapping)
        self.session.flush()


class SqlAlchemyHistoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record_change(self, change: FieldChange) -> None:
        self.session.add(change)

    def record_merge(self, merge: EntityMerge) -> None:
        self.session.add(merge)

    def changes_for(self, entity_id: uuid.UUID) -> list[FieldChange]:
        stmt = (
            select(FieldChange)
            .where(field_change_table.c.entity_id == entity_id)
            .order_by(field_change_table.c.changed_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyCandidateLookup:
    """Bulk reads for one batch: a fixed number of queries regardless of size."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_candidates(self, domain: ImportDomain, keys: LookupKeys) -> CandidatePool:
        if keys.is_empty():
            return CandidatePool()
        match domain:
            case ImportDomain.GUEST:
                return self._identity_pool(EntityKind.GUEST, keys)
            case ImportDomain.VENDOR:
                pool = self._identity_pool(EntityKind.VENDOR, keys)
                pool.vendor_mappings = self._mapping_targets(MappingKind.VENDOR, keys.names)
                return pool
            case ImportDomain.TRANSFER:
                return CandidatePool(
                    candidates=self._record_candidates(transfer_table, "transfer_date", keys)
                )
            case ImportDomain.TOUR_BOOKING:
                return CandidatePool(
                    candidates=self._record_candidates(tour_booking_table, "activity_date", keys),
                    product_names=self._product_names(keys.activity_names),
                )
            case ImportDomain.SPECIAL_REQUEST:
                return CandidatePool(
                    candidates=self._record_candidates(special_request_table, None, keys)
                )
            case ImportDomain.RESERVATION:
                return CandidatePool(candidates=self._reservation_candidates(keys))

    def imported_legacy_ids(self, domain: ImportDomain, values: Iterable[str]) -> set[str]:
        wanted = {key for value in values if (key := trimmed(value)) is not None}
        if not wanted:
            return set()
        match domain:
            case ImportDomain.GUEST | ImportDomain.VENDOR:
                column = legacy_identifier_table.c.value
                stmt = (
                    select(column)
                    .where(legacy_identifier_table.c.owner_type == EntityKind(domain.value))
                    .where(func.trim(column).in_(wanted))
                )
            case ImportDomain.RESERVATION:
                column = reservation_table.c.pms_id
                stmt = select(column).where(column.in_(wanted))
            case _:
                column = _RECORD_TABLES[domain].c.legacy_id
                stmt = select(column).where(func.trim(column).in_(wanted))
        return {
            key for value in self.session.execute(stmt).scalars() if (key := trimmed(value))
        }

    def _identity_pool(self, kind: EntityKind, keys: LookupKeys) -> CandidatePool:
        table = TABLE_BY_KIND[kind]
        name_column = table.c.full_name if kind is EntityKind.GUEST else table.c.name
        conditions: list[ColumnElement[bool]] = []
        if keys.legacy_ids:
            conditions.append(
                table.c.id.in_(
                    select(legacy_identifier_table.c.owner_id)
                    .where(legacy_identifier_table.c.owner_type == kind)
                    .where(func.trim(legacy_identifier_table.c.value).in_(keys.legacy_ids))
                )
            )
        if keys.names:
            conditions.append(_name_key_expr(name_column).in_(keys.names))
            if kind is EntityKind.VENDOR:
                conditions.append(
                    table.c.id.in_(
                        select(name_mapping_table.c.vendor_id)
                        .where(name_mapping_table.c.kind == MappingKind.VENDOR)
                        .where(_name_key_expr(name_mapping_table.c.original_name).in_(keys.names))
                    )
                )
        if keys.emails:
            conditions.append(_lower_trim(table.c.email).in_(keys.emails))
        if keys.phones:
            conditions.append(func.trim(table.c.phone).in_(keys.phones))
        if not conditions:
            return CandidatePool()

        stmt = select(
            table.c.id, name_column.label("name"), table.c.email, table.c.phone
        ).where(or_(*conditions))
        rows = self.session.execute(stmt).all()
        legacy = self._legacy_ids(kind, [row.id for row in rows])
        return CandidatePool(
            candidates=[
                MatchCandidate(
                    id=row.id,
                    name=row.name,
                    legacy_ids=tuple(legacy.get(row.id, ())),
                    email=row.email,
                    phone=row.phone,
                )
                for row in rows
            ]
        )

    def _legacy_ids(self, kind: EntityKind, ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        found: dict[uuid.UUID, list[str]] = defaultdict(list)
        if not ids:
            return found
        stmt = (
            select(legacy_identifier_table.c.owner_id, legacy_identifier_table.c.value)
            .where(legacy_identifier_table.c.owner_type == kind)
            .where(legacy_identifier_table.c.owner_id.in_(ids))
        )
        for owner_id, value in self.session.execute(stmt):
            found[owner_id].append(value)
        return found

    def _record_candidates(
        self, table: Table, date_column: str | None, keys: LookupKeys
    ) -> list[MatchCandidate]:
        conditions: list[ColumnElement[bool]] = []
        if keys.legacy_ids:
            conditions.append(func.trim(table.c.legacy_id).in_(keys.legacy_ids))
        if date_column is not None and keys.composites:
            dates = {composite[0] for composite in keys.composites}
            vendors = {composite[1] for composite in keys.composites}
            # superset here; the exact pair is checked below
            conditions.append(
                table.c[date_column].in_(dates)
                & func.trim(table.c.legacy_vendor_id).in_(vendors)
            )
        if not conditions:
            return []

        candidates: list[MatchCandidate] = []
        for row in self.session.execute(select(table).where(or_(*conditions))).mappings():
            legacy_id = trimmed(row["legacy_id"])
            composite = None
            if date_column is not None:
                vendor = trimmed(row["legacy_vendor_id"])
                if row[date_column] is not None and vendor is not None:
                    composite = (row[date_column], vendor)
            if (legacy_id is None or legacy_id not in keys.legacy_ids) and (
                composite not in keys.composites
            ):
                continue
            candidates.append(
                MatchCandidate(
                    id=row["id"],
                    legacy_ids=(legacy_id,) if legacy_id else (),
                    composite=composite,
                )
            )
        return candidates

    def _reservation_candidates(self, keys: LookupKeys) -> list[MatchCandidate]:
        if not keys.legacy_ids:
            return []
        stmt = select(
            reservation_table.c.id, reservation_table.c.pms_id, reservation_table.c.pms_guest_name
        ).where(reservation_table.c.pms_id.in_(keys.legacy_ids))
        return [
            MatchCandidate(id=row.id, name=row.pms_guest_name, legacy_ids=(row.pms_id,))
            for row in self.session.execute(stmt)
        ]

    def _mapping_targets(self, kind: MappingKind, names: set[str]) -> dict[str, uuid.UUID]:
        if not names:
            return {}
        target = (
            name_mapping_table.c.vendor_id
            if kind is MappingKind.VENDOR
            else name_mapping_table.c.product_id
        )
        stmt = (
            select(name_mapping_table.c.original_name, target)
            .where(name_mapping_table.c.kind == kind)
            .where(_name_key_expr(name_mapping_table.c.original_name).in_(names))
            .where(target.is_not(None))
        )
        return {
            key: target_id
            for original_name, target_id in self.session.execute(stmt)
            if (key := name_key(original_name)) is not None
        }

    def _product_names(self, names: set[str]) -> dict[str, uuid.UUID]:
        if not names:
            return {}
        found: dict[str, uuid.UUID] = {}
        stmt = (
            select(
                tour_product_table.c.id,
                tour_product_table.c.name_en,
                tour_product_table.c.name_es,
            )
            .where(tour_product_table.c.is_active.is_(True))
            .where(
                or_(
                    _name_key_expr(tour_product_table.c.name_en).in_(names),
                    _name_key_expr(tour_product_table.c.name_es).in_(names),
                )
            )
        )
        for product_id, name_en, name_es in self.session.execute(stmt):
            for name in (name_en, name_es):
                if (key := name_key(name)) in names:
                    found.setdefault(cast(str, key), product_id)
        # a confirmed mapping beats a coincidental product name
        found.update(self._mapping_targets(MappingKind.TOUR, names))
        return found


_RECORD_TABLES: dict[ImportDomain, Table] = {
    ImportDomain.TRANSFER: transfer_table,
    ImportDomain.TOUR_BOOKING: tour_booking_table,
    ImportDomain.SPECIAL_REQUEST: special_request_table,
}


class SqlAlchemyDuplicateSource:
    def __init__(self, session: Session) -> None:
        self.session = session

    def identity_summaries(self, kind: EntityKind) -> list[IdentitySummary]:
        if kind is EntityKind.GUEST:
            stmt = select(
                guest_table.c.id,
                guest_table.c.full_name,
                guest_table.c.email,
                guest_table.c.last_name,
                guest_table.c.created_at,
            ).order_by(guest_table.c.created_at)
        else:
            stmt = select(
                vendor_table.c.id,
                vendor_table.c.name,
                vendor_table.c.email,
                null().label("last_name"),
                vendor_table.c.created_at,
            ).order_by(vendor_table.c.created_at)
        return [
            IdentitySummary(
                id=entity_id, name=name, email=email, last_name=last_name, created_at=created_at
            )
            for entity_id, name, email, last_name, created_at in self.session.execute(stmt)
        ]

    def dependent_counts(
        self, kind: EntityKind, ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, dict[str, int]]:
        wanted = list(ids)
        counts: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
        if not wanted:
            return counts
        for reference in DEPENDENT_REFERENCES[kind]:
            column = reference.column
            stmt = (
                select(column, func.count())
                .where(column.in_(wanted))
                .group_by(column)
            )
            for owner_id, count in self.session.execute(stmt):
                counts[owner_id][reference.name] = count
        return counts

    def reservation_links(self) -> Iterator[ReservationLink]:
        stmt = (
            select(
                reservation_table.c.id,
                reservation_table.c.pms_id,
                reservation_table.c.pms_guest_name,
                reservation_table.c.room,
                reservation_table.c.arrival,
                reservation_table.c.guest_id,
                guest_table.c.full_name,
                guest_table.c.last_name,
            )
            .select_from(
                reservation_table.outerjoin(
                    guest_table, reservation_table.c.guest_id == guest_table.c.id
                )
            )
            .order_by(reservation_table.c.arrival.desc(), reservation_table.c.pms_id)
        )
        for row in self.session.execute(stmt):
            yield ReservationLink(
                reservation_id=row.id,
                pms_id=row.pms_id,
                pms_guest_name=row.pms_guest_name,
                room=row.room,
                arrival=row.arrival,
                guest_id=row.guest_id,
                linked_full_name=row.full_name,
                linked_last_name=row.last_name,
            )

    def suggest_guests(
        self, last_name: str, pms_guest_name: str, *, limit: int
    ) -> list[IdentitySummary]:
        """Guests whose name overlaps the PMS surname, newest first."""

        key = name_key(last_name)
        pms_key = name_key(pms_guest_name)
        if key is None or pms_key is None or limit <= 0:
            return []
        stored_last = _name_key_expr(guest_table.c.last_name)
        stmt = (
            select(
                guest_table.c.id,
                guest_table.c.full_name,
                guest_table.c.email,
                guest_table.c.last_name,
                guest_table.c.created_at,
            )
            .where(
                or_(
                    _name_key_expr(guest_table.c.full_name).contains(key, autoescape=True),
                    stored_last == key,
                    and_(
                        func.length(stored_last) > 0,
                        literal(pms_key, String).contains(stored_last),
                    ),
                )
            )
            .order_by(guest_table.c.created_at.desc())
            .limit(limit)
        )
        return [
            IdentitySummary(
                id=entity_id, name=name, email=email, last_name=last, created_at=created_at
            )
            for entity_id, name, email, last, created_at in self.session.execute(stmt)
        ]

    def vendor_usage(self) -> list[VendorUsage]:
        """Every vendor with its transfer and tour-product counts, by name."""

        transfers = _count_by(transfer_table.c.vendor_id)
        products = _count_by(tour_product_table.c.vendor_id)
        stmt = (
            select(
                vendor_table.c.id,
                vendor_table.c.name,
                vendor_table.c.type,
                vendor_table.c.is_active,
                func.coalesce(transfers.c.total, 0),
                func.coalesce(products.c.total, 0),
            )
            .select_from(vendor_table)
            .outerjoin(transfers, transfers.c.owner_id == vendor_table.c.id)
            .outerjoin(products, products.c.owner_id == vendor_table.c.id)
            .order_by(vendor_table.c.name, vendor_table.c.created_at)
        )
        return [
            VendorUsage(
                id=vendor_id,
                name=name,
                type=VendorType(vendor_type),
                is_active=bool(is_active),
                transfer_count=transfer_count,
                tour_product_count=product_count,
            )
            for (
                vendor_id,
                name,
                vendor_type,
                is_active,
                transfer_count,
                product_count,
            ) in self.session.execute(stmt)
        ]


if TYPE_CHECKING:
    from guestrecon.domain.ports import (
        CandidateLookup,
        CatalogRepository,
        DuplicateSource,
        GuestRepository,
        HistoryRepository,
        ReservationRepository,
        TransferRepository,
        VendorRepository,
    )

    _session_stub = cast("Session", object())
    _guest_repo: GuestRepository = SqlAlchemyGuestRepository(_session_stub)
    _vendor_repo: VendorRepository = SqlAlchemyVendorRepository(_session_stub)
    _transfer_repo: TransferRepository = SqlAlchemyTransferRepository(_session_stub)
    _reservation_repo: ReservationRepository = SqlAlchemyReservationRepository(_session_stub)
    _catalog_repo: CatalogRepository = SqlAlchemyCatalogRepository(_session_stub)
    _history_repo: HistoryRepository = SqlAlchemyHistoryRepository(_session_stub)
    _lookup: CandidateLookup = SqlAlchemyCandidateLookup(_session_stub)
    _duplicates: DuplicateSource = SqlAlchemyDuplicateSource(_session_stub)

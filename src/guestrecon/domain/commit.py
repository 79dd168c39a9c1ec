"""Commit reviewed import rows, one transaction per row.

A failing row is reported in ``CommitResult.errors`` and never rolls back rows
committed before it. Rows run strictly in order so a guest created for row N
is visible to row N + 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, cast

from guestrecon.domain.canonicalization import (
    GuestRow,
    SpecialRequestRow,
    TourBookingRow,
    TransferRow,
    VendorRow,
    split_full_name,
)
from guestrecon.domain.errors import EntityNotFoundError, PermissionDeniedError
from guestrecon.domain.history import apply_values, record_change
from guestrecon.domain.model import (
    EntityKind,
    Guest,
    ImportDomain,
    MappingKind,
    NameMapping,
    SpecialRequest,
    TourBooking,
    TourProduct,
    Transfer,
    Vendor,
    utcnow,
)
from guestrecon.domain.permissions import (
    Permission,
    authorize,
    may_create,
    update_fields,
)
from guestrecon.domain.reconciliation import (
    GroupAction,
    ImportAction,
    analyze_rows,
)
from guestrecon.domain.reconciliation.match import name_key, trimmed

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from guestrecon.domain.canonicalization import CanonicalRowT, LinkedRow
    from guestrecon.domain.model import Entity
    from guestrecon.domain.permissions import Actor
    from guestrecon.domain.ports import ReconciliationRepositories, UnitOfWorkFactory
    from guestrecon.domain.reconciliation import (
        GroupDecision,
        ImportAnalysis,
        ImportRow,
        VendorMergeGroup,
    )

log = logging.getLogger(__name__)


class RowOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class CommitPolicy:
    create_missing_guests: bool = True


@dataclass(slots=True, kw_only=True)
class CommitResult:
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def count(self, outcome: RowOutcome) -> None:
        match outcome:
            case RowOutcome.CREATED:
                self.created += 1
            case RowOutcome.UPDATED:
                self.updated += 1
            case RowOutcome.UNCHANGED:
                self.unchanged += 1


@dataclass(slots=True)
class _RowContext:
    repositories: ReconciliationRepositories
    actor: Actor
    policy: CommitPolicy
    domain: ImportDomain

    def apply(self, entity: Entity, values: dict[str, object]) -> int:
        return apply_values(
            entity,
            values,
            allowed=update_fields(self.actor, self.domain),
            entity_type=self.domain,
            changed_by=self.actor.name,
            history=self.repositories.history,
        )

    def note(self, entity: Entity, field_name: str, old: object, new: object) -> None:
        record_change(
            entity,
            field_name,
            old,
            new,
            entity_type=self.domain,
            changed_by=self.actor.name,
            history=self.repositories.history,
        )


def _inserts(item: ImportRow) -> bool:
    if item.action is ImportAction.CREATE:
        return True
    return item.action is ImportAction.INVALID_DATE and item.match is None


def check_commit_rights(rows: Sequence[ImportRow], actor: Actor) -> None:
    """Reject the whole batch up front when any eligible row is out of reach."""

    authorize(actor, Permission.IMPORT_COMMIT)
    for item in rows:
        if not item.committable:
            continue
        if _inserts(item) and not may_create(actor, item.domain):
            raise PermissionDeniedError(
                f"Role {actor.role.value!r} may not create {item.domain.value} records"
            )
        if not _inserts(item) and not update_fields(actor, item.domain):
            raise PermissionDeniedError(
                f"Role {actor.role.value!r} may not update {item.domain.value} records"
            )


def commit_rows(
    rows: Sequence[ImportRow],
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory,
    policy: CommitPolicy | None = None,
) -> CommitResult:
    check_commit_rights(rows, actor)
    policy = policy or CommitPolicy()
    result = CommitResult()

    for item in rows:
        if not item.committable:
            result.skipped += 1
            continue
        try:
            with unit_of_work_factory() as uow:
                context = _RowContext(uow.repositories, actor, policy, item.domain)
                outcome = _commit_row(item, context)
                uow.commit()
        except Exception as exc:  # noqa: BLE001
            message = f"{item.row.row_key}: {exc}"
            log.warning("Import row failed: %s", message)
            result.errors.append(message)
            continue
        result.count(outcome)

    log.info(
        "Committed %s rows: created=%s updated=%s unchanged=%s skipped=%s errors=%s",
        len(rows),
        result.created,
        result.updated,
        result.unchanged,
        result.skipped,
        len(result.errors),
    )
    return result


def _commit_row(item: ImportRow, context: _RowContext) -> RowOutcome:
    row: CanonicalRowT = item.row
    if item.action is ImportAction.INVALID_DATE:
        if item.user_date is None:
            raise ValueError("INVALID_DATE row needs a corrected date")
        row = cast("CanonicalRowT", row.with_user_date(item.user_date))

    match row:
        case GuestRow():
            return _commit_guest(item, row, context)
        case VendorRow():
            return _commit_vendor(item, row, context)
        case TransferRow():
            return _commit_transfer(item, row, context)
        case TourBookingRow():
            return _commit_tour_booking(item, row, context)
        case SpecialRequestRow():
            return _commit_special_request(item, row, context)
    raise ValueError(f"Unsupported import domain {row.domain!r}")


def _matched[T](item: ImportRow, getter: Callable[[UUID], T | None]) -> T | None:
    if _inserts(item):
        return None
    if item.match is None:
        raise EntityNotFoundError("Row has no matched record to update")
    found = getter(item.match.id)
    if found is None:
        raise EntityNotFoundError(f"Matched record {item.match.id} no longer exists")
    return found


# identities ------------------------------------------------------------------


def _crm_metadata(row: GuestRow) -> dict[str, object] | None:
    if not row.vip and not (row.arrivals or row.nights or row.revenue):
        return None
    return {
        "vip": row.vip,
        "arrivals": str(row.arrivals),
        "nights": str(row.nights),
        "revenue": str(row.revenue),
    }


def _commit_guest(item: ImportRow, row: GuestRow, context: _RowContext) -> RowOutcome:
    guests = context.repositories.guests
    values: dict[str, object] = {
        "full_name": row.full_name,
        "first_name": row.first_name,
        "last_name": row.last_name,
        "email": row.email,
        "phone": row.phone,
        "nationality": row.nationality,
        "notes": row.notes,
        "companion_name": row.companion_name,
        "profile_type": row.profile_type,
        "crm_metadata": _crm_metadata(row),
    }
    guest = _matched(item, guests.get)
    if guest is None and row.legacy_key is not None:
        guest = guests.get_by_legacy_id(row.legacy_key)
    if guest is None:
        guest = Guest(**{name: value for name, value in values.items() if value is not None})
        guest.add_legacy_id(row.legacy_id)
        guests.add(guest)
        return RowOutcome.CREATED

    changed = context.apply(guest, values)
    if guest.add_legacy_id(row.legacy_id):
        context.note(guest, "legacy_id", None, row.legacy_id)
        changed += 1
    return RowOutcome.UPDATED if changed else RowOutcome.UNCHANGED


def _commit_vendor(item: ImportRow, row: VendorRow, context: _RowContext) -> RowOutcome:
    vendors = context.repositories.vendors
    values: dict[str, object] = {
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "type": row.vendor_type,
        "color_code": row.color_code,
        "is_active": row.is_active,
        "notes": row.notes,
    }
    vendor = _matched(item, vendors.get)
    if vendor is None and row.legacy_key is not None:
        vendor = vendors.get_by_legacy_id(row.legacy_key)
    if vendor is None:
        vendor = Vendor(**{name: value for name, value in values.items() if value is not None})
        vendor.add_legacy_id(row.legacy_id)
        vendors.add(vendor)
        return RowOutcome.CREATED

    changed = context.apply(vendor, values)
    if vendor.add_legacy_id(row.legacy_id):
        context.note(vendor, "legacy_id", None, row.legacy_id)
        changed += 1
    return RowOutcome.UPDATED if changed else RowOutcome.UNCHANGED


# linked identities -----------------------------------------------------------


def resolve_guest(row: LinkedRow, context: _RowContext) -> UUID | None:
    """Legacy id, then name; create a minimal guest when policy allows."""

    guests = context.repositories.guests
    if (legacy := trimmed(row.guest_legacy_id)) is not None:
        found = guests.get_by_legacy_id(legacy)
        if found is not None:
            return found.id
    name = trimmed(row.guest_name)
    if name is None:
        return None
    matches = guests.find_by_name(name)
    if matches:
        return matches[0].id
    if not (context.policy.create_missing_guests and may_create(context.actor, ImportDomain.GUEST)):
        return None

    parts = split_full_name(name)
    guest = Guest(full_name=name, first_name=parts.first_name, last_name=parts.last_name)
    guest.add_legacy_id(row.guest_legacy_id)
    guests.add(guest)
    log.info("Created guest %r for %s", name, row.row_key)
    return guest.id


def resolve_vendor(row: LinkedRow, context: _RowContext) -> UUID | None:
    vendors = context.repositories.vendors
    if (legacy := trimmed(row.vendor_legacy_id)) is not None:
        found = vendors.get_by_legacy_id(legacy)
        if found is not None:
            return found.id
    name = trimmed(row.vendor_name)
    if name is None:
        return None
    matches = vendors.find_by_name(name)
    if matches:
        return matches[0].id
    mapping = context.repositories.catalog.get_mapping(MappingKind.VENDOR, name)
    return mapping.vendor_id if mapping is not None else None


# dependent records -----------------------------------------------------------


def _commit_record[T: Transfer | TourBooking | SpecialRequest](
    item: ImportRow,
    row: CanonicalRowT,
    context: _RowContext,
    *,
    repository_name: str,
    build: Callable[..., T],
    values: dict[str, object],
) -> RowOutcome:
    repository = getattr(context.repositories, repository_name)
    record = _matched(item, repository.get)
    if record is None and row.legacy_key is not None:
        record = repository.get_by_legacy_id(row.legacy_key)
    if record is None:
        record = build(
            legacy_id=row.legacy_id,
            **{name: value for name, value in values.items() if value is not None},
        )
        repository.add(record)
        return RowOutcome.CREATED

    changed = context.apply(record, values)
    if record.legacy_id is None and row.legacy_id:
        context.note(record, "legacy_id", None, row.legacy_id)
        record.legacy_id = row.legacy_id
        changed += 1
    return RowOutcome.UPDATED if changed else RowOutcome.UNCHANGED


def _commit_transfer(item: ImportRow, row: TransferRow, context: _RowContext) -> RowOutcome:
    values: dict[str, object] = {
        "transfer_date": row.transfer_date,
        "transfer_time": row.transfer_time,
        "guest_id": resolve_guest(row, context),
        "vendor_id": resolve_vendor(row, context),
        "legacy_vendor_id": row.vendor_legacy_id,
        "origin": row.origin,
        "destination": row.destination,
        "num_passengers": row.num_passengers,
        "guest_status": row.guest_status,
        "vendor_status": row.vendor_status,
        "billed_date": row.billed_date,
        "paid_date": row.paid_date,
        "price": row.price,
        "notes": row.notes,
    }
    return _commit_record(
        item, row, context, repository_name="transfers", build=Transfer, values=values
    )


def _tour_product(item: ImportRow, row: TourBookingRow, context: _RowContext) -> TourProduct:
    catalog = context.repositories.catalog
    product_id = item.product_id
    if product_id is None and (name := trimmed(row.activity_name)) is not None:
        mapping = catalog.get_mapping(MappingKind.TOUR, name)
        product_id = mapping.product_id if mapping is not None else None
    if product_id is None:
        raise EntityNotFoundError(f'No tour product mapped for "{row.activity_name or ""}"')
    product = catalog.get_product(product_id)
    if product is None:
        raise EntityNotFoundError(f"Tour product {product_id} does not exist")
    return product


def _commit_tour_booking(
    item: ImportRow, row: TourBookingRow, context: _RowContext
) -> RowOutcome:
    product = _tour_product(item, row, context)
    vendor_id = resolve_vendor(row, context)
    if vendor_id is not None and product.vendor_id is None:
        product.vendor_id = vendor_id
        context.note(product, "vendor_id", None, vendor_id)
    values: dict[str, object] = {
        "activity_date": row.activity_date,
        "start_time": row.start_time,
        "guest_id": resolve_guest(row, context),
        "product_id": product.id,
        "legacy_vendor_id": row.vendor_legacy_id,
        "legacy_activity_name": row.activity_name,
        "num_guests": row.num_guests,
        "guest_status": row.guest_status,
        "vendor_status": row.vendor_status,
        "billed_date": row.billed_date,
        "paid_date": row.paid_date,
        "total_price": row.total_price,
        "special_requests": row.notes,
    }
    return _commit_record(
        item, row, context, repository_name="tour_bookings", build=TourBooking, values=values
    )


def _commit_special_request(
    item: ImportRow, row: SpecialRequestRow, context: _RowContext
) -> RowOutcome:
    values: dict[str, object] = {
        "guest_id": resolve_guest(row, context),
        "request_date": row.request_date,
        "request": row.request,
        "status": row.status,
        "notes": row.notes,
    }
    return _commit_record(
        item,
        row,
        context,
        repository_name="special_requests",
        build=SpecialRequest,
        values=values,
    )


# tour-name normalization -----------------------------------------------------


@dataclass(slots=True, kw_only=True)
class TourMaterialization:
    products_created: list[TourProduct] = field(default_factory=list)
    mappings_saved: int = 0


@dataclass(slots=True, kw_only=True)
class TourCommitResult:
    materialization: TourMaterialization
    analysis: ImportAnalysis
    result: CommitResult


def _vendor_for_legacy_id(
    legacy_vendor_id: str | None, repositories: ReconciliationRepositories
) -> UUID | None:
    if legacy_vendor_id is None:
        return None
    vendor = repositories.vendors.get_by_legacy_id(legacy_vendor_id)
    if vendor is None:
        # some sheets typed the vendor name into the id column
        matches = repositories.vendors.find_by_name(legacy_vendor_id)
        vendor = matches[0] if matches else None
    return vendor.id if vendor is not None else None


def _save_mapping(
    kind: MappingKind, name: str, target_id: UUID, repositories: ReconciliationRepositories
) -> bool:
    """Point the raw ``name`` at ``target_id``; False when it already does."""

    catalog = repositories.catalog
    mapping = catalog.get_mapping(kind, name)
    if mapping is None:
        mapping = NameMapping(kind=kind, original_name=name)
        catalog.add_mapping(_retarget(mapping, target_id))
        return True
    if mapping.target_id == target_id:
        return False
    _retarget(mapping, target_id).updated_at = utcnow()
    return True


def _retarget(mapping: NameMapping, target_id: UUID) -> NameMapping:
    if mapping.kind is MappingKind.VENDOR:
        mapping.vendor_id = target_id
    else:
        mapping.product_id = target_id
    return mapping


def materialize_tour_groups(
    decisions: Sequence[GroupDecision], repositories: ReconciliationRepositories
) -> TourMaterialization:
    """Create products for ``create`` groups and map every grouped name.

    Runs inside one transaction: an unknown product id in a ``map`` group
    rejects the whole set of decisions.
    """

    outcome = TourMaterialization()
    catalog = repositories.catalog
    for decision in decisions:
        if decision.action is GroupAction.SKIP or not decision.keys:
            continue
        if decision.action is GroupAction.CREATE:
            if not decision.name_en:
                raise ValueError(f"Group {decision.group_id}: create needs name_en")
            product = TourProduct(
                name_en=decision.name_en,
                name_es=decision.name_es or decision.name_en,
                vendor_id=decision.vendor_id
                or _vendor_for_legacy_id(decision.legacy_vendor_id, repositories),
            )
            catalog.add_product(product)
            outcome.products_created.append(product)
            product_id = product.id
        else:
            if decision.product_id is None or catalog.get_product(decision.product_id) is None:
                raise EntityNotFoundError(
                    f"Group {decision.group_id}: unknown tour product {decision.product_id}"
                )
            product_id = decision.product_id
        for name in dict.fromkeys(decision.names):
            if name and _save_mapping(MappingKind.TOUR, name, product_id, repositories):
                outcome.mappings_saved += 1
    return outcome


def commit_tour_normalization(
    decisions: Sequence[GroupDecision],
    rows: Sequence[TourBookingRow],
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory,
    policy: CommitPolicy | None = None,
) -> TourCommitResult:
    """Materialize the reviewed groups, then classify and commit the bookings."""

    authorize(actor, Permission.TOURS_NORMALIZE)
    authorize(actor, Permission.IMPORT_COMMIT)

    with unit_of_work_factory() as uow:
        materialization = materialize_tour_groups(decisions, uow.repositories)
        uow.commit()
    log.info(
        "Materialized %s tour products and %s name mappings",
        len(materialization.products_created),
        materialization.mappings_saved,
    )

    with unit_of_work_factory() as uow:
        analysis = analyze_rows(
            rows,
            ImportDomain.TOUR_BOOKING,
            find_candidates=uow.repositories.lookup.find_candidates,
        )
    result = commit_rows(
        analysis.rows, actor=actor, unit_of_work_factory=unit_of_work_factory, policy=policy
    )
    return TourCommitResult(materialization=materialization, analysis=analysis, result=result)


# vendor-name normalization ---------------------------------------------------


@dataclass(slots=True, kw_only=True)
class VendorMergeResult:
    groups_processed: int = 0
    groups_skipped: int = 0
    vendors_merged: int = 0
    references_relinked: int = 0
    mappings_saved: int = 0
    errors: list[str] = field(default_factory=list)


def _merge_vendor_group(
    group: VendorMergeGroup, actor: Actor, repositories: ReconciliationRepositories
) -> tuple[int, int, int]:
    vendors = repositories.vendors
    master = vendors.get(group.master_id)
    if master is None:
        raise EntityNotFoundError(f"Vendor {group.master_id} does not exist")
    merged = relinked = saved = 0
    for duplicate_id in dict.fromkeys(group.duplicate_ids):
        duplicate = vendors.get(duplicate_id)
        if duplicate is None:
            raise EntityNotFoundError(f"Vendor {duplicate_id} does not exist")
        raw_name = duplicate.name
        record = repositories.merges.merge(
            EntityKind.VENDOR, master.id, duplicate_id, actor=actor.name
        )
        merged += 1
        relinked += record.relinked
        # later exports may still spell the vendor the duplicate's way
        if name_key(raw_name) != name_key(master.name) and _save_mapping(
            MappingKind.VENDOR, raw_name, master.id, repositories
        ):
            saved += 1
    return merged, relinked, saved


def commit_vendor_merges(
    groups: Sequence[VendorMergeGroup],
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory,
) -> VendorMergeResult:
    """Fold each reviewed group into its master, one transaction per group.

    A failing group is reported in ``errors`` and leaves the groups before it
    committed. Groups without duplicates (a lone invalid record) are skipped.
    """

    authorize(actor, Permission.VENDORS_NORMALIZE)
    result = VendorMergeResult()
    for group in groups:
        if not group.duplicate_ids:
            result.groups_skipped += 1
            continue
        try:
            with unit_of_work_factory() as uow:
                merged, relinked, saved = _merge_vendor_group(group, actor, uow.repositories)
                uow.commit()
        except Exception as exc:  # noqa: BLE001
            message = f"Group master={group.master_id}: {exc}"
            log.warning("Vendor group failed: %s", message)
            result.errors.append(message)
            continue
        result.groups_processed += 1
        result.vendors_merged += merged
        result.references_relinked += relinked
        result.mappings_saved += saved

    log.info(
        "Vendor normalization: groups=%s merged=%s relinked=%s mappings=%s errors=%s",
        result.groups_processed,
        result.vendors_merged,
        result.references_relinked,
        result.mappings_saved,
        len(result.errors),
    )
    return result

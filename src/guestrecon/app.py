"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from guestrecon.adapters.pms import parse_pms_feed
from guestrecon.adapters.review import (
    execution_response,
    execution_rows,
    parse_group_decisions,
    parse_vendor_groups,
)
from guestrecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from guestrecon.config import get_import_config
from guestrecon.domain.canonicalization import TourBookingRow, canonicalize, decode_upload
from guestrecon.domain.commit import (
    CommitPolicy,
    CommitResult,
    TourCommitResult,
    VendorMergeResult,
    commit_rows,
    commit_tour_normalization,
    commit_vendor_merges,
)
from guestrecon.domain.duplicates import find_duplicate_clusters, find_orphans
from guestrecon.domain.model import ImportDomain
from guestrecon.domain.permissions import Permission, authorize
from guestrecon.domain.pms import import_reservations
from guestrecon.domain.reconciliation import (
    analyze_rows,
    build_tour_prompt,
    build_vendor_prompt,
    summarize_tour_names,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from guestrecon.adapters.review import ExecutionRequest, ExecutionResponse
    from guestrecon.config import ImportConfig
    from guestrecon.domain.duplicates import DuplicateCluster, Orphan
    from guestrecon.domain.model import EntityKind, EntityMerge
    from guestrecon.domain.permissions import Actor
    from guestrecon.domain.pms import PmsImportResult
    from guestrecon.domain.ports import UnitOfWorkFactory
    from guestrecon.domain.reconciliation import ImportAnalysis, ImportRow


log = getLogger(__name__)


def _unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyReconciliationUnitOfWork


def _text(content: str | bytes) -> str:
    return decode_upload(content) if isinstance(content, bytes) else content


def _policy(config: ImportConfig | None) -> CommitPolicy:
    effective = config or get_import_config()
    return CommitPolicy(create_missing_guests=effective.create_missing_guests)


def analyze_file(
    content: str | bytes,
    domain: ImportDomain,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportAnalysis:
    """Canonicalize an uploaded export and classify every row. Nothing is written."""

    effective_uow = _unit_of_work(unit_of_work_factory)
    rows = canonicalize(_text(content), domain)
    log.info("Analysing %s %s rows", len(rows), domain.value)
    with effective_uow() as uow:
        return analyze_rows(rows, domain, find_candidates=uow.repositories.lookup.find_candidates)


def execute_rows(
    rows: Sequence[ImportRow],
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ImportConfig | None = None,
) -> CommitResult:
    effective_uow = _unit_of_work(unit_of_work_factory)
    return commit_rows(
        rows, actor=actor, unit_of_work_factory=effective_uow, policy=_policy(config)
    )


def execute_request(
    request: ExecutionRequest,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ImportConfig | None = None,
) -> ExecutionResponse:
    """Commit the rows a reviewer sent back, with their decisions as sent."""

    result = execute_rows(
        execution_rows(request),
        actor=actor,
        unit_of_work_factory=unit_of_work_factory,
        config=config,
    )
    return execution_response(result)


def import_pms_feed(
    content: str | bytes,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PmsImportResult:
    rows = parse_pms_feed(_text(content))
    effective_uow = _unit_of_work(unit_of_work_factory)
    return import_reservations(rows, actor=actor, unit_of_work_factory=effective_uow)


def list_duplicates(
    kind: EntityKind,
    *,
    limit: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[DuplicateCluster]:
    effective_uow = _unit_of_work(unit_of_work_factory)
    effective_limit = limit if limit is not None else get_import_config().duplicate_cluster_limit
    with effective_uow() as uow:
        clusters = find_duplicate_clusters(kind, uow.repositories.duplicates, limit=effective_limit)
    log.info("Found %s duplicate %s clusters", len(clusters), kind)
    return clusters


def list_orphans(
    *,
    limit: int | None = None,
    suggestions: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Orphan]:
    config = get_import_config()
    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        orphans = find_orphans(
            uow.repositories.duplicates,
            limit=limit if limit is not None else config.orphan_limit,
            suggestions=suggestions if suggestions is not None else config.orphan_suggestions,
        )
    log.info("Found %s orphaned reservations", len(orphans))
    return orphans


def merge_entities(
    kind: EntityKind,
    primary_id: UUID,
    secondary_id: UUID,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> EntityMerge:
    """Fold ``secondary_id`` into ``primary_id`` in one transaction."""

    authorize(actor, Permission.GUESTS_MERGE)
    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        record = uow.repositories.merges.merge(kind, primary_id, secondary_id, actor=actor.name)
        uow.commit()
    return record


def delete_entity(
    kind: EntityKind,
    entity_id: UUID,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    authorize(actor, Permission.GUESTS_DELETE)
    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        uow.repositories.merges.delete(kind, entity_id)
        uow.commit()


def link_reference(
    kind: EntityKind,
    reference: str,
    record_id: UUID,
    target_id: UUID,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    authorize(actor, Permission.GUESTS_MERGE)
    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        uow.repositories.merges.link(kind, reference, record_id, target_id)
        uow.commit()


def tour_prompt(
    content: str | bytes,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> str:
    """Prompt text listing existing products and the export's raw activity names."""

    rows = _tour_rows(content)
    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        repositories = uow.repositories
        imported = repositories.lookup.imported_legacy_ids(
            ImportDomain.TOUR_BOOKING,
            [legacy for row in rows if (legacy := row.legacy_key) is not None],
        )
        products = repositories.catalog.list_products()
        vendor_names: dict[UUID, str] = {}
        for product in products:
            if product.vendor_id is None or product.vendor_id in vendor_names:
                continue
            vendor = repositories.vendors.get(product.vendor_id)
            if vendor is not None:
                vendor_names[product.vendor_id] = vendor.name
    stats = summarize_tour_names(rows, imported)
    log.info("Built tour prompt for %s distinct names", len(stats))
    return build_tour_prompt(stats, products, vendor_names)


def normalize_tours(
    content: str | bytes,
    decisions_text: str,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ImportConfig | None = None,
) -> TourCommitResult:
    """Apply reviewed tour groups, then import the bookings against the full map."""

    rows = _tour_rows(content)
    decisions = parse_group_decisions(decisions_text)
    effective_uow = _unit_of_work(unit_of_work_factory)
    return commit_tour_normalization(
        decisions,
        rows,
        actor=actor,
        unit_of_work_factory=effective_uow,
        policy=_policy(config),
    )


def vendor_prompt(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> str:
    """Prompt text listing every vendor with its usage counts."""

    effective_uow = _unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        vendors = uow.repositories.duplicates.vendor_usage()
    log.info("Built vendor prompt for %s vendors", len(vendors))
    return build_vendor_prompt(vendors)


def normalize_vendors(
    decisions_text: str,
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> VendorMergeResult:
    """Merge reviewed vendor groups and remember each duplicate's name."""

    groups = parse_vendor_groups(decisions_text)
    effective_uow = _unit_of_work(unit_of_work_factory)
    return commit_vendor_merges(groups, actor=actor, unit_of_work_factory=effective_uow)


def _tour_rows(content: str | bytes) -> list[TourBookingRow]:
    return [
        row
        for row in canonicalize(_text(content), ImportDomain.TOUR_BOOKING)
        if isinstance(row, TourBookingRow)
    ]

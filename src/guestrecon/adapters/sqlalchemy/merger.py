from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from guestrecon.adapters.sqlalchemy.mappings import message_table
from guestrecon.adapters.sqlalchemy.references import DEPENDENT_REFERENCES, reference_for
from guestrecon.domain.errors import EntityNotFoundError, MergeError
from guestrecon.domain.model import EntityKind, EntityMerge, Guest, MergeReason, Vendor

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.orm import Session

    from guestrecon.domain.model import IdentityRecord
    from guestrecon.domain.ports import HistoryRepository

log = logging.getLogger(__name__)

_CLASS_BY_KIND: dict[EntityKind, type[Guest] | type[Vendor]] = {
    EntityKind.GUEST: Guest,
    EntityKind.VENDOR: Vendor,
}


class EntityMerger:
    """Fold a secondary guest or vendor into its primary inside the caller's transaction.

    Each step runs in a fixed order. Any failure surfaces as ``MergeError``;
    the unit of work that owns the session rolls everything back.
    """

    def __init__(self, session: Session, history: HistoryRepository) -> None:
        self.session = session
        self.history = history

    def merge(
        self,
        kind: EntityKind,
        primary_id: UUID,
        secondary_id: UUID,
        *,
        actor: str | None = None,
    ) -> EntityMerge:
        if primary_id == secondary_id:
            raise MergeError(f"Cannot merge {kind} {primary_id} into itself")
        primary = self._load(kind, primary_id)
        secondary = self._load(kind, secondary_id)

        try:
            snapshot = self._snapshot(secondary)
            self._append_legacy_profile(primary, snapshot)
            self._accumulate_legacy_ids(primary, secondary)
            relinked = self._relink_references(kind, secondary_id, primary_id)
            relinked += self._relink_message_senders(kind, secondary_id, primary_id)
            self._delete_secondary(secondary)
        except MergeError:
            raise
        except Exception as exc:
            message = f"Merging {kind} {secondary_id} into {primary_id} failed: {exc}"
            raise MergeError(message) from exc

        record = EntityMerge(
            entity_kind=kind,
            source_id=secondary_id,
            target_id=primary_id,
            reason=MergeReason.DUPLICATE,
            relinked=relinked,
            created_by=actor,
        )
        self.history.record_merge(record)
        log.info(
            "Merged %s %s into %s (%s references relinked)",
            kind,
            secondary_id,
            primary_id,
            relinked,
        )
        return record

    def delete(self, kind: EntityKind, entity_id: UUID) -> None:
        entity = self._load(kind, entity_id)
        remaining = self._reference_count(kind, entity_id)
        if remaining:
            raise MergeError(
                f"{kind} {entity_id} is still referenced by {remaining} records; merge it instead"
            )
        self.session.delete(entity)
        self.session.flush()
        log.info("Deleted %s %s", kind, entity_id)

    def link(self, kind: EntityKind, reference: str, record_id: UUID, target_id: UUID) -> None:
        try:
            dependent = reference_for(kind, reference)
        except KeyError as exc:
            raise MergeError(str(exc)) from exc
        self._load(kind, target_id)
        stmt = (
            update(dependent.table)
            .where(dependent.table.c.id == record_id)
            .values({dependent.column_name: target_id})
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            raise EntityNotFoundError(f"No {reference} record {record_id}")
        self.session.expire_all()
        log.info("Linked %s %s to %s %s", reference, record_id, kind, target_id)

    # steps ------------------------------------------------------------------

    def _snapshot(self, secondary: IdentityRecord) -> dict[str, object]:
        return secondary.snapshot()

    def _append_legacy_profile(self, primary: IdentityRecord, snapshot: dict[str, object]) -> None:
        primary.fold_legacy_profile(snapshot)

    def _accumulate_legacy_ids(self, primary: IdentityRecord, secondary: IdentityRecord) -> None:
        for value in secondary.legacy_ids:
            primary.add_legacy_id(value)
        self.session.flush()

    def _relink_references(self, kind: EntityKind, secondary_id: UUID, primary_id: UUID) -> int:
        relinked = 0
        for reference in DEPENDENT_REFERENCES[kind]:
            stmt = (
                update(reference.table)
                .where(reference.column == secondary_id)
                .values({reference.column_name: primary_id})
                .execution_options(synchronize_session=False)
            )
            relinked += self.session.execute(stmt).rowcount
        return relinked

    def _relink_message_senders(
        self, kind: EntityKind, secondary_id: UUID, primary_id: UUID
    ) -> int:
        stmt = (
            update(message_table)
            .where(message_table.c.sender_type == kind)
            .where(message_table.c.sender_id == secondary_id)
            .values(sender_id=primary_id)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    def _delete_secondary(self, secondary: IdentityRecord) -> None:
        self.session.delete(secondary)
        self.session.flush()
        # relinked rows loaded earlier in this session still hold the old id
        self.session.expire_all()

    # helpers ----------------------------------------------------------------

    def _load(self, kind: EntityKind, entity_id: UUID) -> IdentityRecord:
        entity = self.session.get(_CLASS_BY_KIND[kind], entity_id)
        if entity is None:
            raise EntityNotFoundError(f"No {kind} with id {entity_id}")
        return entity

    def _reference_count(self, kind: EntityKind, entity_id: UUID) -> int:
        total = 0
        for reference in DEPENDENT_REFERENCES[kind]:
            stmt = (
                select(func.count())
                .select_from(reference.table)
                .where(reference.column == entity_id)
            )
            total += self.session.execute(stmt).scalar_one()
        stmt = (
            select(func.count())
            .select_from(message_table)
            .where(message_table.c.sender_type == kind)
            .where(message_table.c.sender_id == entity_id)
        )
        return total + self.session.execute(stmt).scalar_one()


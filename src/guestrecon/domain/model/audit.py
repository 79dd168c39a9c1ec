"""Audit records for merges and field-level edits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from guestrecon.domain.model.base import Entity, utcnow
from guestrecon.domain.model.enums import MergeReason

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from guestrecon.domain.model.enums import EntityKind, ImportDomain


@dataclass(eq=False, kw_only=True)
class EntityMerge(Entity):
    """Audit record for folding a duplicate into its surviving counterpart."""

    entity_kind: EntityKind
    source_id: UUID
    target_id: UUID
    reason: MergeReason = MergeReason.DUPLICATE
    relinked: int = 0
    created_at: datetime = field(default_factory=utcnow)
    created_by: str | None = None


@dataclass(eq=False, kw_only=True)
class FieldChange(Entity):
    """One changed field of one record, values rendered as strings."""

    entity_type: ImportDomain
    entity_id: UUID
    field_name: str
    old_value: str | None
    new_value: str | None
    changed_by: str | None = None
    changed_at: datetime = field(default_factory=utcnow)

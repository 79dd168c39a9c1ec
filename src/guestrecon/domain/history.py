"""Field-level change tracking shared by imports and the PMS feed."""

from __future__ import annotations

import json
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from guestrecon.domain.model import FieldChange

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from guestrecon.domain.model import Entity, ImportDomain
    from guestrecon.domain.ports import HistoryRepository


def render_value(value: object) -> str | None:
    """String form stored in the history log."""

    match value:
        case None:
            return None
        case Enum():
            return str(value.value)
        case date() | time():
            return value.isoformat()
        case Decimal() | UUID():
            return str(value)
        case dict() | list():
            return json.dumps(value, sort_keys=True, default=str)
        case _:
            return str(value)


def apply_values(
    entity: Entity,
    values: Mapping[str, object],
    *,
    allowed: Collection[str],
    entity_type: ImportDomain,
    changed_by: str | None,
    history: HistoryRepository,
    clearable: Collection[str] = (),
) -> int:
    """Copy allowed, non-empty ``values`` onto ``entity`` and log each change.

    ``None`` means "not in the source" and never clears a stored value, except
    for the fields named in ``clearable``, whose source is authoritative.
    Returns the number of fields that actually changed.
    """

    changed = 0
    for name, new in values.items():
        if name not in allowed or (new is None and name not in clearable):
            continue
        old = getattr(entity, name)
        if old == new:
            continue
        setattr(entity, name, new)
        record_change(
            entity,
            name,
            old,
            new,
            entity_type=entity_type,
            changed_by=changed_by,
            history=history,
        )
        changed += 1
    return changed


def record_change(
    entity: Entity,
    field_name: str,
    old: object,
    new: object,
    *,
    entity_type: ImportDomain,
    changed_by: str | None,
    history: HistoryRepository,
) -> None:
    history.record_change(
        FieldChange(
            entity_type=entity_type,
            entity_id=entity.id,
            field_name=field_name,
            old_value=render_value(old),
            new_value=render_value(new),
            changed_by=changed_by,
        )
    )

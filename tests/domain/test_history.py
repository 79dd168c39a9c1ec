from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from guestrecon.domain.history import apply_values, render_value
from guestrecon.domain.model import (
    BookingStatus,
    EntityMerge,
    FieldChange,
    ImportDomain,
    Transfer,
)


class RecordingHistory:
    def __init__(self) -> None:
        self.changes: list[FieldChange] = []

    def record_change(self, change: FieldChange) -> None:
        self.changes.append(change)

    def record_merge(self, merge: EntityMerge) -> None:
        raise AssertionError("not expected")

    def changes_for(self, entity_id: uuid.UUID) -> list[FieldChange]:
        return [change for change in self.changes if change.entity_id == entity_id]


def test_render_value() -> None:
    assert render_value(None) is None
    assert render_value(BookingStatus.CONFIRMED) == "confirmed"
    assert render_value(date(2024, 3, 5)) == "2024-03-05"
    assert render_value(Decimal("12.50")) == "12.50"
    assert render_value({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'


def test_apply_values_never_clears_and_respects_the_allow_list() -> None:
    history = RecordingHistory()
    transfer = Transfer(origin="Airport", destination="Hotel", notes="window seat")

    changed = apply_values(
        transfer,
        {
            "origin": "Airport",
            "destination": "Marina",
            "notes": None,
            "vendor_status": BookingStatus.CONFIRMED,
        },
        allowed={"origin", "destination", "notes"},
        entity_type=ImportDomain.TRANSFER,
        changed_by="tester",
        history=history,
    )

    assert changed == 1
    assert transfer.destination == "Marina"
    assert transfer.notes == "window seat"
    assert transfer.vendor_status is BookingStatus.PENDING
    (change,) = history.changes_for(transfer.id)
    assert (change.field_name, change.old_value, change.new_value) == (
        "destination",
        "Hotel",
        "Marina",
    )
    assert change.changed_by == "tester"


def test_apply_values_clears_only_clearable_fields() -> None:
    history = RecordingHistory()
    transfer = Transfer(origin="Airport", destination="Hotel", notes="window seat")
    values = {"destination": None, "notes": None}

    changed = apply_values(
        transfer,
        values,
        allowed={"destination", "notes"},
        entity_type=ImportDomain.TRANSFER,
        changed_by=None,
        history=history,
        clearable={"destination"},
    )
    replayed = apply_values(
        transfer,
        values,
        allowed={"destination", "notes"},
        entity_type=ImportDomain.TRANSFER,
        changed_by=None,
        history=history,
        clearable={"destination"},
    )

    assert (changed, replayed) == (1, 0)
    assert transfer.destination is None
    assert transfer.notes == "window seat"
    (change,) = history.changes
    assert (change.old_value, change.new_value) == ("Hotel", None)

from __future__ import annotations

import json
import uuid
from datetime import date

import pytest

from guestrecon.adapters.review import (
    ImportRowPayload,
    analysis_payload,
    execution_response,
    import_row,
    parse_group_decisions,
    parse_vendor_groups,
)
from guestrecon.domain.canonicalization import GuestRow
from guestrecon.domain.commit import CommitResult
from guestrecon.domain.errors import InvalidOverrideError, SourceFormatError
from guestrecon.domain.model import ImportDomain, ProfileType
from guestrecon.domain.reconciliation import (
    GroupAction,
    ImportAction,
    ImportAnalysis,
    ImportRow,
    ImportSummary,
    TourNameKey,
)


def test_analysis_payload_uses_camel_case_aliases() -> None:
    row = GuestRow(
        line_number=2,
        legacy_id="G-1",
        full_name="Ana Ruiz",
        profile_type=ProfileType.STAFF,
        multi_companion=True,
    )
    rows = [ImportRow(row=row, action=ImportAction.CREATE, reason="No existing match")]
    analysis = ImportAnalysis(
        domain=ImportDomain.GUEST, summary=ImportSummary.from_rows(rows), rows=rows
    )

    dumped = json.loads(analysis_payload(analysis).model_dump_json(by_alias=True))

    assert dumped["summary"]["create"] == 1
    (entry,) = dumped["analysis"]
    assert entry["csv"]["full_name"] == "Ana Ruiz"
    assert entry["action"] == "CREATE"
    assert entry["userDate"] is None
    assert entry["inferredProfileType"] == "staff"
    assert entry["multiCompanion"] is True


def _payload(action: str, **extra: object) -> ImportRowPayload:
    csv = {
        "line_number": 4,
        "legacy_id": "T-9",
        "transfer_date": None,
        "invalid_dates": {"transfer_date": "31/02/24"},
        "guest_name": "Ana Ruiz",
    }
    return ImportRowPayload.model_validate({"csv": csv, "action": action, **extra})


def test_import_row_keeps_the_reviewed_invalid_date() -> None:
    item = import_row(_payload("INVALID_DATE", userDate="2024-02-29"), ImportDomain.TRANSFER)

    assert item.action is ImportAction.INVALID_DATE
    assert item.user_date == date(2024, 2, 29)
    assert item.committable
    assert item.row.invalid_dates == {"transfer_date": "31/02/24"}


def test_import_row_blank_user_date_is_not_committable() -> None:
    item = import_row(_payload("INVALID_DATE", userDate=" "), ImportDomain.TRANSFER)

    assert item.user_date is None
    assert not item.committable


def test_import_row_validates_overrides() -> None:
    with pytest.raises(InvalidOverrideError):
        import_row(_payload("UPDATE"), ImportDomain.TRANSFER)

    matched = _payload(
        "UPDATE", match={"id": str(uuid.uuid4()), "legacyIds": ["T-9"]}, reason=""
    )
    item = import_row(matched, ImportDomain.TRANSFER)
    assert item.action is ImportAction.UPDATE
    assert item.match is not None
    assert item.match.legacy_ids == ("T-9",)
    assert item.reason == "Manual override: UPDATE"

    conflict = import_row(_payload("CONFLICT"), ImportDomain.TRANSFER)
    assert conflict.action is ImportAction.CONFLICT
    assert not conflict.committable


def test_import_row_rejects_reservations() -> None:
    with pytest.raises(ValueError, match="No reviewed import"):
        import_row(_payload("CREATE"), ImportDomain.RESERVATION)


def test_execution_response_reports_failure_when_any_row_failed() -> None:
    ok = execution_response(CommitResult(created=2))
    failed = execution_response(CommitResult(created=1, errors=["Row 3: boom"]))

    assert ok.success
    assert not failed.success
    assert failed.result.errors == ["Row 3: boom"]


def test_parse_group_decisions_accepts_a_fenced_answer() -> None:
    product_id = uuid.uuid4()
    text = f"""```json
    [
      {{"groupId": 1, "csvKeys": ["Snorkel trip|||V-1", "Snorkeling|||NO_VENDOR"],
        "action": "MAP", "productId": "{product_id}"}},
      {{"groupId": 2, "csvNames": ["Zipline ", ""], "action": "create",
        "name_en": "Zipline Adventure", "name_es": "Aventura en tirolesa", "productId": ""}},
      {{"groupId": 3, "csvNames": ["cancelado"], "action": "skip"}}
    ]
    ```"""

    mapped, created, skipped = parse_group_decisions(text)

    assert mapped.action is GroupAction.MAP
    assert mapped.product_id == product_id
    assert mapped.keys == [
        TourNameKey(name="Snorkel trip", legacy_vendor_id="V-1"),
        TourNameKey(name="Snorkeling"),
    ]
    assert mapped.legacy_vendor_id == "V-1"
    assert created.names == ["Zipline"]
    assert created.product_id is None
    assert created.name_es == "Aventura en tirolesa"
    assert skipped.action is GroupAction.SKIP


@pytest.mark.parametrize("text", ["not json", '[{"groupId": 1, "action": "explode"}]'])
def test_parse_group_decisions_rejects_unreadable_answers(text: str) -> None:
    with pytest.raises(SourceFormatError):
        parse_group_decisions(text)


def test_parse_vendor_groups_keeps_the_suggested_master() -> None:
    canopy, canopi, typo, invalid = (uuid.uuid4() for _ in range(4))
    text = f"""```json
    [
      {{"groupId": 1, "reason": "spelling variants", "vendors": [
        {{"id": "{canopi}", "name": "Canopi", "isSuggestedMaster": false}},
        {{"id": "{canopy}", "name": "Canopy Tours", "isSuggestedMaster": true}},
        {{"id": "{typo}", "name": "canopy  tours"}},
        {{"id": "{typo}", "name": "canopy  tours"}}
      ]}},
      {{"groupId": 2, "reason": "invalid_record", "vendors": [
        {{"id": "{invalid}", "name": "cancelado"}}
      ]}},
      {{"groupId": 3, "reason": "", "vendors": []}}
    ]
    ```"""

    merged, flagged = parse_vendor_groups(text)

    assert merged.master_id == canopy
    assert merged.duplicate_ids == [canopi, typo]
    assert merged.reason == "spelling variants"
    assert flagged.master_id == invalid
    assert flagged.duplicate_ids == []
    assert flagged.flags_invalid_record


def test_parse_vendor_groups_without_a_suggestion_keeps_the_first() -> None:
    first, second = uuid.uuid4(), uuid.uuid4()
    text = json.dumps(
        [{"groupId": 4, "vendors": [{"id": str(first)}, {"id": str(second)}]}]
    )

    (group,) = parse_vendor_groups(text)

    assert (group.master_id, group.duplicate_ids) == (first, [second])


def test_parse_vendor_groups_accepts_a_reviewed_merges_object() -> None:
    master, duplicate = uuid.uuid4(), uuid.uuid4()
    text = json.dumps(
        {"merges": [{"masterId": str(master), "duplicateIds": [str(duplicate), str(master)]}]}
    )

    (group,) = parse_vendor_groups(text)

    assert (group.group_id, group.master_id, group.duplicate_ids) == (1, master, [duplicate])


@pytest.mark.parametrize(
    "text", ["not json", '[{"groupId": 1, "vendors": [{"id": "nope"}]}]', '{"merges": 3}']
)
def test_parse_vendor_groups_rejects_unreadable_answers(text: str) -> None:
    with pytest.raises(SourceFormatError):
        parse_vendor_groups(text)

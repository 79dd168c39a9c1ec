from __future__ import annotations

import uuid
from datetime import date

from guestrecon.domain.canonicalization import GuestRow, TransferRow, VendorRow
from guestrecon.domain.reconciliation import (
    REASON_AMBIGUOUS,
    REASON_CONTACT,
    REASON_LEGACY_ID,
    REASON_NATURAL_KEY,
    REASON_NEW,
    CandidateIndex,
    CandidatePool,
    ImportAction,
    MatchCandidate,
    MatchStrategy,
    collect_lookup_keys,
    match_row,
)


def _index(*candidates: MatchCandidate, **extra: dict[str, uuid.UUID]) -> CandidateIndex:
    return CandidateIndex.build(CandidatePool(candidates=list(candidates), **extra))


def _guest(name: str, *, legacy_id: str | None = None, **fields: str) -> GuestRow:
    first, _, last = name.rpartition(" ")
    return GuestRow(
        line_number=2,
        legacy_id=legacy_id,
        full_name=name,
        first_name=first,
        last_name=last,
        **fields,
    )


def test_legacy_id_match_ignores_surrounding_whitespace() -> None:
    stored = MatchCandidate(id=uuid.uuid4(), name="Ana Ruiz", legacy_ids=("G-7",))

    result = match_row(_guest("Ana Ruiz", legacy_id="  G-7 "), _index(stored))

    assert result.action is ImportAction.UPDATE
    assert result.reason == REASON_LEGACY_ID
    assert result.strategy is MatchStrategy.LEGACY_ID
    assert result.candidate is stored


def test_legacy_id_wins_over_name() -> None:
    by_id = MatchCandidate(id=uuid.uuid4(), name="Ana R.", legacy_ids=("G-7",))
    by_name = MatchCandidate(id=uuid.uuid4(), name="Ana Ruiz")

    result = match_row(_guest("Ana Ruiz", legacy_id="G-7"), _index(by_id, by_name))

    assert result.candidate is by_id


def test_name_match_is_case_and_space_insensitive() -> None:
    stored = MatchCandidate(id=uuid.uuid4(), name="ana  ruiz")

    result = match_row(_guest("Ana Ruiz", legacy_id="G-9"), _index(stored))

    assert result.action is ImportAction.UPDATE
    assert result.reason == REASON_NATURAL_KEY


def test_two_records_with_the_same_name_are_ambiguous() -> None:
    first = MatchCandidate(id=uuid.uuid4(), name="Ana Ruiz")
    second = MatchCandidate(id=uuid.uuid4(), name="ANA RUIZ")

    result = match_row(_guest("Ana Ruiz"), _index(first, second))

    assert result.action is ImportAction.CONFLICT
    assert result.reason == REASON_AMBIGUOUS


def test_shared_contact_with_another_name_is_a_conflict() -> None:
    stored = MatchCandidate(id=uuid.uuid4(), name="Luis Mora", email="family@example.com")

    result = match_row(_guest("Ana Ruiz", email=" Family@Example.com "), _index(stored))

    assert result.action is ImportAction.CONFLICT
    assert result.reason == REASON_CONTACT
    assert result.strategy is MatchStrategy.CONTACT
    assert result.candidate is stored


def test_phone_of_another_guest_is_a_conflict() -> None:
    stored = MatchCandidate(id=uuid.uuid4(), name="Luis Mora", phone="+506 8888 0000")

    result = match_row(_guest("Ana Ruiz", phone="+506 8888 0000"), _index(stored))

    assert result.action is ImportAction.CONFLICT


def test_unknown_row_is_created() -> None:
    result = match_row(_guest("Ana Ruiz", legacy_id="G-1"), _index())

    assert result.action is ImportAction.CREATE
    assert result.reason == REASON_NEW
    assert result.candidate is None


def test_vendor_matches_through_a_confirmed_name_mapping() -> None:
    stored = MatchCandidate(id=uuid.uuid4(), name="Canopy Tours")
    row = VendorRow(line_number=2, name="Canopy Tour S.A.")

    result = match_row(row, _index(stored, vendor_mappings={"canopy tour s.a.": stored.id}))

    assert result.action is ImportAction.UPDATE
    assert result.candidate is stored


def test_composite_match_skips_records_with_another_legacy_id() -> None:
    day = date(2024, 3, 5)
    stored = MatchCandidate(id=uuid.uuid4(), legacy_ids=("T-9",), composite=(day, "V-1"))
    untagged = TransferRow(line_number=2, transfer_date=day, vendor_legacy_id=" V-1 ")
    other = TransferRow(line_number=3, legacy_id="T-10", transfer_date=day, vendor_legacy_id="V-1")

    assert match_row(untagged, _index(stored)).reason == REASON_NATURAL_KEY
    assert match_row(other, _index(stored)).action is ImportAction.CREATE


def test_collect_lookup_keys_skips_blank_rows() -> None:
    rows = [
        _guest("Ana Ruiz", legacy_id=" G-7 ", email="ANA@example.com", phone=" 555 "),
        GuestRow(line_number=3, legacy_id="G-8", blank=True),
        TransferRow(line_number=4, transfer_date=date(2024, 3, 5), vendor_legacy_id="V-1"),
    ]

    keys = collect_lookup_keys(rows)

    assert keys.legacy_ids == {"G-7"}
    assert keys.names == {"ana ruiz"}
    assert keys.emails == {"ana@example.com"}
    assert keys.phones == {"555"}
    assert keys.composites == {(date(2024, 3, 5), "V-1")}

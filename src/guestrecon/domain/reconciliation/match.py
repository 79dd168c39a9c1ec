"""Tiered identity matching of canonical rows against existing records.

Strategies run strictly in order and the first hit wins:

1. legacy id (trimmed) -> UPDATE, ``"Legacy ID match"``
2. natural key -> UPDATE, ``"Name/Composite match"``
3. email or phone of a differently named record -> CONFLICT
4. nothing -> CREATE

All candidates for a batch are fetched up front (see ``collect_lookup_keys``);
matching itself is in-memory and read-only.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from guestrecon.domain.canonicalization import (
    GuestRow,
    TourBookingRow,
    TransferRow,
    VendorRow,
)

from .contracts import (
    REASON_AMBIGUOUS,
    REASON_CONTACT,
    REASON_LEGACY_ID,
    REASON_NATURAL_KEY,
    REASON_NEW,
    CandidatePool,
    ImportAction,
    LookupKeys,
    MatchCandidate,
    MatchResult,
    MatchStrategy,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date
    from uuid import UUID

    from guestrecon.domain.canonicalization import CanonicalRowT


def name_key(value: str | None) -> str | None:
    if value is None:
        return None
    collapsed = " ".join(value.split()).lower()
    return collapsed or None


def contact_key(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower() or None


def trimmed(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def composite_key(row: CanonicalRowT) -> tuple[date, str] | None:
    if not isinstance(row, TransferRow | TourBookingRow):
        return None
    vendor = trimmed(row.vendor_legacy_id)
    if row.natural_date is None or vendor is None:
        return None
    return row.natural_date, vendor


def collect_lookup_keys(rows: Iterable[CanonicalRowT]) -> LookupKeys:
    """Gather every legacy id, name, contact and composite key of a batch."""

    keys = LookupKeys()
    for row in rows:
        if row.blank:
            continue
        if legacy := row.legacy_key:
            keys.legacy_ids.add(legacy)
        if isinstance(row, GuestRow | VendorRow):
            if name := name_key(row.display_name):
                keys.names.add(name)
            if email := contact_key(row.email):
                keys.emails.add(email)
            if phone := trimmed(row.phone):
                keys.phones.add(phone)
        if (composite := composite_key(row)) is not None:
            keys.composites.add(composite)
        if isinstance(row, TourBookingRow) and (activity := name_key(row.activity_name)):
            keys.activity_names.add(activity)
    return keys


@dataclass(slots=True)
class CandidateIndex:
    """In-memory maps over one batch's candidate pool."""

    by_legacy_id: dict[str, MatchCandidate] = field(default_factory=dict)
    by_id: dict[UUID, MatchCandidate] = field(default_factory=dict)
    by_name: dict[str, list[MatchCandidate]] = field(default_factory=lambda: defaultdict(list))
    by_email: dict[str, list[MatchCandidate]] = field(default_factory=lambda: defaultdict(list))
    by_phone: dict[str, list[MatchCandidate]] = field(default_factory=lambda: defaultdict(list))
    by_composite: dict[tuple[date, str], list[MatchCandidate]] = field(
        default_factory=lambda: defaultdict(list)
    )
    vendor_mappings: dict[str, UUID] = field(default_factory=dict)
    product_names: dict[str, UUID] = field(default_factory=dict)

    @classmethod
    def build(cls, pool: CandidatePool) -> CandidateIndex:
        index = cls(vendor_mappings=pool.vendor_mappings, product_names=pool.product_names)
        for candidate in pool.candidates:
            index.by_id[candidate.id] = candidate
            for legacy in candidate.legacy_ids:
                if (key := trimmed(legacy)) is not None:
                    index.by_legacy_id.setdefault(key, candidate)
            if (name := name_key(candidate.name)) is not None:
                index.by_name[name].append(candidate)
            if (email := contact_key(candidate.email)) is not None:
                index.by_email[email].append(candidate)
            if (phone := trimmed(candidate.phone)) is not None:
                index.by_phone[phone].append(candidate)
            if candidate.composite is not None:
                index.by_composite[candidate.composite].append(candidate)
        return index

    def product_for(self, activity_name: str | None) -> UUID | None:
        key = name_key(activity_name)
        return self.product_names.get(key) if key else None


def _match_legacy_id(row: CanonicalRowT, index: CandidateIndex) -> MatchResult | None:
    legacy = row.legacy_key
    if legacy is None:
        return None
    candidate = index.by_legacy_id.get(legacy)
    if candidate is None:
        return None
    return MatchResult(
        action=ImportAction.UPDATE,
        reason=REASON_LEGACY_ID,
        strategy=MatchStrategy.LEGACY_ID,
        candidate=candidate,
    )


def _natural_candidates(row: CanonicalRowT, index: CandidateIndex) -> list[MatchCandidate]:
    if isinstance(row, GuestRow | VendorRow):
        key = name_key(row.display_name)
        if key is None:
            return []
        found = list(index.by_name.get(key, ()))
        if isinstance(row, VendorRow) and not found:
            mapped = index.vendor_mappings.get(key)
            if mapped is not None and mapped in index.by_id:
                found = [index.by_id[mapped]]
        return found

    composite = composite_key(row)
    if composite is None:
        return []
    legacy = row.legacy_key
    # a record carrying another legacy id is a different booking
    return [
        candidate
        for candidate in index.by_composite.get(composite, ())
        if legacy is None or not candidate.legacy_ids or legacy in candidate.legacy_ids
    ]


def _match_natural_key(row: CanonicalRowT, index: CandidateIndex) -> MatchResult | None:
    found = _natural_candidates(row, index)
    if not found:
        return None
    if len(found) > 1:
        return MatchResult(
            action=ImportAction.CONFLICT,
            reason=REASON_AMBIGUOUS,
            strategy=MatchStrategy.NATURAL_KEY,
            candidate=found[0],
        )
    return MatchResult(
        action=ImportAction.UPDATE,
        reason=REASON_NATURAL_KEY,
        strategy=MatchStrategy.NATURAL_KEY,
        candidate=found[0],
    )


def _match_contact(row: CanonicalRowT, index: CandidateIndex) -> MatchResult | None:
    if not isinstance(row, GuestRow | VendorRow):
        return None
    row_name = name_key(row.display_name)
    hits: list[MatchCandidate] = []
    if (email := contact_key(row.email)) is not None:
        hits.extend(index.by_email.get(email, ()))
    if (phone := trimmed(row.phone)) is not None:
        hits.extend(index.by_phone.get(phone, ()))
    for candidate in hits:
        if name_key(candidate.name) != row_name:
            return MatchResult(
                action=ImportAction.CONFLICT,
                reason=REASON_CONTACT,
                strategy=MatchStrategy.CONTACT,
                candidate=candidate,
            )
    return None


def match_row(row: CanonicalRowT, index: CandidateIndex) -> MatchResult:
    """Run the ordered strategies for one row; never touches the store."""

    for strategy in (_match_legacy_id, _match_natural_key, _match_contact):
        result = strategy(row, index)
        if result is not None:
            return result
    return MatchResult(action=ImportAction.CREATE, reason=REASON_NEW)


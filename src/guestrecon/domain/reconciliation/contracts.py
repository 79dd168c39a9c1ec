"""Shared reconciliation contract components.

This module holds only the value types passed between the matcher, the
classifier, the review payloads and the commit executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING, Final
from uuid import UUID

from guestrecon.domain.errors import InvalidOverrideError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from guestrecon.domain.canonicalization import CanonicalRowT
    from guestrecon.domain.model import ImportDomain


class ImportAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    CONFLICT = "CONFLICT"
    SKIP = "SKIP"
    INVALID_DATE = "INVALID_DATE"


class MatchStrategy(StrEnum):
    """Which tier of the matcher produced a candidate."""

    LEGACY_ID = "legacy_id"
    NATURAL_KEY = "natural_key"
    CONTACT = "contact"


REASON_LEGACY_ID: Final[str] = "Legacy ID match"
REASON_NATURAL_KEY: Final[str] = "Name/Composite match"
REASON_CONTACT: Final[str] = "Contact match with different name"
REASON_AMBIGUOUS: Final[str] = "Ambiguous natural-key match"
REASON_NEW: Final[str] = "No existing match"
REASON_BLANK: Final[str] = "Blank row"
REASON_BATCH_DUPLICATE: Final[str] = "Duplicate legacy id in batch"


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchCandidate:
    """Existing record as seen by the matcher.

    ``composite`` is the (date, legacy vendor id) natural key of transfers and
    tour bookings; guests and vendors leave it empty.
    """

    id: UUID
    name: str | None = None
    legacy_ids: tuple[str, ...] = ()
    email: str | None = None
    phone: str | None = None
    composite: tuple[date, str] | None = None


@dataclass(slots=True, kw_only=True)
class LookupKeys:
    """Everything one batch may match on, collected for a single bulk lookup."""

    legacy_ids: set[str] = field(default_factory=set)
    names: set[str] = field(default_factory=set)
    emails: set[str] = field(default_factory=set)
    phones: set[str] = field(default_factory=set)
    composites: set[tuple[date, str]] = field(default_factory=set)
    activity_names: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (
            self.legacy_ids
            or self.names
            or self.emails
            or self.phones
            or self.composites
            or self.activity_names
        )


@dataclass(slots=True, kw_only=True)
class CandidatePool:
    """Result of the bulk lookup for one batch.

    ``vendor_mappings`` and ``product_names`` are keyed by the lower-cased raw
    name and hold the confirmed target id.
    """

    candidates: list[MatchCandidate] = field(default_factory=list)
    vendor_mappings: dict[str, UUID] = field(default_factory=dict)
    product_names: dict[str, UUID] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchResult:
    action: ImportAction
    reason: str
    strategy: MatchStrategy | None = None
    candidate: MatchCandidate | None = None


@dataclass(slots=True, kw_only=True)
class ImportRow:
    """One analysed row: canonical fields, match, action and reason."""

    row: CanonicalRowT
    action: ImportAction
    reason: str
    match: MatchCandidate | None = None
    user_date: date | None = None
    product_id: UUID | None = None

    @property
    def domain(self) -> ImportDomain:
        return self.row.domain

    def override(
        self,
        action: ImportAction,
        *,
        reason: str | None = None,
        user_date: date | None = None,
    ) -> None:
        """Apply a reviewer's decision; the matcher is not consulted again."""

        if action is ImportAction.UPDATE and self.match is None:
            raise InvalidOverrideError(f"{self.row.row_key}: UPDATE needs a matched record")
        if action is ImportAction.CONFLICT:
            raise InvalidOverrideError(f"{self.row.row_key}: CONFLICT is not a decision")
        self.action = action
        self.reason = reason or f"Manual override: {action.value}"
        if user_date is not None:
            self.user_date = user_date

    @property
    def committable(self) -> bool:
        if self.action in {ImportAction.CREATE, ImportAction.UPDATE}:
            return True
        return self.action is ImportAction.INVALID_DATE and self.user_date is not None


@dataclass(slots=True, kw_only=True)
class ImportSummary:
    total: int = 0
    create: int = 0
    update: int = 0
    conflict: int = 0
    skip: int = 0
    invalid_date: int = 0

    @classmethod
    def from_rows(cls, rows: Iterable[ImportRow]) -> ImportSummary:
        summary = cls()
        for item in rows:
            summary.total += 1
            match item.action:
                case ImportAction.CREATE:
                    summary.create += 1
                case ImportAction.UPDATE:
                    summary.update += 1
                case ImportAction.CONFLICT:
                    summary.conflict += 1
                case ImportAction.SKIP:
                    summary.skip += 1
                case ImportAction.INVALID_DATE:
                    summary.invalid_date += 1
        return summary


@dataclass(slots=True, kw_only=True)
class ImportAnalysis:
    domain: ImportDomain
    summary: ImportSummary
    rows: list[ImportRow]

    def refresh_summary(self) -> None:
        self.summary = ImportSummary.from_rows(self.rows)

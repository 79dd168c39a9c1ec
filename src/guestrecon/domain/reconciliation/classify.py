"""Batch classification: structural checks first, then identity matching."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

from guestrecon.domain.canonicalization import GuestRow, TourBookingRow, VendorRow

from .contracts import (
    REASON_BATCH_DUPLICATE,
    REASON_BLANK,
    CandidatePool,
    ImportAction,
    ImportAnalysis,
    ImportRow,
    ImportSummary,
    LookupKeys,
)
from .match import CandidateIndex, collect_lookup_keys, match_row

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from guestrecon.domain.canonicalization import CanonicalRowT
    from guestrecon.domain.model import ImportDomain

    type CandidateFinder = Callable[[ImportDomain, LookupKeys], CandidatePool]

log = logging.getLogger(__name__)

_SYMBOLS_ONLY = re.compile(r"^[#0.*x\s]+$")

JUNK_EXACT: Final[frozenset[str]] = frozenset(
    {
        "cancelado",
        "cancelled",
        "canceled",
        "duplicado",
        "error",
        "eliminado",
        "none",
        "n/a",
        "na",
        "sin proveedor",
        "externo",
        "tour",
        "visita",
        "bailarines",
        "fumigadores",
        "artesanas",
        "artesanos",
        "managers",
        "cocineros",
        "personal bar",
        "personal construccion",
        "abogados abogados",
        "nayara staff",
        "profe yoga",
        "rhomina masajista",
        "dj fat",
        "gapa",
        "0",
        "#error!",
        "****",
        "xxx",
        "xxxxx",
        ".",
        ". .",
    }
)

JUNK_PREFIXES: Final[tuple[str, ...]] = (
    "cancelado",
    "duplicado",
    "perfil duplicado",
    "usuario duplicado",
    "cance",
    "can celdes",
    "cancelled",
    "cancel",
)


def junk_reason(text: str | None) -> str | None:
    """Reason string when ``text`` is a known junk sentinel, else ``None``."""

    if text is None:
        return None
    lowered = text.strip().lower()
    if not lowered:
        return None
    if _SYMBOLS_ONLY.match(lowered):
        return "Junk data: symbols/zeros only"
    if lowered in JUNK_EXACT:
        return f'Junk data: "{text.strip()}"'
    for prefix in JUNK_PREFIXES:
        if lowered.startswith(prefix):
            return f'Junk data: starts with "{prefix}"'
    return None


def structural_reason(
    row: CanonicalRowT, seen_legacy_ids: set[str]
) -> tuple[ImportAction, str] | None:
    """SKIP/INVALID_DATE verdict for a row that must not reach the matcher."""

    if row.blank:
        return ImportAction.SKIP, REASON_BLANK
    if isinstance(row, GuestRow) and not row.first_name:
        return ImportAction.SKIP, "Missing guest name"
    if isinstance(row, VendorRow) and not row.name:
        return ImportAction.SKIP, "Missing vendor name"
    if (reason := junk_reason(row.junk_text)) is not None:
        return ImportAction.SKIP, reason

    legacy = row.legacy_key
    if legacy is not None:
        if legacy in seen_legacy_ids:
            return ImportAction.SKIP, REASON_BATCH_DUPLICATE
        seen_legacy_ids.add(legacy)

    if row.missing_required_date():
        return ImportAction.SKIP, f"No date for {row.domain.value.replace('_', ' ')}"
    if row.invalid_dates:
        field_name, raw = next(iter(row.invalid_dates.items()))
        return ImportAction.INVALID_DATE, f'Unparseable date in {field_name}: "{raw}"'
    return None


def classify_rows(rows: Sequence[CanonicalRowT], pool: CandidatePool) -> list[ImportRow]:
    index = CandidateIndex.build(pool)
    seen_legacy_ids: set[str] = set()
    classified: list[ImportRow] = []
    for row in rows:
        verdict = structural_reason(row, seen_legacy_ids)
        if verdict is not None:
            action, reason = verdict
            classified.append(ImportRow(row=row, action=action, reason=reason))
            continue

        product_id = None
        if isinstance(row, TourBookingRow):
            product_id = index.product_for(row.activity_name)
            if product_id is None:
                classified.append(
                    ImportRow(
                        row=row,
                        action=ImportAction.SKIP,
                        reason=f'Unmapped tour name: "{row.activity_name or ""}"',
                    )
                )
                continue

        result = match_row(row, index)
        classified.append(
            ImportRow(
                row=row,
                action=result.action,
                reason=result.reason,
                match=result.candidate,
                product_id=product_id,
            )
        )
    return classified


def analyze_rows(
    rows: Sequence[CanonicalRowT],
    domain: ImportDomain,
    *,
    find_candidates: CandidateFinder,
) -> ImportAnalysis:
    """Classify a batch using one bulk candidate lookup.

    An all-SKIP batch is a valid result, not an error.
    """

    keys = collect_lookup_keys(rows)
    pool = CandidatePool() if keys.is_empty() else find_candidates(domain, keys)
    classified = classify_rows(rows, pool)
    summary = ImportSummary.from_rows(classified)
    log.info(
        "Analysed %s %s rows: create=%s update=%s conflict=%s skip=%s invalid_date=%s",
        summary.total,
        domain.value,
        summary.create,
        summary.update,
        summary.conflict,
        summary.skip,
        summary.invalid_date,
    )
    return ImportAnalysis(domain=domain, summary=summary, rows=classified)

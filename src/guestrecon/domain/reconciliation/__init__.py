"""Reconciliation of canonical rows against existing records.

Flow for one uploaded batch:
1) collect every lookup key of the batch (``collect_lookup_keys``)
2) fetch candidates in one bulk read through the persistence port
3) run structural checks, then tiered matching, per row (``classify_rows``)
4) hand the ``ImportAnalysis`` to a human reviewer
5) commit the reviewed rows (``guestrecon.domain.commit``)
"""

from __future__ import annotations

from .classify import JUNK_EXACT, JUNK_PREFIXES, analyze_rows, classify_rows, junk_reason
from .contracts import (
    REASON_AMBIGUOUS,
    REASON_BATCH_DUPLICATE,
    REASON_BLANK,
    REASON_CONTACT,
    REASON_LEGACY_ID,
    REASON_NATURAL_KEY,
    REASON_NEW,
    CandidatePool,
    ImportAction,
    ImportAnalysis,
    ImportRow,
    ImportSummary,
    LookupKeys,
    MatchCandidate,
    MatchResult,
    MatchStrategy,
)
from .match import (
    CandidateIndex,
    collect_lookup_keys,
    composite_key,
    match_row,
    name_key,
    trimmed,
)
from .tour_names import (
    NO_VENDOR,
    GroupAction,
    GroupDecision,
    TourNameKey,
    TourNameStat,
    build_tour_prompt,
    summarize_tour_names,
)
from .vendor_names import (
    INVALID_RECORD_REASON,
    VendorMergeGroup,
    VendorUsage,
    build_vendor_prompt,
)

__all__ = [
    "INVALID_RECORD_REASON",
    "JUNK_EXACT",
    "JUNK_PREFIXES",
    "NO_VENDOR",
    "REASON_AMBIGUOUS",
    "REASON_BATCH_DUPLICATE",
    "REASON_BLANK",
    "REASON_CONTACT",
    "REASON_LEGACY_ID",
    "REASON_NATURAL_KEY",
    "REASON_NEW",
    "CandidateIndex",
    "CandidatePool",
    "GroupAction",
    "GroupDecision",
    "ImportAction",
    "ImportAnalysis",
    "ImportRow",
    "ImportSummary",
    "LookupKeys",
    "MatchCandidate",
    "MatchResult",
    "MatchStrategy",
    "TourNameKey",
    "TourNameStat",
    "VendorMergeGroup",
    "VendorUsage",
    "analyze_rows",
    "build_tour_prompt",
    "build_vendor_prompt",
    "classify_rows",
    "collect_lookup_keys",
    "composite_key",
    "junk_reason",
    "match_row",
    "name_key",
    "summarize_tour_names",
    "trimmed",
]

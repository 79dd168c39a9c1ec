"""Vendor-name normalization: list vendors with their usage and accept merge groups.

Like tour names, the prompt is pasted into an assistant by a human and the
answer comes back as JSON (parsed by ``guestrecon.adapters.review``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from guestrecon.domain.model import VendorType

INVALID_RECORD_REASON: Final[str] = "invalid_record"


@dataclass(frozen=True, slots=True, kw_only=True)
class VendorUsage:
    """One vendor and how many records point at it."""

    id: UUID
    name: str
    type: VendorType
    is_active: bool = True
    transfer_count: int = 0
    tour_product_count: int = 0

    def describe(self) -> str:
        active = "true" if self.is_active else "false"
        return (
            f'ID: {self.id} | Name: "{self.name}" | Type: {self.type}'
            f" | Transfers: {self.transfer_count}"
            f" | TourProducts: {self.tour_product_count} | Active: {active}"
        )


@dataclass(slots=True, kw_only=True)
class VendorMergeGroup:
    group_id: int
    master_id: UUID
    duplicate_ids: list[UUID] = field(default_factory=list)
    reason: str | None = None

    @property
    def flags_invalid_record(self) -> bool:
        return self.reason == INVALID_RECORD_REASON


_PROMPT_HEADER: Final[str] = """\
You are a data deduplication expert for a luxury hotel concierge platform.
Below is the full vendor list from the database. Your job is to find groups of vendors that
represent the SAME real-world company but were entered differently (spelling variations, typos,
abbreviations, partial names, language differences, etc.)."""

_PROMPT_INSTRUCTIONS: Final[str] = f"""\
INSTRUCTIONS:
1. Group vendors that are clearly the same entity.
2. For each group, pick the best "master" record. Prefer the most transfers and tour products,
   then the most complete name, correct spelling and an active record.
3. Flag records that are clearly invalid (e.g. "cancelado", "n/a", "test", empty) as their own
   group with reason "{INVALID_RECORD_REASON}".
4. Only include groups with 2+ members (or 1 invalid record). Do NOT list unique vendors.
5. Return ONLY a valid JSON array, no markdown, no explanation outside the JSON.

OUTPUT FORMAT (return exactly this JSON structure):
[
  {{"groupId": 1, "reason": "short explanation of why these are duplicates",
   "vendors": [
     {{"id": "uuid-here", "name": "vendor name", "isSuggestedMaster": true}},
     {{"id": "uuid-here", "name": "vendor name", "isSuggestedMaster": false}}
   ]}}
]"""


def build_vendor_prompt(vendors: Sequence[VendorUsage]) -> str:
    if vendors:
        vendor_lines = "\n".join(vendor.describe() for vendor in vendors)
    else:
        vendor_lines = "(no vendors in the system yet)"
    return f"{_PROMPT_HEADER}\n\nVENDOR LIST:\n{vendor_lines}\n\n{_PROMPT_INSTRUCTIONS}"

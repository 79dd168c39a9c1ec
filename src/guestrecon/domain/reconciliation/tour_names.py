"""Tour-name normalization: summarise raw activity names and accept group decisions.

The engine never talks to an AI service itself. It renders a prompt a human can
paste into an assistant and accepts the assistant's answer as a list of
``GroupDecision`` values (parsed by ``guestrecon.adapters.review``).
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .match import trimmed

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from guestrecon.domain.canonicalization import TourBookingRow
    from guestrecon.domain.model import TourProduct

KEY_SEPARATOR: Final[str] = "|||"
NO_VENDOR: Final[str] = "NO_VENDOR"


class GroupAction(StrEnum):
    CREATE = "create"
    MAP = "map"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class TourNameKey:
    """Raw activity name plus the legacy vendor it was booked with."""

    name: str
    legacy_vendor_id: str | None = None

    @classmethod
    def parse(cls, value: str) -> TourNameKey:
        name, sep, vendor = value.partition(KEY_SEPARATOR)
        if not sep or vendor.strip() in {"", NO_VENDOR}:
            return cls(name=name.strip())
        return cls(name=name.strip(), legacy_vendor_id=vendor.strip())

    def render(self) -> str:
        return f"{self.name}{KEY_SEPARATOR}{self.legacy_vendor_id or NO_VENDOR}"


@dataclass(slots=True, kw_only=True)
class TourNameStat:
    name: str
    count: int = 0
    new_count: int = 0
    existing_count: int = 0
    legacy_vendor_ids: list[str] = field(default_factory=list)

    def describe(self) -> str:
        if self.existing_count > 0:
            detail = f"{self.new_count} new + {self.existing_count} already imported"
        else:
            plural = "" if self.count == 1 else "s"
            detail = f"{self.count} booking{plural}"
        return f'"{self.name}" ({detail})'


@dataclass(slots=True, kw_only=True)
class GroupDecision:
    """One reviewed group of raw names and what to do with it."""

    group_id: int
    keys: list[TourNameKey]
    action: GroupAction
    product_id: UUID | None = None
    name_en: str | None = None
    name_es: str | None = None
    vendor_id: UUID | None = None

    @property
    def names(self) -> list[str]:
        return [key.name for key in self.keys]

    @property
    def legacy_vendor_id(self) -> str | None:
        for key in self.keys:
            if key.legacy_vendor_id:
                return key.legacy_vendor_id
        return None


def summarize_tour_names(
    rows: Iterable[TourBookingRow], imported_legacy_ids: set[str]
) -> list[TourNameStat]:
    """Count bookings per raw activity name, split into new vs already imported."""

    stats: dict[str, TourNameStat] = {}
    vendors: dict[str, Counter[str]] = defaultdict(Counter)
    for row in rows:
        name = trimmed(row.activity_name)
        if name is None:
            continue
        stat = stats.setdefault(name, TourNameStat(name=name))
        stat.count += 1
        legacy = row.legacy_key
        if legacy is not None and legacy in imported_legacy_ids:
            stat.existing_count += 1
        else:
            stat.new_count += 1
        if (vendor := trimmed(row.vendor_legacy_id)) is not None:
            vendors[name][vendor] += 1

    for name, stat in stats.items():
        stat.legacy_vendor_ids = [vendor for vendor, _ in vendors[name].most_common()]
    return sorted(stats.values(), key=lambda stat: (-stat.count, stat.name))


_PROMPT_HEADER: Final[str] = """\
You are a tour data normalization expert for a luxury hotel concierge platform.
Below are tour activity names extracted from a historical CSV import, with their booking counts.
Your job is to group name variants that refer to the same real tour, then map each group to an
existing product or propose a new one."""

_PROMPT_INSTRUCTIONS: Final[str] = """\
INSTRUCTIONS:
1. Group CSV names that clearly refer to the same real-world tour or activity
   (typos, abbreviations, Spanish/English variants, partial names, etc.).
2. For each group decide:
   - "map"    -> it matches an existing product above (provide its productId)
   - "create" -> it is a new tour not yet in the system (provide name_en and name_es)
   - "skip"   -> the entry is invalid / test data (e.g. "cancelado", "n/a", blank)
3. Suggest clear, professional names for new tours (English and Spanish).
4. Every CSV name must appear in exactly one group.
5. Return ONLY a valid JSON array, no explanation outside the JSON.

OUTPUT FORMAT (return exactly this structure):
[
  {"groupId": 1, "csvNames": ["Snorkeling", "Snorkel trip"], "action": "create",
   "name_en": "Snorkeling Tour", "name_es": "Tour de Snorkel"},
  {"groupId": 2, "csvNames": ["Sunset Cruise"], "action": "map",
   "productId": "existing-product-uuid"},
  {"groupId": 3, "csvNames": ["cancelado", "test"], "action": "skip"}
]"""


def build_tour_prompt(
    stats: Sequence[TourNameStat],
    products: Sequence[TourProduct],
    vendor_names: dict[UUID, str] | None = None,
) -> str:
    vendor_names = vendor_names or {}

    def vendor_label(product: TourProduct) -> str:
        if product.vendor_id is None:
            return "none"
        return vendor_names.get(product.vendor_id, "none")

    if products:
        product_lines = "\n".join(
            f"ID: {product.id} | EN: {product.name_en} | ES: {product.name_es or ''}"
            f" | Vendor: {vendor_label(product)}"
            for product in sorted(products, key=lambda item: item.name_en)
        )
    else:
        product_lines = "(no existing tour products yet, all will be created as new)"
    name_lines = "\n".join(stat.describe() for stat in stats)
    return (
        f"{_PROMPT_HEADER}\n\n"
        f"EXISTING TOUR PRODUCTS (already in the system):\n{product_lines}\n\n"
        f"CSV TOUR NAMES TO NORMALIZE (with booking counts):\n{name_lines}\n\n"
        f"{_PROMPT_INSTRUCTIONS}"
    )

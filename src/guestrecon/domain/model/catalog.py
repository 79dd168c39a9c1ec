"""Tour products and the persisted raw-name mappings that resolve to them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from guestrecon.domain.model.base import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from guestrecon.domain.model.enums import MappingKind


@dataclass(eq=False, kw_only=True)
class TourProduct(Entity):
    name_en: str
    name_es: str | None = None
    vendor_id: UUID | None = None
    is_active: bool = True


@dataclass(eq=False, kw_only=True)
class NameMapping(Entity):
    """Raw legacy name confirmed to mean one product (tour) or vendor."""

    kind: MappingKind
    original_name: str
    product_id: UUID | None = None
    vendor_id: UUID | None = None
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def target_id(self) -> UUID | None:
        return self.product_id or self.vendor_id

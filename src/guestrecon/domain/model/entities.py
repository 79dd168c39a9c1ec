"""Guests and vendors: the identity records imports reconcile against."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from guestrecon.domain.model.base import IdentityEntity, utcnow
from guestrecon.domain.model.enums import EntityKind, ProfileType, VendorType

DEFAULT_VENDOR_COLOR = "#6B7280"


@dataclass(eq=False, kw_only=True)
class Guest(IdentityEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.GUEST

    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    notes: str | None = None
    companion_name: str | None = None
    profile_type: ProfileType = ProfileType.GUEST
    crm_metadata: dict[str, object] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.full_name is None:
            parts = [part for part in (self.first_name, self.last_name) if part]
            self.full_name = " ".join(parts) or None

    @property
    def display_name(self) -> str:
        return self.full_name or ""

    def snapshot(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "full_name": self.full_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "legacy_ids": list(self.legacy_ids),
            "profile_type": str(self.profile_type),
            "merged_at": utcnow().isoformat(),
        }


@dataclass(eq=False, kw_only=True)
class Vendor(IdentityEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.VENDOR

    name: str
    email: str | None = None
    phone: str | None = None
    type: VendorType = VendorType.OTHER
    color_code: str = DEFAULT_VENDOR_COLOR
    is_active: bool = True
    notes: str | None = None

    @property
    def display_name(self) -> str:
        return self.name

    def snapshot(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "legacy_ids": list(self.legacy_ids),
            "type": str(self.type),
            "merged_at": utcnow().isoformat(),
        }


type IdentityRecord = Guest | Vendor

"""Base building blocks: identity and legacy identifier ownership."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from guestrecon.domain.model.enums import EntityKind


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)


@dataclass(eq=False, kw_only=True)
class LegacyIdentifier:
    """Opaque key from a prior system, owned by a guest or vendor.

    Values are stored exactly as they appeared in the source export.
    """

    owner_type: EntityKind
    owner_id: UUID
    value: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class IdentityEntity(Entity, ABC):
    """Guest or vendor: owns legacy ids and an append-only merge trail."""

    ENTITY_KIND: ClassVar[EntityKind]

    legacy_profiles: list[dict[str, object]] = field(default_factory=list, repr=False)
    created_at: datetime = field(default_factory=utcnow)
    _legacy_ids: list[LegacyIdentifier] = field(default_factory=list, repr=False, init=False)

    @property
    def kind(self) -> EntityKind:
        return self.ENTITY_KIND

    @property
    def legacy_ids(self) -> tuple[str, ...]:
        return tuple(item.value for item in self._legacy_ids)

    def add_legacy_id(self, value: str | None) -> bool:
        """Attach ``value`` unless it is blank or already present."""

        if value is None or not value.strip():
            return False
        if value in self.legacy_ids:
            return False
        self._legacy_ids.append(
            LegacyIdentifier(owner_type=self.ENTITY_KIND, owner_id=self.id, value=value)
        )
        return True

    def fold_legacy_profile(self, snapshot: dict[str, object]) -> None:
        # reassign so JSON change tracking sees the append
        self.legacy_profiles = [*self.legacy_profiles, snapshot]

    @abstractmethod
    def snapshot(self) -> dict[str, object]:
        """Field values folded into the survivor's ``legacy_profiles`` on merge."""

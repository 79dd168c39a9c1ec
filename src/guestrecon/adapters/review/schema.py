"""Pydantic models for the review payloads exchanged with the staff UI."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from guestrecon.domain.model import EntityKind, ImportDomain, ProfileType
from guestrecon.domain.reconciliation import GroupAction, ImportAction


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ReviewBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MatchPayload(ReviewBaseModel):
    id: UUID
    name: str | None = None
    legacy_ids: list[str] = Field(default_factory=list, alias="legacyIds")
    email: str | None = None
    phone: str | None = None


class ImportRowPayload(ReviewBaseModel):
    csv: dict[str, Any]
    match: MatchPayload | None = None
    action: ImportAction
    reason: str = ""
    user_date: date | None = Field(default=None, alias="userDate")
    product_id: UUID | None = Field(default=None, alias="productId")
    inferred_profile_type: ProfileType | None = Field(default=None, alias="inferredProfileType")
    multi_companion: bool | None = Field(default=None, alias="multiCompanion")

    _normalize_user_date = field_validator("user_date", mode="before")(_blank_to_none)


class SummaryPayload(ReviewBaseModel):
    total: int = 0
    create: int = 0
    update: int = 0
    conflict: int = 0
    skip: int = 0
    invalid_date: int = 0


class AnalysisPayload(ReviewBaseModel):
    domain: ImportDomain
    summary: SummaryPayload
    analysis: list[ImportRowPayload]


class ExecutionRequest(ReviewBaseModel):
    domain: ImportDomain
    rows: list[ImportRowPayload]


class CommitResultPayload(ReviewBaseModel):
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class ExecutionResponse(ReviewBaseModel):
    success: bool
    result: CommitResultPayload


class GroupDecisionPayload(ReviewBaseModel):
    """One group of the assistant's answer to the tour-name prompt."""

    group_id: int = Field(alias="groupId")
    csv_keys: list[str] = Field(default_factory=list, alias="csvKeys")
    csv_names: list[str] = Field(default_factory=list, alias="csvNames")
    action: GroupAction
    product_id: UUID | None = Field(default=None, alias="productId")
    name_en: str | None = None
    name_es: str | None = None
    vendor_id: UUID | None = Field(default=None, alias="vendorId")

    _normalize_blanks = field_validator(
        "product_id", "name_en", "name_es", "vendor_id", mode="before"
    )(_blank_to_none)

    @field_validator("action", mode="before")
    @classmethod
    def _lower_action(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class VendorGroupMemberPayload(ReviewBaseModel):
    id: UUID
    name: str | None = None
    is_suggested_master: bool = Field(default=False, alias="isSuggestedMaster")


class VendorGroupPayload(ReviewBaseModel):
    """One group of the assistant's answer to the vendor prompt."""

    group_id: int = Field(alias="groupId")
    reason: str | None = None
    vendors: list[VendorGroupMemberPayload] = Field(default_factory=list)

    _normalize_reason = field_validator("reason", mode="before")(_blank_to_none)


class VendorMergePayload(ReviewBaseModel):
    master_id: UUID = Field(alias="masterId")
    duplicate_ids: list[UUID] = Field(default_factory=list, alias="duplicateIds")


class VendorMergeRequest(ReviewBaseModel):
    """Merge groups already resolved to a master by a reviewer."""

    merges: list[VendorMergePayload]


class IdentityPayload(ReviewBaseModel):
    id: UUID
    name: str | None = None
    email: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")


class ClusterMemberPayload(IdentityPayload):
    dependents: dict[str, int] = Field(default_factory=dict)
    weight: int = 0


class DuplicateClusterPayload(ReviewBaseModel):
    kind: EntityKind
    fingerprint: str
    email: str | None = None
    suggested_primary_id: UUID = Field(alias="suggestedPrimaryId")
    members: list[ClusterMemberPayload]


class OrphanPayload(ReviewBaseModel):
    reservation_id: UUID = Field(alias="reservationId")
    pms_id: str = Field(alias="pmsId")
    pms_guest_name: str | None = Field(default=None, alias="pmsGuestName")
    room: str | None = None
    arrival: date | None = None
    guest_id: UUID | None = Field(default=None, alias="guestId")
    linked_full_name: str | None = Field(default=None, alias="linkedFullName")
    suggestions: list[IdentityPayload] = Field(default_factory=list)

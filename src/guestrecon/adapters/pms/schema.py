"""Pydantic model of one ``G_ROOM`` node of the PMS reservation export."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PmsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PmsRoomPayload(PmsBaseModel):
    """Text of the leaf children of a ``G_ROOM`` element, blanks as ``None``."""

    resv_name_id: str | None = Field(default=None, alias="RESV_NAME_ID")
    full_name: str | None = Field(default=None, alias="FULL_NAME")
    status: str | None = Field(default=None, alias="RESV_STATUS")
    short_status: str | None = Field(default=None, alias="SHORT_RESV_STATUS")
    room: str | None = Field(default=None, alias="ROOM")
    arrival: str | None = Field(default=None, alias="ARRIVAL")
    departure: str | None = Field(default=None, alias="DEPARTURE")
    persons: str | None = Field(default=None, alias="PERSONS")
    nights: str | None = Field(default=None, alias="NIGHTS")
    room_count: str | None = Field(default=None, alias="NO_OF_ROOMS")
    room_category: str | None = Field(default=None, alias="ROOM_CATEGORY_LABEL")
    rate_code: str | None = Field(default=None, alias="RATE_CODE")
    guarantee_code: str | None = Field(default=None, alias="GUARANTEE_CODE")
    group_name: str | None = Field(default=None, alias="GROUP_NAME")
    travel_agent: str | None = Field(default=None, alias="TRAVEL_AGENT_NAME")
    company: str | None = Field(default=None, alias="COMPANY_NAME")
    share_amount: str | None = Field(default=None, alias="SHARE_AMOUNT")

    _normalize_blanks = field_validator("*", mode="before")(_blank_to_none)

"""Translate PMS ``G_ROOM`` payloads into canonical reservation rows."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from guestrecon.domain.canonicalization import (
    ReservationRow,
    parse_amount,
    parse_count,
    parse_pms_date,
    parse_pms_name,
    parse_xml_nodes,
)
from guestrecon.domain.canonicalization.defaults import (
    DEFAULT_PMS_PERSONS,
    DEFAULT_PMS_SHORT_STATUS,
    DEFAULT_PMS_STATUS,
)
from guestrecon.domain.canonicalization.values import parse_optional_int

from .schema import PmsRoomPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

ROOM_TAG = "G_ROOM"

log = getLogger(__name__)


def translate_room(payload: PmsRoomPayload, *, position: int) -> ReservationRow:
    parts, full_name = parse_pms_name(payload.full_name)
    return ReservationRow(
        line_number=position,
        legacy_id=payload.resv_name_id,
        status=payload.status or DEFAULT_PMS_STATUS,
        short_status=payload.short_status or DEFAULT_PMS_SHORT_STATUS,
        room=payload.room,
        guest_name=full_name,
        first_name=parts.first_name,
        last_name=parts.last_name,
        pms_guest_name=payload.full_name,
        arrival=parse_pms_date(payload.arrival),
        departure=parse_pms_date(payload.departure),
        persons=parse_count(payload.persons, DEFAULT_PMS_PERSONS),
        nights=parse_optional_int(payload.nights),
        room_count=parse_optional_int(payload.room_count),
        room_category=payload.room_category,
        rate_code=payload.rate_code,
        guarantee_code=payload.guarantee_code,
        group_name=payload.group_name,
        travel_agent=payload.travel_agent,
        company=payload.company,
        share_amount=parse_amount(payload.share_amount),
    )


def translate_nodes(nodes: list[Mapping[str, str]]) -> list[ReservationRow]:
    return [
        translate_room(PmsRoomPayload.model_validate(node), position=position)
        for position, node in enumerate(nodes, start=1)
    ]


def parse_pms_feed(text: str) -> list[ReservationRow]:
    """Every ``G_ROOM`` element of the export, at any depth, as a reservation row.

    Malformed XML raises ``SourceFormatError``; a feed without rooms yields ``[]``.
    """

    rows = translate_nodes(parse_xml_nodes(text, ROOM_TAG))
    log.debug("Parsed %s %s nodes from PMS feed", len(rows), ROOM_TAG)
    return rows

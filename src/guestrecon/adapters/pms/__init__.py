"""Adapter for the property management system (PMS) reservation export."""

from __future__ import annotations

from .schema import PmsRoomPayload
from .translator import ROOM_TAG, parse_pms_feed, translate_nodes, translate_room

__all__ = [
    "ROOM_TAG",
    "PmsRoomPayload",
    "parse_pms_feed",
    "translate_nodes",
    "translate_room",
]

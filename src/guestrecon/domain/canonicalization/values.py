"""Status vocabularies, counts, amounts and flags from free-text cells."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Final

from guestrecon.domain.model import BookingStatus, VendorType

from .defaults import DEFAULT_COLOR_CODE, DEFAULT_PRICE, DEFAULT_STATUS, DEFAULT_VENDOR_TYPE

STATUS_SYNONYMS: Final[dict[str, BookingStatus]] = {
    "pendiente": BookingStatus.PENDING,
    "pending": BookingStatus.PENDING,
    "por confirmar": BookingStatus.PENDING,
    "confirmado": BookingStatus.CONFIRMED,
    "confirmada": BookingStatus.CONFIRMED,
    "confirmed": BookingStatus.CONFIRMED,
    "realizado": BookingStatus.COMPLETED,
    "realizada": BookingStatus.COMPLETED,
    "completado": BookingStatus.COMPLETED,
    "completada": BookingStatus.COMPLETED,
    "completed": BookingStatus.COMPLETED,
    "done": BookingStatus.COMPLETED,
    "cancelado": BookingStatus.CANCELLED,
    "cancelada": BookingStatus.CANCELLED,
    "cancelled": BookingStatus.CANCELLED,
    "canceled": BookingStatus.CANCELLED,
    "no_show": BookingStatus.NO_SHOW,
    "no show": BookingStatus.NO_SHOW,
    "noshow": BookingStatus.NO_SHOW,
    "no-show": BookingStatus.NO_SHOW,
}

VENDOR_TYPE_SYNONYMS: Final[dict[str, VendorType]] = {
    "transfer": VendorType.TRANSFER,
    "transfers": VendorType.TRANSFER,
    "transportation": VendorType.TRANSFER,
    "traslado": VendorType.TRANSFER,
    "traslados": VendorType.TRANSFER,
    "tour": VendorType.TOUR,
    "tours": VendorType.TOUR,
    "tour operador": VendorType.TOUR,
    "tour_operator": VendorType.TOUR,
    "actividad": VendorType.TOUR,
    "actividades": VendorType.TOUR,
    "spa": VendorType.SPA,
    "restaurant": VendorType.RESTAURANT,
    "restaurante": VendorType.RESTAURANT,
}

_TRUE_FLAGS: Final[frozenset[str]] = frozenset({"true", "1", "yes", "si", "sí", "s", "y"})
_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_AMOUNT_NOISE = re.compile(r"[^\d.,\-]")


def normalize_status(value: str | None) -> BookingStatus:
    if not value:
        return DEFAULT_STATUS
    return STATUS_SYNONYMS.get(" ".join(value.lower().split()), DEFAULT_STATUS)


def normalize_vendor_type(value: str | None) -> VendorType:
    if not value:
        return DEFAULT_VENDOR_TYPE
    return VENDOR_TYPE_SYNONYMS.get(" ".join(value.lower().split()), DEFAULT_VENDOR_TYPE)


def normalize_color(value: str | None) -> str:
    if value and _COLOR.match(value.strip()):
        return value.strip()
    return DEFAULT_COLOR_CODE


def parse_count(value: str | None, default: int) -> int:
    """Positive whole number or ``default``; ``"2.0"`` reads as 2."""

    if not value:
        return default
    try:
        number = int(Decimal(value.strip().replace(",", ".")))
    except (InvalidOperation, ValueError, OverflowError):
        return default
    return number if number > 0 else default


def parse_optional_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(Decimal(value.strip().replace(",", "")))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def parse_amount(value: str | None) -> Decimal | None:
    """Money cell such as ``"$1,250.50"``; unreadable input yields ``DEFAULT_PRICE``."""

    if not value:
        return DEFAULT_PRICE
    cleaned = _AMOUNT_NOISE.sub("", value)
    if "," in cleaned and "." in cleaned:
        cleaned = cleaned.replace(",", "")
    elif cleaned.count(",") == 1 and len(cleaned.split(",")[1]) == 2:
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return DEFAULT_PRICE
    if not amount.is_finite():
        return DEFAULT_PRICE
    return amount


def parse_bool(value: str | None, *, default: bool) -> bool:
    if not value:
        return default
    return value.strip().lower() in _TRUE_FLAGS


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None

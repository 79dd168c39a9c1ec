"""Person-name handling: splitting, companions, PMS names, fingerprints."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from guestrecon.domain.model import ProfileType

from .defaults import DEFAULT_PROFILE_TYPE

COMPANION_SEPARATOR: Final[str] = " y "
_FINGERPRINT_STRIP = re.compile(r"[\W_]+")

_MUSICIAN_PREFIXES: Final[tuple[str, ...]] = ("musicos", "musico y")
_STAFF_KEYWORDS: Final[tuple[str, ...]] = (
    "chef ",
    "masajista",
    "fotografo",
    "fotografa",
    "maquillista",
    "violinista",
    "guitarrista",
    "musico ",
)
_VISITOR_KEYWORDS: Final[tuple[str, ...]] = (
    "site inspection",
    "famtrip",
    "fam trip",
    "press trip",
    "inspeccion agencia",
    "inspeccion municipio",
    "agente",
    "biondi travel",
    "panama journeys",
    "panama trails",
    "ogaya travel",
)
_ARTIST_KEYWORDS: Final[tuple[str, ...]] = ("artesano",)


@dataclass(frozen=True, slots=True)
class NameParts:
    first_name: str | None
    last_name: str | None


@dataclass(frozen=True, slots=True)
class CompanionSplit:
    primary_name: str
    companion_name: str | None
    multi_companion: bool


def split_full_name(name: str | None) -> NameParts:
    """Last token is the surname, everything before it the given names."""

    if not name or not name.strip():
        return NameParts(first_name=None, last_name=None)
    parts = name.split()
    if len(parts) == 1:
        return NameParts(first_name=parts[0], last_name=None)
    return NameParts(first_name=" ".join(parts[:-1]), last_name=parts[-1])


def split_companion(name: str) -> CompanionSplit:
    """``"Ana Ruiz y Luis Mora"`` is booked under Ana with Luis as companion."""

    pieces = [piece.strip() for piece in name.split(COMPANION_SEPARATOR)]
    if len(pieces) == 1:
        return CompanionSplit(primary_name=name.strip(), companion_name=None, multi_companion=False)
    companions = [piece for piece in pieces[1:] if piece]
    return CompanionSplit(
        primary_name=pieces[0],
        companion_name=companions[0] if companions else None,
        multi_companion=len(companions) > 1,
    )


def parse_pms_name(value: str | None) -> tuple[NameParts, str]:
    """PMS names are ``"LAST, FIRST"``; returns the parts and ``"FIRST LAST"``."""

    if not value or not value.strip():
        return NameParts(first_name=None, last_name=None), ""
    last, _, first = (part.strip() for part in value.partition(","))
    full = f"{first} {last}" if first else last
    return NameParts(first_name=first or None, last_name=last or None), full


def pms_last_name(value: str | None) -> str | None:
    parts, _full = parse_pms_name(value)
    return parts.last_name


def infer_profile_type(name: str) -> ProfileType:
    """Tag non-guest profiles that the legacy sheet kept in the guest list."""

    lowered = name.strip().lower()
    inferred = DEFAULT_PROFILE_TYPE
    if lowered.startswith(_MUSICIAN_PREFIXES):
        inferred = ProfileType.MUSICIAN
    if any(keyword in lowered for keyword in _STAFF_KEYWORDS):
        inferred = ProfileType.STAFF
    if any(keyword in lowered for keyword in _VISITOR_KEYWORDS):
        inferred = ProfileType.VISITOR
    if any(keyword in lowered for keyword in _ARTIST_KEYWORDS):
        inferred = ProfileType.ARTIST
    return inferred


def fingerprint(name: str | None) -> str:
    """Lower-case name with whitespace and punctuation removed."""

    if not name:
        return ""
    return _FINGERPRINT_STRIP.sub("", name.lower())

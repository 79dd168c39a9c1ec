"""Upsert reservations delivered by the property management system (PMS)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from guestrecon.domain.commit import RowOutcome
from guestrecon.domain.history import apply_values
from guestrecon.domain.model import Guest, ImportDomain, Reservation
from guestrecon.domain.permissions import Permission, authorize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from guestrecon.domain.canonicalization import ReservationRow
    from guestrecon.domain.permissions import Actor
    from guestrecon.domain.ports import ReconciliationRepositories, UnitOfWorkFactory

log = logging.getLogger(__name__)

NO_ROOMS_ERROR: Final[str] = "No G_ROOM records found in XML"
MISSING_ID_ERROR: Final[str] = "Skipped record with no RESV_NAME_ID"

_RESERVATION_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "pms_guest_name",
        "status",
        "short_status",
        "room",
        "arrival",
        "departure",
        "persons",
        "nights",
        "room_count",
        "room_category",
        "rate_code",
        "guarantee_code",
        "group_name",
        "travel_agent",
        "company",
        "share_amount",
        "guest_id",
    }
)

# the feed is the source of truth for room assignment; a blank ROOM unassigns
_CLEARABLE_FIELDS: Final[frozenset[str]] = frozenset({"room"})


@dataclass(slots=True, kw_only=True)
class PmsImportResult:
    total: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)


def import_reservations(
    rows: Sequence[ReservationRow],
    *,
    actor: Actor,
    unit_of_work_factory: UnitOfWorkFactory,
) -> PmsImportResult:
    authorize(actor, Permission.RESERVATIONS_IMPORT)
    result = PmsImportResult(total=len(rows))
    if not rows:
        result.errors.append(NO_ROOMS_ERROR)
        return result

    for row in rows:
        if row.legacy_key is None:
            result.errors.append(MISSING_ID_ERROR)
            continue
        try:
            with unit_of_work_factory() as uow:
                outcome = upsert_reservation(row, uow.repositories, changed_by=actor.name)
                uow.commit()
        except Exception as exc:  # noqa: BLE001
            message = f"RESV {row.legacy_key}: {exc}"
            log.warning("PMS reservation failed: %s", message)
            result.errors.append(message)
            continue
        match outcome:
            case RowOutcome.CREATED:
                result.created += 1
            case RowOutcome.UPDATED:
                result.updated += 1
            case RowOutcome.UNCHANGED:
                result.unchanged += 1

    log.info(
        "PMS feed: total=%s created=%s updated=%s unchanged=%s errors=%s",
        result.total,
        result.created,
        result.updated,
        result.unchanged,
        len(result.errors),
    )
    return result


def _guest_for(row: ReservationRow, repositories: ReconciliationRepositories) -> Guest:
    """Exact full-name match, else a new guest from the PMS name."""

    guests = repositories.guests
    existing = guests.get_by_full_name(row.guest_name) if row.guest_name else None
    if existing is not None:
        return existing
    guest = Guest(
        full_name=row.guest_name or None,
        first_name=row.first_name,
        last_name=row.last_name,
    )
    guests.add(guest)
    return guest


def upsert_reservation(
    row: ReservationRow,
    repositories: ReconciliationRepositories,
    *,
    changed_by: str | None = None,
) -> RowOutcome:
    pms_id = row.legacy_key
    if pms_id is None:
        raise ValueError(MISSING_ID_ERROR)
    reservations = repositories.reservations
    existing = reservations.get_by_pms_id(pms_id)
    if existing is not None and existing.status == row.status and existing.room == row.room:
        return RowOutcome.UNCHANGED

    values: dict[str, object] = {
        "pms_guest_name": row.pms_guest_name,
        "status": row.status,
        "short_status": row.short_status,
        "room": row.room,
        "arrival": row.arrival,
        "departure": row.departure,
        "persons": row.persons,
        "nights": row.nights,
        "room_count": row.room_count,
        "room_category": row.room_category,
        "rate_code": row.rate_code,
        "guarantee_code": row.guarantee_code,
        "group_name": row.group_name,
        "travel_agent": row.travel_agent,
        "company": row.company,
        "share_amount": row.share_amount,
    }
    if existing is None:
        guest = _guest_for(row, repositories)
        reservations.add(
            Reservation(
                pms_id=pms_id,
                guest_id=guest.id,
                **{name: value for name, value in values.items() if value is not None},
            )
        )
        return RowOutcome.CREATED

    # a reservation relinked by hand keeps its guest
    if existing.guest_id is None:
        values["guest_id"] = _guest_for(row, repositories).id
    changed = apply_values(
        existing,
        values,
        allowed=_RESERVATION_FIELDS,
        entity_type=ImportDomain.RESERVATION,
        changed_by=changed_by,
        history=repositories.history,
        clearable=_CLEARABLE_FIELDS,
    )
    return RowOutcome.UPDATED if changed else RowOutcome.UNCHANGED

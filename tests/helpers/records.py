"""Builders for guests, vendors and export text used across tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from guestrecon.domain.model import Guest, Vendor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session

    from guestrecon.domain.model import Entity


def make_guest(
    full_name: str = "Ana Ruiz",
    *,
    legacy_ids: Sequence[str] = (),
    email: str | None = None,
    phone: str | None = None,
) -> Guest:
    first, _, last = full_name.rpartition(" ")
    guest = Guest(
        full_name=full_name,
        first_name=first or last,
        last_name=last if first else None,
        email=email,
        phone=phone,
    )
    for value in legacy_ids:
        guest.add_legacy_id(value)
    return guest


def make_vendor(
    name: str = "Canopy Tours",
    *,
    legacy_ids: Sequence[str] = (),
    email: str | None = None,
) -> Vendor:
    vendor = Vendor(name=name, email=email)
    for value in legacy_ids:
        vendor.add_legacy_id(value)
    return vendor


def persist(session: Session, *entities: Entity) -> None:
    """Insert ``entities`` one flush at a time so creation order is stable."""

    for entity in entities:
        session.add(entity)
        session.flush()
    session.commit()


def csv_text(header: Sequence[str], *rows: Sequence[str]) -> str:
    lines = [",".join(header)]
    lines.extend(",".join(row) for row in rows)
    return "\n".join(lines) + "\n"


def pms_feed(*rooms: dict[str, str]) -> str:
    """Minimal PMS export wrapping each mapping in a ``G_ROOM`` element."""

    nodes = []
    for room in rooms:
        children = "".join(f"<{tag}>{value}</{tag}>" for tag, value in room.items())
        nodes.append(f"<G_ROOM>{children}</G_ROOM>")
    return f"<RESERVATIONS><LIST_G_ROOM>{''.join(nodes)}</LIST_G_ROOM></RESERVATIONS>"

"""Roles, permissions and per-role update allow-lists.

Everything here is declarative. Callers check permissions once, before any row
of a batch is touched, and build updates only from the allow-listed fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from guestrecon.domain.errors import PermissionDeniedError
from guestrecon.domain.model import ImportDomain


class Role(StrEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    FRONT_DESK = "front_desk"
    CONCIERGE = "concierge"
    VENDOR = "vendor"


class Permission(StrEnum):
    IMPORT_COMMIT = "import_commit"
    GUESTS_MERGE = "guests_merge"
    GUESTS_DELETE = "guests_delete"
    RESERVATIONS_IMPORT = "reservations_import"
    TOURS_NORMALIZE = "tours_normalize"
    VENDORS_NORMALIZE = "vendors_normalize"


@dataclass(frozen=True, slots=True)
class Actor:
    """Already-authenticated caller."""

    name: str
    role: Role


ROLE_PERMISSIONS: Final[dict[Role, frozenset[Permission]]] = {
    Role.ADMIN: frozenset(Permission),
    Role.MANAGER: frozenset(Permission),
    Role.FRONT_DESK: frozenset({Permission.IMPORT_COMMIT, Permission.RESERVATIONS_IMPORT}),
    Role.CONCIERGE: frozenset({Permission.IMPORT_COMMIT}),
    Role.VENDOR: frozenset({Permission.IMPORT_COMMIT}),
}

_GUEST_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "full_name",
        "first_name",
        "last_name",
        "email",
        "phone",
        "nationality",
        "notes",
        "companion_name",
        "profile_type",
        "crm_metadata",
    }
)
_VENDOR_FIELDS: Final[frozenset[str]] = frozenset(
    {"name", "email", "phone", "type", "color_code", "is_active", "notes"}
)
_TRANSFER_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "transfer_date",
        "transfer_time",
        "guest_id",
        "vendor_id",
        "legacy_vendor_id",
        "origin",
        "destination",
        "num_passengers",
        "guest_status",
        "vendor_status",
        "billed_date",
        "paid_date",
        "price",
        "notes",
    }
)
_TOUR_BOOKING_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "activity_date",
        "start_time",
        "guest_id",
        "product_id",
        "legacy_vendor_id",
        "num_guests",
        "guest_status",
        "vendor_status",
        "billed_date",
        "paid_date",
        "total_price",
        "special_requests",
    }
)
_SPECIAL_REQUEST_FIELDS: Final[frozenset[str]] = frozenset(
    {"guest_id", "request_date", "request", "status", "notes"}
)

_FULL_ACCESS: Final[dict[ImportDomain, frozenset[str]]] = {
    ImportDomain.GUEST: _GUEST_FIELDS,
    ImportDomain.VENDOR: _VENDOR_FIELDS,
    ImportDomain.TRANSFER: _TRANSFER_FIELDS,
    ImportDomain.TOUR_BOOKING: _TOUR_BOOKING_FIELDS,
    ImportDomain.SPECIAL_REQUEST: _SPECIAL_REQUEST_FIELDS,
}

# staff may correct operational fields but not reassign identities
_STAFF_ACCESS: Final[dict[ImportDomain, frozenset[str]]] = {
    ImportDomain.GUEST: frozenset({"email", "phone", "nationality", "notes", "companion_name"}),
    ImportDomain.VENDOR: frozenset({"email", "phone", "notes"}),
    ImportDomain.TRANSFER: frozenset(
        {
            "transfer_date",
            "transfer_time",
            "origin",
            "destination",
            "num_passengers",
            "guest_status",
            "vendor_status",
            "notes",
        }
    ),
    ImportDomain.TOUR_BOOKING: frozenset(
        {
            "activity_date",
            "start_time",
            "num_guests",
            "guest_status",
            "vendor_status",
            "special_requests",
        }
    ),
    ImportDomain.SPECIAL_REQUEST: frozenset({"request_date", "request", "status", "notes"}),
}

ROLE_UPDATE_FIELDS: Final[dict[Role, dict[ImportDomain, frozenset[str]]]] = {
    Role.ADMIN: _FULL_ACCESS,
    Role.MANAGER: _FULL_ACCESS,
    Role.FRONT_DESK: _STAFF_ACCESS,
    Role.CONCIERGE: _STAFF_ACCESS,
    Role.VENDOR: {
        ImportDomain.TRANSFER: frozenset({"vendor_status"}),
        ImportDomain.TOUR_BOOKING: frozenset({"vendor_status"}),
    },
}

_ALL_DOMAINS: Final[frozenset[ImportDomain]] = frozenset(_FULL_ACCESS)

# vendors confirm existing bookings only
ROLE_CREATE_DOMAINS: Final[dict[Role, frozenset[ImportDomain]]] = {
    Role.ADMIN: _ALL_DOMAINS,
    Role.MANAGER: _ALL_DOMAINS,
    Role.FRONT_DESK: _ALL_DOMAINS,
    Role.CONCIERGE: _ALL_DOMAINS,
    Role.VENDOR: frozenset(),
}


def has_permission(actor: Actor, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(actor.role, frozenset())


def authorize(actor: Actor, permission: Permission) -> None:
    """Raise ``PermissionDeniedError`` unless ``actor`` holds ``permission``."""

    if not has_permission(actor, permission):
        raise PermissionDeniedError(
            f"Role {actor.role.value!r} of {actor.name!r} lacks {permission.value!r}"
        )


def update_fields(actor: Actor, domain: ImportDomain) -> frozenset[str]:
    return ROLE_UPDATE_FIELDS.get(actor.role, {}).get(domain, frozenset())


def may_create(actor: Actor, domain: ImportDomain) -> bool:
    return domain in ROLE_CREATE_DOMAINS.get(actor.role, frozenset())

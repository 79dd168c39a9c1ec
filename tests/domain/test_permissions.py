from __future__ import annotations

import uuid

import pytest

from guestrecon.domain.canonicalization import GuestRow, TransferRow
from guestrecon.domain.commit import check_commit_rights
from guestrecon.domain.errors import PermissionDeniedError
from guestrecon.domain.model import ImportDomain
from guestrecon.domain.permissions import (
    Actor,
    Permission,
    Role,
    authorize,
    has_permission,
    may_create,
    update_fields,
)
from guestrecon.domain.reconciliation import ImportAction, ImportRow, MatchCandidate


def _created_guest() -> ImportRow:
    row = GuestRow(line_number=2, legacy_id="G-1", full_name="Ana Ruiz", first_name="Ana")
    return ImportRow(row=row, action=ImportAction.CREATE, reason="No existing match")


def _updated_transfer() -> ImportRow:
    row = TransferRow(line_number=3, legacy_id="T-1")
    return ImportRow(
        row=row,
        action=ImportAction.UPDATE,
        reason="Legacy ID match",
        match=MatchCandidate(id=uuid.uuid4(), legacy_ids=("T-1",)),
    )


@pytest.mark.parametrize(
    ("role", "permission", "expected"),
    [
        (Role.ADMIN, Permission.GUESTS_MERGE, True),
        (Role.MANAGER, Permission.TOURS_NORMALIZE, True),
        (Role.MANAGER, Permission.VENDORS_NORMALIZE, True),
        (Role.FRONT_DESK, Permission.VENDORS_NORMALIZE, False),
        (Role.FRONT_DESK, Permission.RESERVATIONS_IMPORT, True),
        (Role.FRONT_DESK, Permission.GUESTS_DELETE, False),
        (Role.CONCIERGE, Permission.RESERVATIONS_IMPORT, False),
        (Role.VENDOR, Permission.IMPORT_COMMIT, True),
        (Role.VENDOR, Permission.GUESTS_MERGE, False),
    ],
)
def test_role_permissions(role: Role, permission: Permission, *, expected: bool) -> None:
    assert has_permission(Actor(name="x", role=role), permission) is expected


def test_authorize_names_the_missing_permission() -> None:
    with pytest.raises(PermissionDeniedError, match="guests_merge"):
        authorize(Actor(name="desk", role=Role.FRONT_DESK), Permission.GUESTS_MERGE)


def test_staff_cannot_rewrite_identities() -> None:
    desk = Actor(name="desk", role=Role.FRONT_DESK)

    assert "email" in update_fields(desk, ImportDomain.GUEST)
    assert "full_name" not in update_fields(desk, ImportDomain.GUEST)
    assert "guest_id" not in update_fields(desk, ImportDomain.TRANSFER)


def test_vendor_role_only_touches_vendor_status() -> None:
    vendor = Actor(name="canopy", role=Role.VENDOR)

    assert update_fields(vendor, ImportDomain.TRANSFER) == frozenset({"vendor_status"})
    assert update_fields(vendor, ImportDomain.GUEST) == frozenset()
    assert may_create(vendor, ImportDomain.TRANSFER) is False


def test_commit_rights_reject_the_whole_batch_up_front() -> None:
    vendor = Actor(name="canopy", role=Role.VENDOR)

    check_commit_rights([_updated_transfer()], vendor)
    with pytest.raises(PermissionDeniedError, match="may not create guest"):
        check_commit_rights([_updated_transfer(), _created_guest()], vendor)


def test_commit_rights_ignore_rows_that_will_not_be_written() -> None:
    vendor = Actor(name="canopy", role=Role.VENDOR)
    skipped = _created_guest()
    skipped.override(ImportAction.SKIP)

    check_commit_rights([skipped], vendor)

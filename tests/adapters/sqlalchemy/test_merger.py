"""Merge, delete and relink against every table that references a guest or vendor."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select

from guestrecon.adapters.sqlalchemy import EntityMerger, SqlAlchemyHistoryRepository
from guestrecon.adapters.sqlalchemy.mappings import message_table
from guestrecon.app import delete_entity, link_reference, merge_entities
from guestrecon.domain.errors import EntityNotFoundError, MergeError, PermissionDeniedError
from guestrecon.domain.model import (
    Conversation,
    EntityKind,
    EntityMerge,
    MappingKind,
    Message,
    NameMapping,
    Order,
    OtherHotelBooking,
    Reservation,
    RomanticDinner,
    SpecialRequest,
    TourBooking,
    TourProduct,
    Transfer,
    VendorUser,
)
from guestrecon.domain.permissions import Actor, Role
from tests.helpers.records import make_guest, make_vendor, persist

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from sqlalchemy.orm import Session

    from guestrecon.adapters.sqlalchemy.unit_of_work import SqlAlchemyReconciliationUnitOfWork
    from guestrecon.domain.model import Guest

    UnitOfWorkFactory = Callable[[], SqlAlchemyReconciliationUnitOfWork]

MERGE_STEPS = (
    "_snapshot",
    "_append_legacy_profile",
    "_accumulate_legacy_ids",
    "_relink_references",
    "_relink_message_senders",
    "_delete_secondary",
)


def _seed_guest_pair(session: Session) -> tuple[Guest, Guest]:
    primary = make_guest("Maria Lopez", legacy_ids=["G-1"], email="maria@example.com")
    secondary = make_guest("maria lopez", legacy_ids=["G-2"])
    persist(session, primary, secondary)
    conversation = Conversation(guest_id=secondary.id, subject="Airport pickup")
    persist(
        session,
        Transfer(legacy_id="T-1", guest_id=secondary.id),
        TourBooking(legacy_id="B-1", guest_id=secondary.id),
        SpecialRequest(legacy_id="S-1", guest_id=secondary.id),
        RomanticDinner(guest_id=secondary.id, dinner_date=date(2024, 3, 5)),
        OtherHotelBooking(guest_id=secondary.id, hotel_name="Casa Azul"),
        Reservation(pms_id="R-1", guest_id=secondary.id, pms_guest_name="LOPEZ, MARIA"),
        conversation,
        Order(guest_id=secondary.id, description="Cake"),
    )
    persist(
        session,
        Message(
            conversation_id=conversation.id,
            sender_type=EntityKind.GUEST,
            sender_id=secondary.id,
            body="Landing at 3pm",
        ),
        # same id under another sender type is not a guest reference
        Message(
            conversation_id=conversation.id,
            sender_type=EntityKind.VENDOR,
            sender_id=secondary.id,
            body="Driver assigned",
        ),
    )
    return primary, secondary


def _references(factory: UnitOfWorkFactory, kind: EntityKind, entity_id: UUID) -> dict[str, int]:
    with factory() as uow:
        counts = dict(uow.repositories.duplicates.dependent_counts(kind, [entity_id]))
        senders = uow.session.execute(
            select(func.count())
            .select_from(message_table)
            .where(message_table.c.sender_type == kind)
            .where(message_table.c.sender_id == entity_id)
        ).scalar_one()
    found = dict(counts.get(entity_id, {}))
    if senders:
        found["message"] = senders
    return found


def _merges(factory: UnitOfWorkFactory) -> list[EntityMerge]:
    with factory() as uow:
        return list(uow.session.execute(select(EntityMerge)).scalars())


ALL_GUEST_REFERENCES = {
    "transfer": 1,
    "tour_booking": 1,
    "special_request": 1,
    "romantic_dinner": 1,
    "other_hotel_booking": 1,
    "reservation": 1,
    "conversation": 1,
    "customer_order": 1,
    "message": 1,
}


def test_guest_merge_relinks_every_reference(
    sqlite_session: Session, sqlite_unit_of_work: UnitOfWorkFactory, admin: Actor
) -> None:
    primary, secondary = _seed_guest_pair(sqlite_session)

    record = merge_entities(
        EntityKind.GUEST,
        primary.id,
        secondary.id,
        actor=admin,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert record.relinked == 9
    assert _references(sqlite_unit_of_work, EntityKind.GUEST, secondary.id) == {}
    assert _references(sqlite_unit_of_work, EntityKind.GUEST, primary.id) == ALL_GUEST_REFERENCES
    assert _references(sqlite_unit_of_work, EntityKind.VENDOR, secondary.id) == {"message": 1}
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.guests.get(secondary.id) is None
        survivor = uow.repositories.guests.get(primary.id)
        assert survivor is not None
        assert survivor.legacy_ids == ("G-1", "G-2")
        assert survivor.email == "maria@example.com"
        (profile,) = survivor.legacy_profiles
        assert profile["full_name"] == "maria lopez"
        assert profile["legacy_ids"] == ["G-2"]
        assert uow.repositories.guests.get_by_legacy_id("G-2") is not None
    (stored,) = _merges(sqlite_unit_of_work)
    assert (stored.source_id, stored.target_id) == (secondary.id, primary.id)
    assert stored.created_by == "tester"


def test_vendor_merge_relinks_vendor_references(
    sqlite_session: Session, sqlite_unit_of_work: UnitOfWorkFactory, admin: Actor
) -> None:
    primary = make_vendor("Canopy Tours", legacy_ids=["V-1"])
    secondary = make_vendor("Canopy", legacy_ids=["V-2"])
    persist(sqlite_session, primary, secondary)
    persist(
        sqlite_session,
        Transfer(vendor_id=secondary.id),
        TourProduct(name_en="Zipline", vendor_id=secondary.id),
        VendorUser(vendor_id=secondary.id, email="ops@canopy.example"),
        NameMapping(kind=MappingKind.VENDOR, original_name="canopy", vendor_id=secondary.id),
    )

    record = merge_entities(
        EntityKind.VENDOR,
        primary.id,
        secondary.id,
        actor=admin,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert record.relinked == 4
    assert _references(sqlite_unit_of_work, EntityKind.VENDOR, primary.id) == {
        "transfer": 1,
        "tour_product": 1,
        "vendor_user": 1,
        "name_mapping": 1,
    }
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.vendors.get(secondary.id) is None
        survivor = uow.repositories.vendors.get_by_legacy_id("V-2")
        assert survivor is not None
        assert survivor.id == primary.id


@pytest.mark.parametrize("step", MERGE_STEPS)
def test_failed_merge_step_rolls_back_everything(
    step: str,
    monkeypatch: pytest.MonkeyPatch,
    sqlite_session: Session,
    sqlite_unit_of_work: UnitOfWorkFactory,
    admin: Actor,
) -> None:
    primary, secondary = _seed_guest_pair(sqlite_session)
    original = getattr(EntityMerger, step)

    def exploding(self: EntityMerger, *args: object) -> object:
        original(self, *args)
        raise RuntimeError(f"injected failure in {step}")

    monkeypatch.setattr(EntityMerger, step, exploding)

    with pytest.raises(MergeError, match="injected failure"):
        merge_entities(
            EntityKind.GUEST,
            primary.id,
            secondary.id,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )

    assert _references(sqlite_unit_of_work, EntityKind.GUEST, primary.id) == {}
    assert _references(sqlite_unit_of_work, EntityKind.GUEST, secondary.id) == (
        ALL_GUEST_REFERENCES
    )
    with sqlite_unit_of_work() as uow:
        kept = uow.repositories.guests.get(secondary.id)
        survivor = uow.repositories.guests.get(primary.id)
        assert kept is not None
        assert kept.legacy_ids == ("G-2",)
        assert survivor is not None
        assert survivor.legacy_ids == ("G-1",)
        assert survivor.legacy_profiles == []
    assert _merges(sqlite_unit_of_work) == []


def test_merge_rejects_self_missing_and_unauthorised(
    sqlite_session: Session, sqlite_unit_of_work: UnitOfWorkFactory, admin: Actor
) -> None:
    guest = make_guest()
    persist(sqlite_session, guest)
    missing = make_guest().id

    with pytest.raises(MergeError, match="into itself"):
        merge_entities(
            EntityKind.GUEST,
            guest.id,
            guest.id,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )
    with pytest.raises(EntityNotFoundError):
        merge_entities(
            EntityKind.GUEST,
            guest.id,
            missing,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )
    with pytest.raises(PermissionDeniedError):
        merge_entities(
            EntityKind.GUEST,
            guest.id,
            missing,
            actor=Actor(name="desk", role=Role.FRONT_DESK),
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_delete_refuses_referenced_entities(
    sqlite_session: Session, sqlite_unit_of_work: UnitOfWorkFactory, admin: Actor
) -> None:
    booked = make_guest("Ana Ruiz")
    chatty = make_guest("Luis Mora")
    unused = make_guest("Eva Sol", legacy_ids=["G-5"])
    persist(sqlite_session, booked, chatty, unused)
    persist(
        sqlite_session,
        Reservation(pms_id="R-1", guest_id=booked.id),
        Message(sender_type=EntityKind.GUEST, sender_id=chatty.id, body="hola"),
    )

    for entity_id in (booked.id, chatty.id):
        with pytest.raises(MergeError, match="still referenced"):
            delete_entity(
                EntityKind.GUEST, entity_id, actor=admin, unit_of_work_factory=sqlite_unit_of_work
            )
    delete_entity(
        EntityKind.GUEST, unused.id, actor=admin, unit_of_work_factory=sqlite_unit_of_work
    )

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.guests.get(unused.id) is None
        assert uow.repositories.guests.get_by_legacy_id("G-5") is None
        assert uow.repositories.guests.get(booked.id) is not None
    with pytest.raises(PermissionDeniedError):
        delete_entity(
            EntityKind.GUEST,
            booked.id,
            actor=Actor(name="desk", role=Role.FRONT_DESK),
            unit_of_work_factory=sqlite_unit_of_work,
        )


def test_link_points_one_record_at_another_entity(
    sqlite_session: Session, sqlite_unit_of_work: UnitOfWorkFactory, admin: Actor
) -> None:
    wrong = make_guest("Ana Ruiz")
    right = make_guest("Maria Lopez")
    persist(sqlite_session, wrong, right)
    reservation = Reservation(pms_id="R-1", guest_id=wrong.id, pms_guest_name="LOPEZ, MARIA")
    persist(sqlite_session, reservation)

    link_reference(
        EntityKind.GUEST,
        "reservation",
        reservation.id,
        right.id,
        actor=admin,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.reservations.get_by_pms_id("R-1")
        assert stored is not None
        assert stored.guest_id == right.id

    with pytest.raises(MergeError):
        link_reference(
            EntityKind.GUEST,
            "vendor_user",
            reservation.id,
            right.id,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )
    with pytest.raises(EntityNotFoundError):
        link_reference(
            EntityKind.GUEST,
            "reservation",
            make_guest().id,
            right.id,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )
    with pytest.raises(EntityNotFoundError):
        link_reference(
            EntityKind.GUEST,
            "reservation",
            reservation.id,
            make_guest().id,
            actor=admin,
            unit_of_work_factory=sqlite_unit_of_work,
        )


class _SpyHistory(SqlAlchemyHistoryRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session)
        self.merges: list[EntityMerge] = []

    def record_merge(self, merge: EntityMerge) -> None:
        self.merges.append(merge)
        super().record_merge(merge)


def test_merge_audit_is_written_through_the_history_repository(sqlite_session: Session) -> None:
    primary, secondary = _seed_guest_pair(sqlite_session)
    history = _SpyHistory(sqlite_session)

    record = EntityMerger(sqlite_session, history).merge(
        EntityKind.GUEST, primary.id, secondary.id, actor="tester"
    )
    sqlite_session.commit()

    assert history.merges == [record]
    stored = list(sqlite_session.execute(select(EntityMerge)).scalars())
    assert [merge.id for merge in stored] == [record.id]

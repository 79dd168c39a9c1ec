from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from guestrecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from guestrecon.domain.model import FieldChange, ImportDomain
from tests.helpers.records import make_guest

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyReconciliationUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyReconciliationUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_guests(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    guest = make_guest("Ana Ruiz", legacy_ids=["G-1"])

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.guests.add(guest)
        uow.repositories.history.record_change(
            FieldChange(
                entity_type=ImportDomain.GUEST,
                entity_id=guest.id,
                field_name="email",
                old_value=None,
                new_value="ana@example.com",
            )
        )
        uow.commit()

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        stored = uow.repositories.guests.get_by_legacy_id(" G-1 ")
        assert stored is not None
        assert stored.id == guest.id
        (change,) = uow.repositories.history.changes_for(guest.id)
        assert change.new_value == "ana@example.com"


def test_unit_of_work_rolls_back_when_the_block_raises(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    guest = make_guest("Luis Mora", legacy_ids=["G-2"])

    with pytest.raises(RuntimeError), SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.guests.add(guest)
        raise RuntimeError("boom")

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.guests.get(guest.id) is None
        assert uow.repositories.guests.get_by_legacy_id("G-2") is None

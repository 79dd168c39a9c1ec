from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from guestrecon.adapters.sqlalchemy import create_all_tables, start_mappers
from guestrecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    shutdown,
    startup,
)
from guestrecon.domain.permissions import Actor, Role

os.environ.setdefault("GUESTRECON_DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyReconciliationUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyReconciliationUnitOfWork:
        return SqlAlchemyReconciliationUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def admin() -> Actor:
    return Actor(name="tester", role=Role.ADMIN)

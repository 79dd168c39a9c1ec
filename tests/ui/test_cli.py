from __future__ import annotations

import json
import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest

from guestrecon.domain.model import EntityKind, MappingKind, Reservation
from guestrecon.domain.permissions import Actor, Role
from guestrecon.ui import cli as cli_module
from tests.helpers.records import csv_text, make_guest, make_vendor, persist, pms_feed

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sqlalchemy.orm import Session

    from guestrecon.adapters.sqlalchemy.unit_of_work import SqlAlchemyReconciliationUnitOfWork

    UnitOfWorkFactory = Callable[[], SqlAlchemyReconciliationUnitOfWork]


def test_analyze_prints_the_review_payload(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    export = tmp_path / "guests.csv"
    export.write_text(
        csv_text(["id", "nombre_completo"], ["G-1", "Ana Ruiz"], ["G-2", "Luis Mora"]),
        encoding="utf-8",
    )

    cli_module.main(["analyze", str(export), "--domain", "guest"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["create"] == 2
    assert [entry["action"] for entry in payload["analysis"]] == ["CREATE", "CREATE"]


def test_pms_import_then_orphans(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    sqlite_session: Session,
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    wrong = make_guest("Ana Ruiz")
    persist(sqlite_session, wrong)
    persist(
        sqlite_session,
        Reservation(
            pms_id="R-1",
            guest_id=wrong.id,
            pms_guest_name="LOPEZ, MARIA",
            arrival=date(2024, 3, 5),
        ),
    )
    feed = tmp_path / "rooms.xml"
    feed.write_text(
        pms_feed({"RESV_NAME_ID": "88123", "FULL_NAME": "SOL, EVA", "ROOM": "204"}),
        encoding="utf-8",
    )

    cli_module.main(["pms", str(feed)])
    cli_module.main(["orphans", "--limit", "5"])

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.reservations.get_by_pms_id("88123")
        assert stored is not None
        assert stored.room == "204"
    (orphan,) = json.loads(capsys.readouterr().out)
    assert orphan["pmsId"] == "R-1"
    assert orphan["linkedFullName"] == "Ana Ruiz"


def test_merge_passes_the_global_actor(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    primary, secondary = uuid.uuid4(), uuid.uuid4()

    class _Record:
        id = uuid.uuid4()
        relinked = 3

    def fake_merge(kind: EntityKind, *ids: uuid.UUID, **kwargs: object) -> _Record:
        captured.update(kind=kind, ids=ids, **kwargs)
        return _Record()

    monkeypatch.setattr(cli_module, "merge_entities", fake_merge)

    cli_module.main(
        [
            "--actor",
            "maria",
            "--role",
            "manager",
            "merge",
            "--kind",
            "vendor",
            str(primary),
            str(secondary),
        ]
    )

    assert captured["kind"] is EntityKind.VENDOR
    assert captured["ids"] == (primary, secondary)
    assert captured["actor"] == Actor(name="maria", role=Role.MANAGER)


def test_merge_with_invalid_uuid_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["merge", "--kind", "guest", "not-a-uuid", str(uuid.uuid4())])

    assert excinfo.value.code == 2


def test_unauthorised_merge_exits_with_failure(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            [
                "--role",
                "concierge",
                "merge",
                "--kind",
                "guest",
                str(uuid.uuid4()),
                str(uuid.uuid4()),
            ]
        )

    assert excinfo.value.code == 1


def test_unknown_role_is_rejected_by_the_parser() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["--role", "janitor", "orphans"])

    assert excinfo.value.code == 2


def test_vendor_prompt_then_vendor_normalize(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    sqlite_session: Session,
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    canopy = make_vendor("Canopy Tours")
    canopi = make_vendor("Canopi")
    persist(sqlite_session, canopy, canopi)
    groups = tmp_path / "vendors.json"
    groups.write_text(
        json.dumps({"merges": [{"masterId": str(canopy.id), "duplicateIds": [str(canopi.id)]}]}),
        encoding="utf-8",
    )

    cli_module.main(["vendor-prompt"])
    cli_module.main(["--actor", "maria", "--role", "manager", "vendor-normalize", str(groups)])

    assert f'ID: {canopi.id} | Name: "Canopi"' in capsys.readouterr().out
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.vendors.get(canopi.id) is None
        mapping = uow.repositories.catalog.get_mapping(MappingKind.VENDOR, "Canopi")
        assert mapping is not None
        assert mapping.vendor_id == canopy.id

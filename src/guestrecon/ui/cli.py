from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv
from pydantic import TypeAdapter

from guestrecon.adapters.review import (
    ExecutionRequest,
    analysis_payload,
    cluster_payload,
    orphan_payload,
)
from guestrecon.app import (
    analyze_file,
    delete_entity,
    execute_request,
    import_pms_feed,
    link_reference,
    list_duplicates,
    list_orphans,
    merge_entities,
    normalize_tours,
    normalize_vendors,
    tour_prompt,
    vendor_prompt,
)
from guestrecon.config import configure_logging
from guestrecon.domain.model import EntityKind, ImportDomain
from guestrecon.domain.permissions import Actor, Role

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pydantic import BaseModel

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile legacy hotel data")
    parser.add_argument(
        "--actor",
        type=str,
        default="cli",
        help="Name recorded in the change history (default: %(default)s)",
    )
    parser.add_argument(
        "--role",
        type=str,
        choices=[role.value for role in Role],
        default=Role.ADMIN.value,
        help="Role whose permissions apply (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    kinds = [kind.value for kind in EntityKind]

    analyze = subparsers.add_parser("analyze", help="Classify an export without writing")
    analyze.add_argument("path", type=Path, help="CSV export to analyse")
    analyze.add_argument(
        "--domain",
        type=str,
        choices=[domain.value for domain in ImportDomain if domain is not ImportDomain.RESERVATION],
        required=True,
        help="Kind of records in the export",
    )

    execute = subparsers.add_parser("execute", help="Commit reviewed rows")
    execute.add_argument("path", type=Path, help="JSON execution request from the review UI")

    pms = subparsers.add_parser("pms", help="Upsert reservations from a PMS XML export")
    pms.add_argument("path", type=Path, help="PMS XML export")

    duplicates = subparsers.add_parser("duplicates", help="List duplicate clusters")
    duplicates.add_argument("--kind", type=str, choices=kinds, required=True)
    duplicates.add_argument("--limit", type=int, help="Maximum number of clusters")

    orphans = subparsers.add_parser("orphans", help="List mislinked reservations")
    orphans.add_argument("--limit", type=int, help="Maximum number of orphans")

    merge = subparsers.add_parser("merge", help="Merge a secondary into a primary")
    merge.add_argument("--kind", type=str, choices=kinds, required=True)
    merge.add_argument("primary", type=str, help="Id of the surviving record")
    merge.add_argument("secondary", type=str, help="Id of the record folded in and deleted")

    delete = subparsers.add_parser("delete", help="Delete a record without dependents")
    delete.add_argument("--kind", type=str, choices=kinds, required=True)
    delete.add_argument("entity", type=str, help="Id of the record to delete")

    link = subparsers.add_parser("link", help="Point one dependent record at another owner")
    link.add_argument("--kind", type=str, choices=kinds, required=True)
    link.add_argument("reference", type=str, help="Dependent table, e.g. reservation")
    link.add_argument("record", type=str, help="Id of the dependent record")
    link.add_argument("target", type=str, help="Id of the guest or vendor to link")

    prompt = subparsers.add_parser("tour-prompt", help="Print the tour-name grouping prompt")
    prompt.add_argument("path", type=Path, help="Tour booking CSV export")

    tours = subparsers.add_parser("tour-normalize", help="Apply tour groups and import bookings")
    tours.add_argument("path", type=Path, help="Tour booking CSV export")
    tours.add_argument("decisions", type=Path, help="JSON array of reviewed groups")

    subparsers.add_parser("vendor-prompt", help="Print the vendor grouping prompt")

    vendors = subparsers.add_parser("vendor-normalize", help="Merge reviewed vendor groups")
    vendors.add_argument("decisions", type=Path, help="JSON vendor groups or merges object")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ValueError(f"Cannot read {path}: {exc}") from exc


def _emit(payload: BaseModel | list[BaseModel] | str) -> None:
    if isinstance(payload, str):
        text = payload
    elif isinstance(payload, list):
        text = json.dumps(
            [item.model_dump(mode="json", by_alias=True) for item in payload], indent=2
        )
    else:
        text = payload.model_dump_json(by_alias=True, indent=2)
    sys.stdout.write(text + "\n")


def _run_command(args: argparse.Namespace, actor: Actor) -> None:  # noqa: C901
    match args.command:
        case "analyze":
            analysis = analyze_file(_read(args.path), ImportDomain(args.domain))
            _emit(analysis_payload(analysis))
        case "execute":
            request = TypeAdapter(ExecutionRequest).validate_json(_read(args.path))
            _emit(execute_request(request, actor=actor))
        case "pms":
            result = import_pms_feed(_read(args.path), actor=actor)
            log.info(
                "PMS import finished: total=%s created=%s updated=%s unchanged=%s errors=%s",
                result.total,
                result.created,
                result.updated,
                result.unchanged,
                len(result.errors),
            )
            for error in result.errors:
                log.warning(error)
        case "duplicates":
            clusters = list_duplicates(EntityKind(args.kind), limit=args.limit)
            _emit([cluster_payload(cluster) for cluster in clusters])
        case "orphans":
            _emit([orphan_payload(orphan) for orphan in list_orphans(limit=args.limit)])
        case "merge":
            record = merge_entities(
                EntityKind(args.kind),
                _parse_uuid(args.primary),
                _parse_uuid(args.secondary),
                actor=actor,
            )
            log.info("Merge recorded as %s (%s references relinked)", record.id, record.relinked)
        case "delete":
            delete_entity(EntityKind(args.kind), _parse_uuid(args.entity), actor=actor)
        case "link":
            link_reference(
                EntityKind(args.kind),
                args.reference,
                _parse_uuid(args.record),
                _parse_uuid(args.target),
                actor=actor,
            )
        case "tour-prompt":
            _emit(tour_prompt(_read(args.path)))
        case "tour-normalize":
            decisions = _read(args.decisions).decode("utf-8")
            outcome = normalize_tours(_read(args.path), decisions, actor=actor)
            log.info(
                "Tour normalization finished: products=%s mappings=%s created=%s updated=%s "
                "skipped=%s errors=%s",
                len(outcome.materialization.products_created),
                outcome.materialization.mappings_saved,
                outcome.result.created,
                outcome.result.updated,
                outcome.result.skipped,
                len(outcome.result.errors),
            )
        case "vendor-prompt":
            _emit(vendor_prompt())
        case "vendor-normalize":
            merged = normalize_vendors(_read(args.decisions).decode("utf-8"), actor=actor)
            log.info(
                "Vendor normalization finished: groups=%s merged=%s relinked=%s mappings=%s "
                "errors=%s",
                merged.groups_processed,
                merged.vendors_merged,
                merged.references_relinked,
                merged.mappings_saved,
                len(merged.errors),
            )
            for error in merged.errors:
                log.warning(error)
        case _:
            raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        actor = Actor(name=parsed_args.actor, role=Role(parsed_args.role))
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run_command(parsed_args, actor)
    except ValueError:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

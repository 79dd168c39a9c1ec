"""Translate between review payloads and reconciliation values."""

from __future__ import annotations

import re
from dataclasses import asdict
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from guestrecon.domain.canonicalization import ROW_TYPES, GuestRow
from guestrecon.domain.errors import SourceFormatError
from guestrecon.domain.reconciliation import (
    GroupDecision,
    ImportAction,
    ImportRow,
    MatchCandidate,
    TourNameKey,
    VendorMergeGroup,
)

from .schema import (
    AnalysisPayload,
    ClusterMemberPayload,
    CommitResultPayload,
    DuplicateClusterPayload,
    ExecutionRequest,
    ExecutionResponse,
    GroupDecisionPayload,
    IdentityPayload,
    ImportRowPayload,
    MatchPayload,
    OrphanPayload,
    SummaryPayload,
    VendorGroupPayload,
    VendorMergeRequest,
)

if TYPE_CHECKING:
    from guestrecon.domain.commit import CommitResult
    from guestrecon.domain.duplicates import DuplicateCluster, IdentitySummary, Orphan
    from guestrecon.domain.model import ImportDomain
    from guestrecon.domain.reconciliation import ImportAnalysis

log = getLogger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_DECISIONS = TypeAdapter(list[GroupDecisionPayload])
_VENDOR_ANSWER = TypeAdapter(list[VendorGroupPayload] | VendorMergeRequest)


def match_payload(candidate: MatchCandidate | None) -> MatchPayload | None:
    if candidate is None:
        return None
    return MatchPayload(
        id=candidate.id,
        name=candidate.name,
        legacy_ids=list(candidate.legacy_ids),
        email=candidate.email,
        phone=candidate.phone,
    )


def row_payload(item: ImportRow) -> ImportRowPayload:
    payload = ImportRowPayload(
        csv=asdict(item.row),
        match=match_payload(item.match),
        action=item.action,
        reason=item.reason,
        user_date=item.user_date,
        product_id=item.product_id,
    )
    if isinstance(item.row, GuestRow):
        payload.inferred_profile_type = item.row.profile_type
        payload.multi_companion = item.row.multi_companion
    return payload


def analysis_payload(analysis: ImportAnalysis) -> AnalysisPayload:
    summary = analysis.summary
    return AnalysisPayload(
        domain=analysis.domain,
        summary=SummaryPayload(
            total=summary.total,
            create=summary.create,
            update=summary.update,
            conflict=summary.conflict,
            skip=summary.skip,
            invalid_date=summary.invalid_date,
        ),
        analysis=[row_payload(item) for item in analysis.rows],
    )


def import_row(payload: ImportRowPayload, domain: ImportDomain) -> ImportRow:
    """Rebuild a reviewed row; the reviewer's action is kept, not re-matched."""

    try:
        row_type = ROW_TYPES[domain]
    except KeyError:
        raise ValueError(f"No reviewed import for domain {domain!r}") from None
    row = TypeAdapter(row_type).validate_python(payload.csv)
    match = None
    if payload.match is not None:
        match = MatchCandidate(
            id=payload.match.id,
            name=payload.match.name,
            legacy_ids=tuple(payload.match.legacy_ids),
            email=payload.match.email,
            phone=payload.match.phone,
        )
    item = ImportRow(
        row=row,
        action=ImportAction.SKIP,
        reason=payload.reason,
        match=match,
        product_id=payload.product_id,
    )
    if payload.action is ImportAction.CONFLICT:
        item.action = ImportAction.CONFLICT
    else:
        item.override(payload.action, reason=payload.reason or None, user_date=payload.user_date)
    return item


def execution_rows(request: ExecutionRequest) -> list[ImportRow]:
    return [import_row(payload, request.domain) for payload in request.rows]


def execution_response(result: CommitResult) -> ExecutionResponse:
    return ExecutionResponse(
        success=not result.errors,
        result=CommitResultPayload(
            created=result.created,
            updated=result.updated,
            unchanged=result.unchanged,
            skipped=result.skipped,
            errors=list(result.errors),
        ),
    )


def _group_keys(payload: GroupDecisionPayload) -> list[TourNameKey]:
    if payload.csv_keys:
        return [TourNameKey.parse(value) for value in payload.csv_keys]
    return [TourNameKey(name=name.strip()) for name in payload.csv_names if name.strip()]


def parse_group_decisions(text: str) -> list[GroupDecision]:
    """Read the assistant's JSON array of groups, tolerating a markdown fence."""

    cleaned = _FENCE.sub("", text.strip())
    try:
        payloads = _DECISIONS.validate_json(cleaned)
    except ValidationError as exc:
        raise SourceFormatError(f"Unreadable tour groups: {exc}") from exc
    decisions = [
        GroupDecision(
            group_id=payload.group_id,
            keys=_group_keys(payload),
            action=payload.action,
            product_id=payload.product_id,
            name_en=payload.name_en,
            name_es=payload.name_es,
            vendor_id=payload.vendor_id,
        )
        for payload in payloads
    ]
    log.debug("Parsed %s tour name groups", len(decisions))
    return decisions


def _vendor_group(payload: VendorGroupPayload) -> VendorMergeGroup | None:
    members = list(dict.fromkeys(member.id for member in payload.vendors))
    if not members:
        return None
    suggested = [member.id for member in payload.vendors if member.is_suggested_master]
    master_id = suggested[0] if suggested else members[0]
    return VendorMergeGroup(
        group_id=payload.group_id,
        master_id=master_id,
        duplicate_ids=[member for member in members if member != master_id],
        reason=payload.reason,
    )


def parse_vendor_groups(text: str) -> list[VendorMergeGroup]:
    """Read vendor merge groups from the assistant's array or a reviewer's ``merges`` object.

    The suggested master of a group survives; without one the first listed vendor does.
    """

    cleaned = _FENCE.sub("", text.strip())
    try:
        answer = _VENDOR_ANSWER.validate_json(cleaned)
    except ValidationError as exc:
        raise SourceFormatError(f"Unreadable vendor groups: {exc}") from exc
    if isinstance(answer, VendorMergeRequest):
        groups = [
            VendorMergeGroup(
                group_id=position,
                master_id=merge.master_id,
                duplicate_ids=[
                    duplicate
                    for duplicate in dict.fromkeys(merge.duplicate_ids)
                    if duplicate != merge.master_id
                ],
            )
            for position, merge in enumerate(answer.merges, start=1)
        ]
    else:
        groups = [group for payload in answer if (group := _vendor_group(payload)) is not None]
    log.debug("Parsed %s vendor groups", len(groups))
    return groups


def identity_payload(identity: IdentitySummary) -> IdentityPayload:
    return IdentityPayload(
        id=identity.id,
        name=identity.name,
        email=identity.email,
        created_at=identity.created_at,
    )


def cluster_payload(cluster: DuplicateCluster) -> DuplicateClusterPayload:
    return DuplicateClusterPayload(
        kind=cluster.kind,
        fingerprint=cluster.fingerprint,
        email=cluster.email,
        suggested_primary_id=cluster.suggested_primary.identity.id,
        members=[
            ClusterMemberPayload(
                id=member.identity.id,
                name=member.identity.name,
                email=member.identity.email,
                created_at=member.identity.created_at,
                dependents=member.dependents,
                weight=member.weight,
            )
            for member in cluster.members
        ],
    )


def orphan_payload(orphan: Orphan) -> OrphanPayload:
    link = orphan.link
    return OrphanPayload(
        reservation_id=link.reservation_id,
        pms_id=link.pms_id,
        pms_guest_name=link.pms_guest_name,
        room=link.room,
        arrival=link.arrival,
        guest_id=link.guest_id,
        linked_full_name=link.linked_full_name,
        suggestions=[identity_payload(identity) for identity in orphan.suggestions],
    )

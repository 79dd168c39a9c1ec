"""Advisory duplicate discovery: fingerprint clusters and mislinked reservations.

Nothing in this module changes data. Clusters and orphans are ranked for a
human reviewer, who then chooses a merge, a delete or a relink.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from guestrecon.domain.canonicalization import fingerprint, pms_last_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import date, datetime
    from uuid import UUID

    from guestrecon.domain.model import EntityKind
    from guestrecon.domain.ports import DuplicateSource

# a PMS reservation is the strongest sign that a profile is the real one
RESERVATION_WEIGHT: Final[int] = 5
DEFAULT_REFERENCE_WEIGHT: Final[int] = 1
REFERENCE_WEIGHTS: Final[dict[str, int]] = {"reservation": RESERVATION_WEIGHT}

type ClusterKey = tuple[str, str | None]


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentitySummary:
    id: UUID
    name: str | None
    email: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True, kw_only=True)
class ClusterMember:
    identity: IdentitySummary
    dependents: dict[str, int] = field(default_factory=dict)
    weight: int = 0


@dataclass(slots=True, kw_only=True)
class DuplicateCluster:
    kind: EntityKind
    fingerprint: str
    email: str | None
    members: list[ClusterMember]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def suggested_primary(self) -> ClusterMember:
        return self.members[0]


@dataclass(frozen=True, slots=True, kw_only=True)
class ReservationLink:
    """A reservation with the name of the guest it currently points at."""

    reservation_id: UUID
    pms_id: str
    pms_guest_name: str | None
    room: str | None = None
    arrival: date | None = None
    guest_id: UUID | None = None
    linked_full_name: str | None = None
    linked_last_name: str | None = None


@dataclass(slots=True, kw_only=True)
class Orphan:
    link: ReservationLink
    suggestions: list[IdentitySummary] = field(default_factory=list)


def cluster_key(identity: IdentitySummary) -> ClusterKey | None:
    """``(fingerprint, raw email)``; a missing email is a key of its own."""

    value = fingerprint(identity.name or "")
    if not value:
        return None
    return value, identity.email


def group_duplicates(
    identities: Iterable[IdentitySummary], *, limit: int
) -> list[tuple[ClusterKey, list[IdentitySummary]]]:
    groups: dict[ClusterKey, list[IdentitySummary]] = defaultdict(list)
    for identity in identities:
        key = cluster_key(identity)
        if key is not None:
            groups[key].append(identity)
    clusters = [(key, members) for key, members in groups.items() if len(members) >= 2]
    clusters.sort(key=lambda item: (-len(item[1]), item[0][0], item[0][1] or ""))
    return clusters[:limit]


def member_weight(dependents: Mapping[str, int]) -> int:
    return sum(
        count * REFERENCE_WEIGHTS.get(table, DEFAULT_REFERENCE_WEIGHT)
        for table, count in dependents.items()
    )


def rank_members(
    identities: Iterable[IdentitySummary], counts: Mapping[UUID, Mapping[str, int]]
) -> list[ClusterMember]:
    """Heaviest member first; ties go to the oldest record."""

    members = [
        ClusterMember(
            identity=identity,
            dependents=dict(counts.get(identity.id, {})),
            weight=member_weight(counts.get(identity.id, {})),
        )
        for identity in identities
    ]
    members.sort(key=lambda member: (-member.weight, _created_sort_key(member.identity)))
    return members


def _created_sort_key(identity: IdentitySummary) -> str:
    return identity.created_at.isoformat() if identity.created_at else ""


def find_duplicate_clusters(
    kind: EntityKind, source: DuplicateSource, *, limit: int
) -> list[DuplicateCluster]:
    grouped = group_duplicates(source.identity_summaries(kind), limit=limit)
    member_ids = {identity.id for _key, members in grouped for identity in members}
    counts = source.dependent_counts(kind, member_ids) if member_ids else {}
    return [
        DuplicateCluster(
            kind=kind,
            fingerprint=key[0],
            email=key[1],
            members=rank_members(members, counts),
        )
        for key, members in grouped
    ]


def is_orphan(link: ReservationLink) -> bool:
    """Unlinked, or linked to a guest whose surname is absent from the PMS name."""

    if link.guest_id is None:
        return True
    last = (link.linked_last_name or "").strip().lower()
    if not last or link.pms_guest_name is None:
        return False
    return last not in link.pms_guest_name.lower()


def find_orphans(source: DuplicateSource, *, limit: int, suggestions: int) -> list[Orphan]:
    orphans: list[Orphan] = []
    for link in source.reservation_links():
        if not is_orphan(link):
            continue
        orphan = Orphan(link=link)
        last_name = pms_last_name(link.pms_guest_name)
        if last_name and link.pms_guest_name:
            orphan.suggestions = source.suggest_guests(
                last_name, link.pms_guest_name, limit=suggestions
            )
        orphans.append(orphan)
        if len(orphans) >= limit:
            break
    return orphans

"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from guestrecon.domain.ports.persistence import (
        CandidateLookup,
        CatalogRepository,
        DuplicateSource,
        GuestRepository,
        HistoryRepository,
        MergeExecutor,
        ReservationRepository,
        SpecialRequestRepository,
        TourBookingRepository,
        TransferRepository,
        VendorRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ReconciliationRepositories(RepositoryCollection):
    """Everything an import, a PMS feed or a merge touches in one transaction."""

    guests: GuestRepository
    vendors: VendorRepository
    transfers: TransferRepository
    tour_bookings: TourBookingRepository
    special_requests: SpecialRequestRepository
    reservations: ReservationRepository
    catalog: CatalogRepository
    history: HistoryRepository
    lookup: CandidateLookup
    duplicates: DuplicateSource
    merges: MergeExecutor


type ReconciliationUnitOfWork = UnitOfWork[ReconciliationRepositories]
type UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]

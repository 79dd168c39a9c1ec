"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CandidateLookup,
    CatalogRepository,
    DuplicateSource,
    GuestRepository,
    HistoryRepository,
    IdentityRepository,
    LegacyRecordRepository,
    MergeExecutor,
    Repository,
    ReservationRepository,
    SpecialRequestRepository,
    TourBookingRepository,
    TransferRepository,
    VendorRepository,
)
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CandidateLookup",
    "CatalogRepository",
    "DuplicateSource",
    "GuestRepository",
    "HistoryRepository",
    "IdentityRepository",
    "LegacyRecordRepository",
    "MergeExecutor",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "ReservationRepository",
    "SpecialRequestRepository",
    "TourBookingRepository",
    "TransferRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "VendorRepository",
]

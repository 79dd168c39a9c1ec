"""SQLAlchemy adapter package for guestrecon."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .merger import EntityMerger
from .references import DEPENDENT_REFERENCES, DependentReference
from .repositories import (
    SqlAlchemyCandidateLookup,
    SqlAlchemyCatalogRepository,
    SqlAlchemyDuplicateSource,
    SqlAlchemyGuestRepository,
    SqlAlchemyHistoryRepository,
    SqlAlchemyReservationRepository,
    SqlAlchemySpecialRequestRepository,
    SqlAlchemyTourBookingRepository,
    SqlAlchemyTransferRepository,
    SqlAlchemyVendorRepository,
)
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "DEPENDENT_REFERENCES",
    "DependentReference",
    "EntityMerger",
    "SqlAlchemyCandidateLookup",
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyDuplicateSource",
    "SqlAlchemyGuestRepository",
    "SqlAlchemyHistoryRepository",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemyReservationRepository",
    "SqlAlchemySpecialRequestRepository",
    "SqlAlchemyTourBookingRepository",
    "SqlAlchemyTransferRepository",
    "SqlAlchemyVendorRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
    "shutdown",
    "startup",
]

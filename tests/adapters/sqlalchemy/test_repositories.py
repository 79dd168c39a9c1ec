"""Exercise the SQLAlchemy lookups that feed matching, duplicates and tour prompts."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from guestrecon.adapters.sqlalchemy import (
    SqlAlchemyCandidateLookup,
    SqlAlchemyCatalogRepository,
    SqlAlchemyDuplicateSource,
    SqlAlchemyTransferRepository,
    SqlAlchemyVendorRepository,
)
from guestrecon.domain.duplicates import find_duplicate_clusters, find_orphans
from guestrecon.domain.model import (
    EntityKind,
    ImportDomain,
    MappingKind,
    NameMapping,
    Reservation,
    TourProduct,
    Transfer,
)
from guestrecon.domain.reconciliation import LookupKeys
from tests.helpers.records import make_guest, make_vendor, persist

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_guest_candidates_come_from_every_key(sqlite_session: Session) -> None:
    by_legacy = make_guest("Ana Ruiz", legacy_ids=["G-1"])
    by_name = make_guest("Luis Mora")
    by_email = make_guest("Eva Sol", email="Eva@Example.com")
    unrelated = make_guest("Tom Vidal", legacy_ids=["G-9"])
    persist(sqlite_session, by_legacy, by_name, by_email, unrelated)

    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.GUEST,
        LookupKeys(legacy_ids={"G-1"}, names={"luis mora"}, emails={"eva@example.com"}),
    )

    found = {candidate.id: candidate for candidate in pool.candidates}
    assert set(found) == {by_legacy.id, by_name.id, by_email.id}
    assert found[by_legacy.id].legacy_ids == ("G-1",)
    assert found[by_email.id].email == "Eva@Example.com"


def test_empty_keys_skip_the_database(sqlite_session: Session) -> None:
    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.TRANSFER, LookupKeys()
    )

    assert pool.candidates == []


def test_transfer_candidates_need_the_exact_composite(sqlite_session: Session) -> None:
    wanted = Transfer(legacy_id="T-1", transfer_date=date(2024, 3, 5), legacy_vendor_id="V-1")
    crossed = Transfer(legacy_id="T-2", transfer_date=date(2024, 3, 6), legacy_vendor_id="V-2")
    persist(sqlite_session, wanted, crossed)

    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.TRANSFER,
        LookupKeys(composites={(date(2024, 3, 5), "V-1"), (date(2024, 3, 6), "V-1")}),
    )

    (candidate,) = pool.candidates
    assert candidate.id == wanted.id
    assert candidate.composite == (date(2024, 3, 5), "V-1")


def test_confirmed_tour_mapping_beats_a_product_name(sqlite_session: Session) -> None:
    snorkel = TourProduct(name_en="Snorkeling Tour", name_es="Tour de Snorkel")
    decoy = TourProduct(name_en="Snorkel trip")
    persist(sqlite_session, snorkel, decoy)
    persist(
        sqlite_session,
        NameMapping(kind=MappingKind.TOUR, original_name="Snorkel Trip", product_id=snorkel.id),
    )

    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.TOUR_BOOKING,
        LookupKeys(activity_names={"snorkel trip", "tour de snorkel"}),
    )

    assert pool.product_names == {"snorkel trip": snorkel.id, "tour de snorkel": snorkel.id}


def test_vendor_candidates_follow_vendor_mappings(sqlite_session: Session) -> None:
    vendor = make_vendor("Canopy Tours")
    persist(sqlite_session, vendor)
    persist(
        sqlite_session,
        NameMapping(kind=MappingKind.VENDOR, original_name="canopy", vendor_id=vendor.id),
    )

    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.VENDOR, LookupKeys(names={"canopy"})
    )

    assert [candidate.id for candidate in pool.candidates] == [vendor.id]
    assert pool.vendor_mappings == {"canopy": vendor.id}


def test_imported_legacy_ids_are_trimmed_per_domain(sqlite_session: Session) -> None:
    persist(
        sqlite_session,
        make_guest(legacy_ids=[" G-1 "]),
        make_vendor(legacy_ids=["G-2"]),
        Transfer(legacy_id="T-1 "),
    )
    lookup = SqlAlchemyCandidateLookup(sqlite_session)

    assert lookup.imported_legacy_ids(ImportDomain.GUEST, ["G-1", "G-2", ""]) == {"G-1"}
    assert lookup.imported_legacy_ids(ImportDomain.TRANSFER, [" T-1", "T-3"]) == {"T-1"}
    assert lookup.imported_legacy_ids(ImportDomain.TOUR_BOOKING, []) == set()


def test_record_and_catalog_repositories(sqlite_session: Session) -> None:
    vendor = make_vendor("Canopy Tours", legacy_ids=["V-1"])
    transfer = Transfer(legacy_id="T-7")
    persist(sqlite_session, vendor, transfer)
    persist(
        sqlite_session,
        NameMapping(kind=MappingKind.VENDOR, original_name="Canopy", vendor_id=vendor.id),
        TourProduct(name_en="Zipline", is_active=False),
    )
    catalog = SqlAlchemyCatalogRepository(sqlite_session)

    assert SqlAlchemyTransferRepository(sqlite_session).get_by_legacy_id(" T-7 ") is transfer
    assert SqlAlchemyVendorRepository(sqlite_session).find_by_name("  CANOPY tours ") == [vendor]
    mapping = catalog.get_mapping(MappingKind.VENDOR, " canopy ")
    assert mapping is not None
    assert mapping.target_id == vendor.id
    assert catalog.list_products() == []
    assert [product.name_en for product in catalog.list_products(active_only=False)] == [
        "Zipline"
    ]


def test_duplicate_cluster_prefers_the_profile_with_reservations(
    sqlite_session: Session,
) -> None:
    older = make_guest("Maria Lopez", email="maria@example.com")
    busier = make_guest("maria lopez", email="maria@example.com")
    persist(sqlite_session, older, busier)
    persist(
        sqlite_session,
        Transfer(guest_id=older.id),
        Reservation(pms_id="R-1", guest_id=busier.id, pms_guest_name="LOPEZ, MARIA"),
    )

    (cluster,) = find_duplicate_clusters(
        EntityKind.GUEST, SqlAlchemyDuplicateSource(sqlite_session), limit=10
    )

    assert cluster.fingerprint == "marialopez"
    assert [member.identity.id for member in cluster.members] == [busier.id, older.id]
    assert cluster.suggested_primary.dependents == {"reservation": 1}


def test_orphans_list_mislinked_reservations_with_suggestions(sqlite_session: Session) -> None:
    wrong = make_guest("Ana Ruiz")
    maria = make_guest("Maria Lopez")
    persist(sqlite_session, wrong, maria)
    persist(
        sqlite_session,
        Reservation(
            pms_id="R-1",
            guest_id=wrong.id,
            pms_guest_name="LOPEZ, MARIA",
            arrival=date(2024, 3, 5),
        ),
        Reservation(
            pms_id="R-2",
            guest_id=wrong.id,
            pms_guest_name="RUIZ, ANA",
            arrival=date(2024, 3, 6),
        ),
        Reservation(pms_id="R-3", pms_guest_name="NOBODY, KNOWN", arrival=date(2024, 3, 1)),
    )

    orphans = find_orphans(SqlAlchemyDuplicateSource(sqlite_session), limit=10, suggestions=3)

    assert [orphan.link.pms_id for orphan in orphans] == ["R-1", "R-3"]
    assert [suggestion.id for suggestion in orphans[0].suggestions] == [maria.id]
    assert orphans[0].link.linked_full_name == "Ana Ruiz"
    assert orphans[1].suggestions == []


def test_stored_names_with_inner_whitespace_still_match(sqlite_session: Session) -> None:
    vendor = make_vendor("Canopy   Tours")
    guest = make_guest("Luis\tMora")
    persist(sqlite_session, vendor, guest)
    persist(
        sqlite_session,
        NameMapping(
            kind=MappingKind.VENDOR, original_name="Canopy  Adventure", vendor_id=vendor.id
        ),
    )
    catalog = SqlAlchemyCatalogRepository(sqlite_session)

    assert SqlAlchemyVendorRepository(sqlite_session).find_by_name("canopy tours") == [vendor]
    mapping = catalog.get_mapping(MappingKind.VENDOR, "Canopy Adventure")
    assert mapping is not None
    assert mapping.target_id == vendor.id
    pool = SqlAlchemyCandidateLookup(sqlite_session).find_candidates(
        ImportDomain.GUEST, LookupKeys(names={"luis mora"})
    )
    assert [candidate.id for candidate in pool.candidates] == [guest.id]


def test_orphan_suggestions_match_partial_surnames(sqlite_session: Session) -> None:
    compound = make_guest("Maria Lopez Garcia")
    short = make_guest("Maria Lopez")
    stranger = make_guest("Ana Ruiz")
    persist(sqlite_session, compound, short, stranger)
    source = SqlAlchemyDuplicateSource(sqlite_session)

    by_single = source.suggest_guests("LOPEZ", "LOPEZ, MARIA", limit=3)
    by_compound = source.suggest_guests("LOPEZ GARCIA", "LOPEZ GARCIA, MARIA", limit=3)

    assert {guest.id for guest in by_single} == {compound.id, short.id}
    assert {guest.id for guest in by_compound} == {compound.id, short.id}
    assert source.suggest_guests("LOPEZ", "LOPEZ, MARIA", limit=1)[0].id in {
        compound.id,
        short.id,
    }
    assert source.suggest_guests("100%", "100%, X", limit=3) == []


def test_vendor_usage_counts_transfers_and_products_by_name(sqlite_session: Session) -> None:
    zeta = make_vendor("Zeta Shuttles")
    canopy = make_vendor("Canopy Tours")
    persist(sqlite_session, zeta, canopy)
    persist(
        sqlite_session,
        Transfer(vendor_id=canopy.id),
        Transfer(vendor_id=canopy.id),
        Transfer(),
        TourProduct(name_en="Zipline", vendor_id=canopy.id),
    )

    usage = SqlAlchemyDuplicateSource(sqlite_session).vendor_usage()

    assert [(item.name, item.transfer_count, item.tour_product_count) for item in usage] == [
        ("Canopy Tours", 2, 1),
        ("Zeta Shuttles", 0, 0),
    ]
    assert usage[0].id == canopy.id
    assert usage[0].is_active

from __future__ import annotations

import uuid

from guestrecon.domain.canonicalization import TourBookingRow
from guestrecon.domain.model import TourProduct
from guestrecon.domain.reconciliation import (
    NO_VENDOR,
    TourNameKey,
    build_tour_prompt,
    summarize_tour_names,
)


def _booking(legacy_id: str, name: str | None, vendor: str | None = None) -> TourBookingRow:
    return TourBookingRow(
        line_number=2, legacy_id=legacy_id, activity_name=name, vendor_legacy_id=vendor
    )


def test_tour_name_key_parse_and_render() -> None:
    keyed = TourNameKey.parse("Snorkel trip|||V-1")
    bare = TourNameKey.parse(f"Sunset Cruise|||{NO_VENDOR}")

    assert keyed == TourNameKey(name="Snorkel trip", legacy_vendor_id="V-1")
    assert bare.legacy_vendor_id is None
    assert TourNameKey.parse("Zipline").render() == f"Zipline|||{NO_VENDOR}"


def test_summarize_tour_names_counts_new_and_imported() -> None:
    rows = [
        _booking("1", "Snorkel trip", "V-1"),
        _booking("2", "Snorkel trip", "V-2"),
        _booking("3", " Snorkel trip ", "V-1"),
        _booking("4", "Zipline"),
        _booking("5", None),
    ]

    snorkel, zipline = summarize_tour_names(rows, imported_legacy_ids={"2"})

    assert (snorkel.name, snorkel.count) == ("Snorkel trip", 3)
    assert (snorkel.new_count, snorkel.existing_count) == (2, 1)
    assert snorkel.legacy_vendor_ids == ["V-1", "V-2"]
    assert snorkel.describe() == '"Snorkel trip" (2 new + 1 already imported)'
    assert zipline.describe() == '"Zipline" (1 booking)'


def test_build_tour_prompt_lists_products_and_names() -> None:
    vendor_id = uuid.uuid4()
    product = TourProduct(name_en="Snorkeling Tour", name_es="Tour de Snorkel", vendor_id=vendor_id)
    stats = summarize_tour_names([_booking("1", "Snorkel trip")], imported_legacy_ids=set())

    prompt = build_tour_prompt(stats, [product], {vendor_id: "Canopy Tours"})

    assert f"ID: {product.id} | EN: Snorkeling Tour | ES: Tour de Snorkel" in prompt
    assert "Vendor: Canopy Tours" in prompt
    assert '"Snorkel trip" (1 booking)' in prompt
    assert "Return ONLY a valid JSON array" in prompt


def test_build_tour_prompt_without_products() -> None:
    prompt = build_tour_prompt([], [])

    assert "no existing tour products yet" in prompt

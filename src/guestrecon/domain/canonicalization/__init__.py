"""Turn dirty spreadsheet and PMS exports into typed canonical rows."""

from __future__ import annotations

from .dates import (
    anchor_two_digit_year,
    parse_activity_date,
    parse_date,
    parse_pms_date,
    parse_time,
    pivot_pms_year,
    repair_activity_year,
)
from .names import (
    fingerprint,
    infer_profile_type,
    parse_pms_name,
    pms_last_name,
    split_companion,
    split_full_name,
)
from .rows import (
    ROW_BUILDERS,
    ROW_TYPES,
    CanonicalRow,
    CanonicalRowT,
    GuestRow,
    LinkedRow,
    ReservationRow,
    SpecialRequestRow,
    TourBookingRow,
    TransferRow,
    VendorRow,
    build_rows,
    canonicalize,
)
from .tabular import SourceRecord, decode_upload, normalize_header, parse_delimited, parse_xml_nodes
from .values import normalize_status, parse_amount, parse_bool, parse_count

__all__ = [
    "ROW_BUILDERS",
    "ROW_TYPES",
    "CanonicalRow",
    "CanonicalRowT",
    "GuestRow",
    "LinkedRow",
    "ReservationRow",
    "SourceRecord",
    "SpecialRequestRow",
    "TourBookingRow",
    "TransferRow",
    "VendorRow",
    "anchor_two_digit_year",
    "build_rows",
    "canonicalize",
    "decode_upload",
    "fingerprint",
    "infer_profile_type",
    "normalize_header",
    "normalize_status",
    "parse_activity_date",
    "parse_amount",
    "parse_bool",
    "parse_count",
    "parse_date",
    "parse_delimited",
    "parse_pms_date",
    "parse_pms_name",
    "parse_time",
    "parse_xml_nodes",
    "pivot_pms_year",
    "pms_last_name",
    "repair_activity_year",
    "split_companion",
    "split_full_name",
]

"""Typed canonical rows, one class per import domain, and their builders."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, time
from decimal import Decimal
from typing import ClassVar, Final

from guestrecon.domain.model import BookingStatus, ImportDomain, ProfileType, VendorType

from . import synonyms as syn
from .dates import parse_activity_date, parse_date, parse_time
from .defaults import (
    DEFAULT_COLOR_CODE,
    DEFAULT_GUEST_COUNT,
    DEFAULT_PASSENGER_COUNT,
    DEFAULT_PROFILE_TYPE,
    DEFAULT_STAT_VALUE,
    DEFAULT_STATUS,
    DEFAULT_VENDOR_ACTIVE,
    DEFAULT_VENDOR_TYPE,
)
from .names import infer_profile_type, split_companion, split_full_name
from .tabular import SourceRecord, parse_delimited
from .values import (
    blank_to_none,
    normalize_color,
    normalize_status,
    normalize_vendor_type,
    parse_amount,
    parse_bool,
    parse_count,
    parse_optional_int,
)


@dataclass(slots=True, kw_only=True)
class CanonicalRow:
    """Fields shared by every canonical row.

    ``legacy_id`` is carried exactly as exported; ``invalid_dates`` maps the name
    of each non-empty date field that failed to parse to its raw text.
    """

    DOMAIN: ClassVar[ImportDomain]
    DATE_FIELDS: ClassVar[tuple[str, ...]] = ()
    REQUIRED_DATE: ClassVar[str | None] = None

    line_number: int
    legacy_id: str | None = None
    blank: bool = False
    invalid_dates: dict[str, str] = field(default_factory=dict)

    @property
    def domain(self) -> ImportDomain:
        return self.DOMAIN

    @property
    def legacy_key(self) -> str | None:
        if self.legacy_id is None:
            return None
        return self.legacy_id.strip() or None

    @property
    def junk_text(self) -> str | None:
        """Free text checked against junk sentinels, if the domain has one."""

        return None

    @property
    def row_key(self) -> str:
        if self.legacy_id:
            return f'Row {self.line_number} (legacy id "{self.legacy_id}")'
        return f"Row {self.line_number}"

    def missing_required_date(self) -> bool:
        if self.REQUIRED_DATE is None or self.blank:
            return False
        missing = getattr(self, self.REQUIRED_DATE) is None
        return missing and self.REQUIRED_DATE not in self.invalid_dates

    def with_user_date(self, user_date: date) -> CanonicalRow:
        """Copy with the first unparseable date field replaced by ``user_date``."""

        if not self.invalid_dates:
            target = self.REQUIRED_DATE
        else:
            target = next(iter(self.invalid_dates))
        if target is None:
            raise ValueError(f"{self.row_key} has no date field to correct")
        return replace(self, **{target: user_date}, invalid_dates={})


@dataclass(slots=True, kw_only=True)
class GuestRow(CanonicalRow):
    DOMAIN: ClassVar[ImportDomain] = ImportDomain.GUEST

    full_name: str | None = None
    source_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    notes: str | None = None
    companion_name: str | None = None
    multi_companion: bool = False
    vip: int = 0
    profile_type: ProfileType = DEFAULT_PROFILE_TYPE
    arrivals: Decimal = DEFAULT_STAT_VALUE
    nights: Decimal = DEFAULT_STAT_VALUE
    revenue: Decimal = DEFAULT_STAT_VALUE

    @property
    def junk_text(self) -> str | None:
        return self.full_name

    @property
    def display_name(self) -> str | None:
        return self.full_name


@dataclass(slots=True, kw_only=True)
class VendorRow(CanonicalRow):
    DOMAIN: ClassVar[ImportDomain] = ImportDomain.VENDOR

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    vendor_type: VendorType = DEFAULT_VENDOR_TYPE
    color_code: str = DEFAULT_COLOR_CODE
    is_active: bool = DEFAULT_VENDOR_ACTIVE
    notes: str | None = None

    @property
    def junk_text(self) -> str | None:
        return self.name

    @property
    def display_name(self) -> str | None:
        return self.name


@dataclass(slots=True, kw_only=True)
class LinkedRow(CanonicalRow):
    """Dependent record naming its guest (and maybe vendor) by legacy id or name."""

    guest_legacy_id: str | None = None
    guest_name: str | None = None
    vendor_legacy_id: str | None = None
    vendor_name: str | None = None

    @property
    def junk_text(self) -> str | None:
        return self.guest_name

    @property
    def display_name(self) -> str | None:
        return self.guest_name


@dataclass(slots=True, kw_only=True)
class TransferRow(LinkedRow):
    DOMAIN: ClassVar[ImportDomain] = ImportDomain.TRANSFER
    DATE_FIELDS: ClassVar[tuple[str, ...]] = ("transfer_date", "billed_date", "paid_date")
    REQUIRED_DATE: ClassVar[str | None] = "transfer_date"

    transfer_date: date | None = None
    transfer_time: time | None = None
    origin: str | None = None
    destination: str | None = None
    num_passengers: int = DEFAULT_PASSENGER_COUNT
    guest_status: BookingStatus = DEFAULT_STATUS
    vendor_status: BookingStatus = DEFAULT_STATUS
    billed_date: date | None = None
    paid_date: date | None = None
    price: Decimal | None = None
    notes: str | None = None

    @property
    def natural_date(self) -> date | None:
        return self.transfer_date


@dataclass(slots=True, kw_only=True)
class TourBookingRow(LinkedRow):
    DOMAIN: ClassVar[ImportDomain] = ImportDomain.TOUR_BOOKING
    DATE_FIELDS: ClassVar[tuple[str, ...]] = ("activity_date", "billed_date", "paid_date")
    REQUIRED_DATE: ClassVar[str | None] = "activity_date"

    activity_date: date | None = None
    start_time: time | None = None
    activity_name: str | None = None
    num_guests: int = DEFAULT_GUEST_COUNT
    guest_status: BookingStatus = DEFAULT_STATUS
    vendor_status: BookingStatus = DEFAULT_STATUS
    billed_date: date | None = None
    paid_date: date | None = None
    total_price: Decimal | None = None
    notes: str | None = None

    @property
    def natural_date(self) -> date | None:
        return self.activity_date


@dataclass(slots=True, kw_only=True)
class SpecialRequestRow(LinkedRow):
    DOMAIN: ClassVar[ImportDomain] = ImportDomain.SPECIAL_REQUEST
    DATE_FIELDS: ClassVar[tuple[str, ...]] = ("request_date",)

    request_date: date | None = None
    request: str | None = None
    status: BookingStatus = DEFAULT_STATUS
    notes: str | None = None


@dataclass(slots=True, kw_only=True)
class ReservationRow(CanonicalRow):
    """One ``G_ROOM`` node of the PMS feed; ``legacy_id`` is ``RESV_NAME_ID``."""

    DOMAIN: ClassVar[ImportDomain] = ImportDomain.RESERVATION

    status: str
    short_status: str
    room: str | None = None
    guest_name: str = ""
    first_name: str | None = None
    last_name: str | None = None
    pms_guest_name: str | None = None
    arrival: date | None = None
    departure: date | None = None
    persons: int = 1
    nights: int | None = None
    room_count: int | None = None
    room_category: str | None = None
    rate_code: str | None = None
    guarantee_code: str | None = None
    group_name: str | None = None
    travel_agent: str | None = None
    company: str | None = None
    share_amount: Decimal | None = None


type CanonicalRowT = GuestRow | VendorRow | TransferRow | TourBookingRow | SpecialRequestRow


def _text(record: SourceRecord, names: syn.Synonyms) -> str | None:
    return blank_to_none(record.get(*names))


def _raw(record: SourceRecord, names: syn.Synonyms) -> str | None:
    return record.get(*names) or None


def _date(
    record: SourceRecord,
    names: syn.Synonyms,
    field_name: str,
    invalid: dict[str, str],
    parser: Callable[[str | None], date | None] = parse_date,
) -> date | None:
    raw = record.get(*names).strip()
    parsed = parser(raw)
    if raw and parsed is None:
        invalid[field_name] = raw
    return parsed


def _stat(record: SourceRecord, names: syn.Synonyms) -> Decimal:
    amount = parse_amount(record.get(*names))
    return DEFAULT_STAT_VALUE if amount is None else amount


def build_guest_row(record: SourceRecord) -> GuestRow:
    raw_full = _text(record, syn.FULL_NAME)
    first = _text(record, syn.FIRST_NAME)
    last = _text(record, syn.LAST_NAME)
    if raw_full is None and (first or last):
        raw_full = " ".join(part for part in (first, last) if part)

    primary = raw_full
    companion = _text(record, syn.COMPANION)
    multi = False
    if raw_full:
        split = split_companion(raw_full)
        primary = split.primary_name or None
        companion = split.companion_name or companion
        multi = split.multi_companion

    if not first and not last and primary:
        parts = split_full_name(primary)
        first, last = parts.first_name, parts.last_name
    elif not first and last:
        # name typed into the surname column only
        parts = split_full_name(last)
        first, last = parts.first_name, parts.last_name

    return GuestRow(
        line_number=record.line_number,
        legacy_id=_raw(record, syn.GUEST_ID),
        blank=record.is_blank(),
        full_name=primary,
        source_name=raw_full,
        first_name=first,
        last_name=last,
        email=_text(record, syn.EMAIL),
        phone=_text(record, syn.PHONE),
        nationality=_text(record, syn.NATIONALITY),
        notes=_text(record, syn.NOTES),
        companion_name=companion,
        multi_companion=multi,
        vip=parse_optional_int(record.get(*syn.VIP)) or 0,
        profile_type=infer_profile_type(primary) if primary else DEFAULT_PROFILE_TYPE,
        arrivals=_stat(record, syn.ARRIVALS),
        nights=_stat(record, syn.NIGHTS),
        revenue=_stat(record, syn.REVENUE),
    )


def build_vendor_row(record: SourceRecord) -> VendorRow:
    return VendorRow(
        line_number=record.line_number,
        legacy_id=_raw(record, syn.VENDOR_ID),
        blank=record.is_blank(),
        name=_text(record, syn.VENDOR_OWN_NAME),
        email=_text(record, syn.EMAIL),
        phone=_text(record, syn.PHONE),
        vendor_type=normalize_vendor_type(record.get(*syn.VENDOR_TYPE)),
        color_code=normalize_color(record.get(*syn.COLOR)),
        is_active=parse_bool(record.get(*syn.ACTIVE), default=DEFAULT_VENDOR_ACTIVE),
        notes=_text(record, syn.NOTES),
    )


def build_transfer_row(record: SourceRecord) -> TransferRow:
    invalid: dict[str, str] = {}
    return TransferRow(
        line_number=record.line_number,
        legacy_id=_raw(record, syn.TRANSFER_ID),
        blank=record.is_blank(),
        guest_legacy_id=_raw(record, syn.GUEST_LEGACY_ID),
        guest_name=_text(record, syn.GUEST_NAME),
        vendor_legacy_id=_raw(record, syn.VENDOR_LEGACY_ID),
        vendor_name=_text(record, syn.VENDOR_NAME),
        transfer_date=_date(record, syn.TRANSFER_DATE, "transfer_date", invalid),
        transfer_time=parse_time(record.get(*syn.TRANSFER_TIME)),
        origin=_text(record, syn.ORIGIN),
        destination=_text(record, syn.DESTINATION),
        num_passengers=parse_count(record.get(*syn.PASSENGERS), DEFAULT_PASSENGER_COUNT),
        guest_status=normalize_status(record.get(*syn.GUEST_STATUS)),
        vendor_status=normalize_status(record.get(*syn.VENDOR_STATUS)),
        billed_date=_date(record, syn.BILLED_DATE, "billed_date", invalid),
        paid_date=_date(record, syn.PAID_DATE, "paid_date", invalid),
        price=parse_amount(record.get(*syn.PRICE)),
        notes=_text(record, syn.NOTES),
        invalid_dates=invalid,
    )


def build_tour_booking_row(record: SourceRecord) -> TourBookingRow:
    invalid: dict[str, str] = {}
    return TourBookingRow(
        line_number=record.line_number,
        legacy_id=_raw(record, syn.TOUR_ID),
        blank=record.is_blank(),
        guest_legacy_id=_raw(record, syn.GUEST_LEGACY_ID),
        guest_name=_text(record, syn.GUEST_NAME),
        vendor_legacy_id=_raw(record, syn.VENDOR_LEGACY_ID),
        vendor_name=_text(record, syn.VENDOR_NAME),
        activity_date=_date(
            record, syn.ACTIVITY_DATE, "activity_date", invalid, parser=parse_activity_date
        ),
        start_time=parse_time(record.get(*syn.TIME)),
        activity_name=_text(record, syn.ACTIVITY_NAME),
        num_guests=parse_count(record.get(*syn.PARTICIPANTS), DEFAULT_GUEST_COUNT),
        guest_status=normalize_status(record.get(*syn.GUEST_STATUS)),
        vendor_status=normalize_status(record.get(*syn.VENDOR_STATUS)),
        billed_date=_date(
            record, syn.BILLED_DATE, "billed_date", invalid, parser=parse_activity_date
        ),
        paid_date=_date(record, syn.PAID_DATE, "paid_date", invalid, parser=parse_activity_date),
        total_price=parse_amount(record.get(*syn.TOTAL_PRICE)),
        notes=_text(record, syn.NOTES),
        invalid_dates=invalid,
    )


def build_special_request_row(record: SourceRecord) -> SpecialRequestRow:
    invalid: dict[str, str] = {}
    return SpecialRequestRow(
        line_number=record.line_number,
        legacy_id=_raw(record, syn.REQUEST_ID),
        blank=record.is_blank(),
        guest_legacy_id=_raw(record, syn.GUEST_LEGACY_ID),
        guest_name=_text(record, syn.GUEST_NAME),
        request_date=_date(record, syn.REQUEST_DATE, "request_date", invalid),
        request=_text(record, syn.REQUEST_TEXT),
        status=normalize_status(record.get(*syn.GUEST_STATUS)),
        notes=_text(record, syn.NOTES),
        invalid_dates=invalid,
    )


ROW_BUILDERS: Final[dict[ImportDomain, Callable[[SourceRecord], CanonicalRowT]]] = {
    ImportDomain.GUEST: build_guest_row,
    ImportDomain.VENDOR: build_vendor_row,
    ImportDomain.TRANSFER: build_transfer_row,
    ImportDomain.TOUR_BOOKING: build_tour_booking_row,
    ImportDomain.SPECIAL_REQUEST: build_special_request_row,
}

ROW_TYPES: Final[dict[ImportDomain, type[CanonicalRowT]]] = {
    ImportDomain.GUEST: GuestRow,
    ImportDomain.VENDOR: VendorRow,
    ImportDomain.TRANSFER: TransferRow,
    ImportDomain.TOUR_BOOKING: TourBookingRow,
    ImportDomain.SPECIAL_REQUEST: SpecialRequestRow,
}


def build_rows(records: list[SourceRecord], domain: ImportDomain) -> list[CanonicalRowT]:
    try:
        builder = ROW_BUILDERS[domain]
    except KeyError:
        raise ValueError(f"No delimited import for domain {domain!r}") from None
    return [builder(record) for record in records]


def canonicalize(text: str, domain: ImportDomain) -> list[CanonicalRowT]:
    """Parse delimited export text straight into typed rows for ``domain``."""

    return build_rows(parse_delimited(text), domain)

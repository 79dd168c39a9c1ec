"""Date and time parsing for spreadsheet and PMS exports.

Accepted date shapes:

* ``M/D/YYYY`` and ``M/D/YY`` (US order, as written by the legacy spreadsheets)
* ``YYYY-MM-DD``, optionally followed by a time part
* ``Weekday, Month D, YYYY`` (English long form; the weekday is optional)

Anything else, an impossible calendar day, or a year outside the caller's bounds
is a parse failure and yields ``None``. Three source-specific rules live in their
own functions (``anchor_two_digit_year``, ``pivot_pms_year`` and
``repair_activity_year``) so they can be tested apart from the general parser.
"""

from __future__ import annotations

import re
from datetime import date, time
from typing import Final

DEFAULT_MIN_YEAR: Final[int] = 1990
DEFAULT_MAX_YEAR: Final[int] = 2100

# The activity sheet export wrote typo years (2040, 2923, ...) for bookings
# that all happened before the sheet was retired in 2026.
ACTIVITY_YEAR_CUTOFF: Final[int] = 2030
ACTIVITY_REPAIRED_YEAR: Final[int] = 2026

PMS_CENTURY_PIVOT: Final[int] = 50

_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_LONG = re.compile(r"^(?:[A-Za-z]+,\s*)?([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")
_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp]\.?[Mm]\.?)?$")

_MONTHS: Final[dict[str, int]] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

type DateParts = tuple[int, int, int]


def anchor_two_digit_year(year: int) -> int:
    """Map a two-digit year onto the 2000s (``99`` -> ``2099``).

    The spreadsheets all postdate 2000, so they get no century pivot.
    """

    return 2000 + year


def pivot_pms_year(year: int) -> int:
    """PMS two-digit years pivot at 50: ``49`` -> ``2049``, ``50`` -> ``1950``.

    Results below ``DEFAULT_MIN_YEAR`` still fail the bounds check.
    """

    if year < PMS_CENTURY_PIVOT:
        return 2000 + year
    return 1900 + year


def repair_activity_year(year: int) -> int:
    """Collapse typo years of the activity sheet export onto its last live year.

    Only for the date columns of the tour-booking sheet; see ``parse_activity_date``.
    """

    if year > ACTIVITY_YEAR_CUTOFF:
        return ACTIVITY_REPAIRED_YEAR
    return year


def _month_number(name: str) -> int | None:
    lowered = name.lower()
    if lowered in _MONTHS:
        return _MONTHS[lowered]
    if len(lowered) >= 3:
        for month_name, number in _MONTHS.items():
            if month_name.startswith(lowered):
                return number
    return None


def split_date(value: str) -> DateParts | None:
    """Split a raw date into ``(year, month, day)`` without validating the calendar."""

    text = value.strip()
    if not text:
        return None

    if match := _SLASH.match(text):
        month, day, year_text = int(match[1]), int(match[2]), match[3]
        year = int(year_text)
        if len(year_text) == 2:
            year = anchor_two_digit_year(year)
        return year, month, day

    if match := _ISO.match(text):
        year, month, day = int(match[1]), int(match[2]), int(match[3])
        if month > 12 and day <= 12:
            month, day = day, month
        return year, month, day

    if match := _LONG.match(text):
        month = _month_number(match[1])
        if month is None:
            return None
        return int(match[3]), month, int(match[2])

    return None


def _build(parts: DateParts | None, min_year: int, max_year: int) -> date | None:
    if parts is None:
        return None
    year, month, day = parts
    if not min_year <= year <= max_year:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(
    value: str | None,
    *,
    min_year: int = DEFAULT_MIN_YEAR,
    max_year: int = DEFAULT_MAX_YEAR,
) -> date | None:
    if not value:
        return None
    return _build(split_date(value), min_year, max_year)


def parse_activity_date(value: str | None) -> date | None:
    """Parse a tour-booking sheet date, applying ``repair_activity_year``."""

    if not value:
        return None
    parts = split_date(value)
    if parts is None:
        return None
    year, month, day = parts
    return _build((repair_activity_year(year), month, day), DEFAULT_MIN_YEAR, DEFAULT_MAX_YEAR)


def parse_pms_date(value: str | None) -> date | None:
    """PMS exports write ``D/M/YY``; ISO dates are accepted as well."""

    if not value:
        return None
    text = value.strip()
    if match := _SLASH.match(text):
        day, month, year_text = int(match[1]), int(match[2]), match[3]
        year = int(year_text)
        if len(year_text) == 2:
            year = pivot_pms_year(year)
        return _build((year, month, day), DEFAULT_MIN_YEAR, DEFAULT_MAX_YEAR)
    return parse_date(text)


def parse_time(value: str | None) -> time | None:
    if not value:
        return None
    match = _TIME.match(value.strip())
    if match is None:
        return None
    hour, minute = int(match[1]), int(match[2])
    second = int(match[3]) if match[3] else 0
    meridiem = match[4]
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        is_pm = meridiem[0].lower() == "p"
        hour = hour % 12 + (12 if is_pm else 0)
    try:
        return time(hour, minute, second)
    except ValueError:
        return None

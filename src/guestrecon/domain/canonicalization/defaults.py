"""Every silent data-repair default applied while canonicalizing legacy exports.

Historical exports are dirty; rather than rejecting a row over a blank or garbled
number these values are substituted. Keep each one here so it can be reviewed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Final

from guestrecon.domain.model import DEFAULT_VENDOR_COLOR, BookingStatus, ProfileType, VendorType

# A booking covers at least the guest who made it.
DEFAULT_GUEST_COUNT: Final[int] = 1

# A transfer carries at least the guest it was booked for.
DEFAULT_PASSENGER_COUNT: Final[int] = 1

# PMS rows without PERSONS are single occupancy in the feed's own reports.
DEFAULT_PMS_PERSONS: Final[int] = 1

# Unknown status vocabulary must be re-confirmed by staff, so it lands as pending.
DEFAULT_STATUS: Final[BookingStatus] = BookingStatus.PENDING

# An unreadable price is unknown, not free.
DEFAULT_PRICE: Final[Decimal | None] = None

# Spreadsheet vendors without a usable category.
DEFAULT_VENDOR_TYPE: Final[VendorType] = VendorType.OTHER

# Neutral grey tag used by the staff UI for uncategorised vendors.
DEFAULT_COLOR_CODE: Final[str] = DEFAULT_VENDOR_COLOR

# Vendor sheets only list suppliers in use unless marked otherwise.
DEFAULT_VENDOR_ACTIVE: Final[bool] = True

# Names without a staff/visitor keyword are hotel guests.
DEFAULT_PROFILE_TYPE: Final[ProfileType] = ProfileType.GUEST

# PMS status columns left blank by the export.
DEFAULT_PMS_STATUS: Final[str] = "RESERVED"
DEFAULT_PMS_SHORT_STATUS: Final[str] = "RESV"

# Zero-valued legacy stats are kept as zero rather than dropped.
DEFAULT_STAT_VALUE: Final[Decimal] = Decimal(0)

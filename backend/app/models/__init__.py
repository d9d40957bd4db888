"""ORM models package export."""

from app.models.availability import AvailabilityBlock, RecurringBlock
from app.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    OPEN_BOOKING_STATUSES,
    Booking,
    BookingStatus,
)
from app.models.company import Company
from app.models.listing import (
    LISTING_MODELS,
    DriverListing,
    FuelType,
    Listing,
    ListingKind,
    ListingStatus,
    VehicleListing,
    VehicleType,
)

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "OPEN_BOOKING_STATUSES",
    "LISTING_MODELS",
    "AvailabilityBlock",
    "Booking",
    "BookingStatus",
    "Company",
    "DriverListing",
    "FuelType",
    "Listing",
    "ListingKind",
    "ListingStatus",
    "RecurringBlock",
    "VehicleListing",
    "VehicleType",
]

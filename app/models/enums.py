from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    VENUE_OWNER = "venue_owner"


class VenueStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

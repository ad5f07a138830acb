"""Domain Enums"""
from enum import Enum


class ResourceKind(str, Enum):
    GUIDE = "guide"
    VEHICLE = "vehicle"
    HOTEL_ROOM = "hotelRoom"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


class UserRole(str, Enum):
    TOURIST = "tourist"
    GUIDE = "guide"
    VEHICLE_OWNER = "vehicle_owner"
    HOTEL_OWNER = "hotel_owner"
    ADMIN = "admin"


class RejectionReason(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    RESOURCE_UNAVAILABLE = "ResourceUnavailable"
    INVALID_INTERVAL = "InvalidInterval"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    BLACKOUT_CONFLICT = "BlackoutConflict"
    BOOKING_CONFLICT = "BookingConflict"
    FORBIDDEN = "Forbidden"
    ALREADY_TERMINAL = "AlreadyTerminal"
    INVALID_TRANSITION = "InvalidTransition"
    ALREADY_REVIEWED = "AlreadyReviewed"

"""Booking Lifecycle Enums"""

from enum import StrEnum


class BookingStatus(StrEnum):
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    NO_SHOW = 'no-show'
    IN_TRANSIT = 'in-transit'


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'
    PARTIALLY_REFUNDED = 'partially-refunded'


class PaymentMethod(StrEnum):
    CARD = 'card'
    WALLET = 'wallet'
    UPI = 'upi'
    NETBANKING = 'netbanking'
    CASH = 'cash'


class RefundStatus(StrEnum):
    INITIATED = 'initiated'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


class CancellationReason(StrEnum):
    USER_REQUEST = 'user-request'
    OPERATOR_CANCELLED = 'operator-cancelled'
    WEATHER = 'weather'
    TECHNICAL_ISSUE = 'technical-issue'
    ROUTE_SUSPENDED = 'route-suspended'
    OTHER = 'other'


class Gender(StrEnum):
    MALE = 'male'
    FEMALE = 'female'
    OTHER = 'other'

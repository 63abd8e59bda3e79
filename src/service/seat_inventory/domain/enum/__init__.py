"""Seat Inventory Domain Enums"""

from src.service.seat_inventory.domain.enum.booking_status import (
    BookingStatus,
    CancellationReason,
    Gender,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from src.service.seat_inventory.domain.enum.seat_status import SeatStatus, SeatType

__all__ = [
    'BookingStatus',
    'CancellationReason',
    'Gender',
    'PaymentMethod',
    'PaymentStatus',
    'RefundStatus',
    'SeatStatus',
    'SeatType',
]

"""Seat Inventory Application DTOs"""

from src.service.seat_inventory.app.dto.booking_dto import CancelBookingResult
from src.service.seat_inventory.app.dto.seat_hold_dto import SeatHold
from src.service.seat_inventory.app.dto.seat_locking_dto import (
    CancelInventoryResult,
    ConfirmBookingResult,
    ExtendSeatLockResult,
    LockSeatsResult,
    LockStatistics,
    ReleaseExpiredLocksResult,
    ReleaseSeatsResult,
)


__all__ = [
    'CancelBookingResult',
    'CancelInventoryResult',
    'ConfirmBookingResult',
    'ExtendSeatLockResult',
    'LockSeatsResult',
    'LockStatistics',
    'ReleaseExpiredLocksResult',
    'ReleaseSeatsResult',
    'SeatHold',
]

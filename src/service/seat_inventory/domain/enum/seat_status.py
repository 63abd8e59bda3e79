"""Seat Status Enums"""

from enum import StrEnum


class SeatStatus(StrEnum):
    AVAILABLE = 'available'
    LOCKED = 'locked'
    BOOKED = 'booked'
    BLOCKED = 'blocked'  # operator-set, never touched by locking logic


class SeatType(StrEnum):
    WINDOW = 'window'
    AISLE = 'aisle'
    MIDDLE = 'middle'
    BACK_SEATS = 'back-seats'

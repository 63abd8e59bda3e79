"""Seat locking use case results."""

from datetime import datetime

import attrs


@attrs.define
class LockSeatsResult:
    locked_seats: list[str]
    lock_expiry: datetime


@attrs.define
class ConfirmBookingResult:
    booked_seats: list[str]
    booking_id: str


@attrs.define
class ReleaseSeatsResult:
    released_seats: list[str]

    @property
    def released_count(self) -> int:
        return len(self.released_seats)


@attrs.define
class ExtendSeatLockResult:
    extended_seats: list[str]
    new_expiry: datetime


@attrs.define
class CancelInventoryResult:
    booking_id: str
    released_seats: list[str]


@attrs.define
class ReleaseExpiredLocksResult:
    cleaned_count: int
    inventories_touched: int = 0
    inventories_skipped: int = 0
    inventories_failed: int = 0


@attrs.define
class LockStatistics:
    total_inventories: int
    total_seats: int
    locked_seats: int
    booked_seats: int
    available_seats: int
    blocked_seats: int
    lock_utilization: float  # percent, two decimals
    booking_utilization: float

"""
Seat inventory error taxonomy

Permanent errors (caller must change the request) vs. retryable errors
(safe to retry with backoff) are told apart by ``retryable``.
"""

from datetime import date
from typing import Sequence

from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
)


class SeatUnavailableError(ConflictError):
    code = 'SEAT_UNAVAILABLE'

    def __init__(self, seat_numbers: Sequence[str]) -> None:
        self.seat_numbers = list(seat_numbers)
        super().__init__(f'Seats {", ".join(self.seat_numbers)} are not available')


class LockAcquisitionError(ConflictError):
    code = 'LOCK_CONTENTION'
    retryable = True

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            'Could not acquire booking lock. '
            'Another operation is in progress for this route/date, please retry.'
        )


class OwnershipMismatchError(ForbiddenError):
    code = 'SEAT_OWNERSHIP_MISMATCH'

    def __init__(self, seat_numbers: Sequence[str], *, expired: bool = False) -> None:
        self.seat_numbers = list(seat_numbers)
        self.expired = expired
        reason = 'hold has expired' if expired else 'are not locked by this user'
        super().__init__(f'Seats {", ".join(self.seat_numbers)} {reason}')


class InventoryNotFoundError(NotFoundError):
    code = 'INVENTORY_NOT_FOUND'

    def __init__(self, route_id: str, travel_date: date) -> None:
        super().__init__(f'Seat availability not found for route {route_id} on {travel_date}')


class RouteNotFoundError(NotFoundError):
    code = 'ROUTE_NOT_FOUND'

    def __init__(self, route_id: str) -> None:
        super().__init__(f'Route {route_id} not found')


class BookedSeatsNotFoundError(NotFoundError):
    code = 'BOOKED_SEATS_NOT_FOUND'

    def __init__(self, booking_id: str) -> None:
        super().__init__(f'No booked seats found for booking {booking_id}')


class BookingNotFoundError(NotFoundError):
    code = 'BOOKING_NOT_FOUND'

    def __init__(self, booking_id: str) -> None:
        super().__init__(f'Booking {booking_id} not found')


class HoldNotFoundError(NotFoundError):
    code = 'HOLD_NOT_FOUND'

    def __init__(self, user_id: str) -> None:
        super().__init__(f'No active seat locks found for user {user_id}')


class PassengerNotFoundError(NotFoundError):
    code = 'PASSENGER_NOT_FOUND'

    def __init__(self, seat_number: str) -> None:
        super().__init__(f'Passenger for seat {seat_number} not found')


class BookingNotCancellableError(DomainError):
    code = 'BOOKING_NOT_CANCELLABLE'


class BookingIdCollisionError(ConflictError):
    code = 'BOOKING_ID_COLLISION'
    retryable = True

    def __init__(self) -> None:
        super().__init__('Could not generate a unique booking id')

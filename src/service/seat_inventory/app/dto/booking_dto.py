"""Booking lifecycle use case results."""

import attrs

from src.service.seat_inventory.domain.entity.booking_entity import Booking


@attrs.define
class CancelBookingResult:
    booking: Booking
    released_seats: list[str]

    @property
    def refund_amount(self) -> int:
        return self.booking.cancellation.refund_amount if self.booking.cancellation else 0

    @property
    def cancellation_fee(self) -> int:
        return self.booking.cancellation.cancellation_fee if self.booking.cancellation else 0

from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.domain.enum import (
    BookingStatus,
    CancellationReason,
    PaymentStatus,
    RefundStatus,
)
from src.service.seat_inventory.domain.seat_inventory_errors import (
    BookingNotCancellableError,
    PassengerNotFoundError,
)
from src.service.seat_inventory.domain.value_object import (
    BookingUser,
    Cancellation,
    CancellationCheck,
    CancellationQuote,
    Journey,
    Modification,
    Passenger,
    Payment,
    RefundDetails,
    RouteRef,
)


# Hard cutoff before departure, below which a booking can no longer be cancelled
CANCELLATION_CUTOFF_HOURS = 2

# (minimum hours until departure, refund percentage), checked top-down
REFUND_TIERS: tuple[tuple[int, int], ...] = (
    (48, 90),
    (24, 75),
    (4, 50),
)


def refund_percentage_for(hours_until_departure: float) -> int:
    for min_hours, percentage in REFUND_TIERS:
        if hours_until_departure >= min_hours:
            return percentage
    return 0


@attrs.define
class Booking:
    booking_id: str
    user: BookingUser
    route: RouteRef
    journey: Journey
    payment: Payment
    passengers: tuple[Passenger, ...] = attrs.field(converter=tuple, factory=tuple)
    status: BookingStatus = attrs.field(default=BookingStatus.CONFIRMED, converter=BookingStatus)
    cancellation: Optional[Cancellation] = None
    modifications: tuple[Modification, ...] = attrs.field(converter=tuple, factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_passengers(self) -> int:
        return len(self.passengers)

    @property
    def seat_numbers(self) -> list[str]:
        return [passenger.seat_number for passenger in self.passengers]

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        booking_id: str,
        user: BookingUser,
        route: RouteRef,
        journey: Journey,
        passengers: list[Passenger],
        payment: Payment,
        now: datetime,
    ) -> 'Booking':
        if not passengers:
            raise ValidationError('A booking needs at least one passenger')

        seat_numbers = [passenger.seat_number for passenger in passengers]
        if len(set(seat_numbers)) != len(seat_numbers):
            raise ValidationError('Each passenger must occupy a different seat')

        return cls(
            booking_id=booking_id,
            user=user,
            route=route,
            journey=journey,
            passengers=tuple(passengers),
            payment=payment,
            status=BookingStatus.CONFIRMED,
            created_at=now,
            updated_at=now,
        )

    def can_be_cancelled(self, *, now: datetime) -> CancellationCheck:
        if self.status != BookingStatus.CONFIRMED:
            return CancellationCheck(allowed=False, reason='Booking is not in confirmed status')

        hours_until_departure = (self.journey.departure_at() - now).total_seconds() / 3600
        if hours_until_departure < CANCELLATION_CUTOFF_HOURS:
            return CancellationCheck(
                allowed=False,
                reason=f'Cannot cancel booking less than {CANCELLATION_CUTOFF_HOURS} hours before departure',
            )

        return CancellationCheck(allowed=True, hours_until_departure=hours_until_departure)

    def calculate_cancellation_fee(self, *, now: datetime) -> CancellationQuote:
        """
        Quote the refund for cancelling at ``now``.

        A disallowed cancellation forfeits the whole amount. An allowed one
        falls into a refund tier by hours until departure; the 2-4 hour window
        is cancellable at a 100% fee.
        """
        total = self.payment.total_amount
        check = self.can_be_cancelled(now=now)
        if not check.allowed:
            return CancellationQuote(refund_amount=0, cancellation_fee=total, refund_percentage=0)

        percentage = refund_percentage_for(check.hours_until_departure or 0.0)
        # Half-up rounding on integer money
        refund_amount = (total * percentage + 50) // 100
        return CancellationQuote(
            refund_amount=refund_amount,
            cancellation_fee=total - refund_amount,
            refund_percentage=percentage,
        )

    @Logger.io
    def update_status(
        self,
        new_status: BookingStatus,
        *,
        now: datetime,
        reason: Optional[str] = None,
        modified_by: Optional[str] = None,
    ) -> 'Booking':
        modification = Modification(
            modified_at=now,
            field='status',
            old_value=str(self.status),
            new_value=str(new_status),
            reason=reason,
            modified_by=modified_by,
        )
        return attrs.evolve(
            self,
            status=new_status,
            modifications=(*self.modifications, modification),
            updated_at=now,
        )

    @Logger.io
    def cancel(
        self,
        *,
        now: datetime,
        reason: CancellationReason = CancellationReason.USER_REQUEST,
        cancelled_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> 'Booking':
        """
        Cancel a confirmed booking, recording the fee and an initiated refund

        Raises:
            BookingNotCancellableError: wrong status or past the departure cutoff
        """
        check = self.can_be_cancelled(now=now)
        if not check.allowed:
            raise BookingNotCancellableError(check.reason or 'Booking cannot be cancelled')

        quote = self.calculate_cancellation_fee(now=now)
        cancelled = self.update_status(
            BookingStatus.CANCELLED, now=now, reason=str(reason), modified_by=cancelled_by
        )

        payment = self.payment
        if quote.refund_amount > 0:
            payment_status = (
                PaymentStatus.REFUNDED
                if quote.cancellation_fee == 0
                else PaymentStatus.PARTIALLY_REFUNDED
            )
            payment = attrs.evolve(
                payment,
                status=payment_status,
                refund_details=RefundDetails(
                    amount=quote.refund_amount,
                    status=RefundStatus.INITIATED,
                    reason=str(reason),
                ),
            )

        return attrs.evolve(
            cancelled,
            payment=payment,
            cancellation=Cancellation(
                cancelled_at=now,
                reason=reason,
                refund_amount=quote.refund_amount,
                cancellation_fee=quote.cancellation_fee,
                cancelled_by=cancelled_by,
                notes=notes,
            ),
        )

    @Logger.io
    def add_passenger(self, passenger: Passenger, *, now: datetime) -> 'Booking':
        if passenger.seat_number in self.seat_numbers:
            raise ValidationError(f'Seat {passenger.seat_number} already has a passenger')
        return attrs.evolve(
            self,
            passengers=(*self.passengers, passenger),
            payment=attrs.evolve(
                self.payment, total_amount=self.payment.total_amount + passenger.fare
            ),
            updated_at=now,
        )

    @Logger.io
    def remove_passenger(self, seat_number: str, *, now: datetime) -> 'Booking':
        passenger = next((p for p in self.passengers if p.seat_number == seat_number), None)
        if passenger is None:
            raise PassengerNotFoundError(seat_number)
        return attrs.evolve(
            self,
            passengers=tuple(p for p in self.passengers if p.seat_number != seat_number),
            payment=attrs.evolve(
                self.payment, total_amount=max(0, self.payment.total_amount - passenger.fare)
            ),
            updated_at=now,
        )

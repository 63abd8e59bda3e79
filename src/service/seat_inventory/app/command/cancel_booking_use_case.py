from typing import Optional

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.clock import Clock, utc_now
from src.service.seat_inventory.app.command.seat_locking_service import SeatLockingService
from src.service.seat_inventory.app.dto import CancelBookingResult
from src.service.seat_inventory.app.interface import IBookingRepo
from src.service.seat_inventory.domain.enum import BookingStatus, CancellationReason
from src.service.seat_inventory.domain.seat_inventory_errors import (
    BookedSeatsNotFoundError,
    BookingNotFoundError,
)


class CancelBookingUseCase:
    """
    Cancel a booking and give its seats back

    The booking is persisted as cancelled before the seats are released, so
    a seat never becomes available while its booking is still confirmed.
    A retry on an already-cancelled booking skips straight to the seat release.
    """

    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        seat_locking_service: SeatLockingService,
        clock: Clock = utc_now,
    ) -> None:
        self.booking_repo = booking_repo
        self.seat_locking_service = seat_locking_service
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        booking_id: str,
        reason: CancellationReason = CancellationReason.USER_REQUEST,
        cancelled_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> CancelBookingResult:
        with self.tracer.start_as_current_span(
            'use_case.cancel_booking', attributes={'booking.id': booking_id}
        ):
            booking = await self.booking_repo.get(booking_id=booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)

            if booking.status == BookingStatus.CANCELLED:
                Logger.base.info(
                    f'[IDEMPOTENCY] Booking {booking_id} already cancelled, releasing seats only'
                )
                cancelled = booking
            else:
                cancelled = booking.cancel(
                    now=self.clock(), reason=reason, cancelled_by=cancelled_by, notes=notes
                )
                await self.booking_repo.save(booking=cancelled)

            try:
                result = await self.seat_locking_service.cancel_booking(
                    route_id=cancelled.route.route_id,
                    travel_date=cancelled.journey.travel_date,
                    booking_id=booking_id,
                )
                released = result.released_seats
            except BookedSeatsNotFoundError:
                Logger.base.warning(f'⚠️ [BOOKING] Seats of {booking_id} were already released')
                released = []

        quote = cancelled.cancellation
        Logger.base.info(
            f'🚫 [BOOKING] Cancelled {booking_id}: refund {quote.refund_amount if quote else 0}, '
            f'fee {quote.cancellation_fee if quote else 0}'
        )
        return CancelBookingResult(booking=cancelled, released_seats=released)

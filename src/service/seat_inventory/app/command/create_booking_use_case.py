import random
from typing import Callable

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.clock import Clock, utc_now
from src.service.seat_inventory.app.command.seat_locking_service import SeatLockingService
from src.service.seat_inventory.app.interface import IBookingRepo
from src.service.seat_inventory.domain.booking_id import generate_booking_id
from src.service.seat_inventory.domain.entity.booking_entity import Booking
from src.service.seat_inventory.domain.seat_inventory_errors import BookingIdCollisionError
from src.service.seat_inventory.domain.value_object import (
    BookingUser,
    Journey,
    Passenger,
    Payment,
    RouteRef,
)


class CreateBookingUseCase:
    """
    Convert a user's held seats into a confirmed booking

    Flow:
    1. Generate a unique booking id (one regeneration on collision)
    2. Confirm the held seats in the inventory under its lease
    3. Persist the booking; on failure, cancel the seats back out (best effort)
    """

    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        seat_locking_service: SeatLockingService,
        clock: Clock = utc_now,
        booking_id_prefix: str = settings.BOOKING_ID_PREFIX,
        randint: Callable[[int, int], int] = random.randint,
    ) -> None:
        self.booking_repo = booking_repo
        self.seat_locking_service = seat_locking_service
        self.clock = clock
        self.booking_id_prefix = booking_id_prefix
        self.randint = randint
        self.tracer = trace.get_tracer(__name__)

    async def _generate_unique_booking_id(self) -> str:
        now = self.clock()
        booking_id = generate_booking_id(
            now=now, prefix=self.booking_id_prefix, randint=self.randint
        )
        if not await self.booking_repo.exists(booking_id=booking_id):
            return booking_id

        Logger.base.warning(f'⚠️ [BOOKING] Booking id collision on {booking_id}, regenerating')
        booking_id = generate_booking_id(
            now=now, prefix=self.booking_id_prefix, randint=self.randint
        )
        if await self.booking_repo.exists(booking_id=booking_id):
            raise BookingIdCollisionError()
        return booking_id

    @Logger.io
    async def execute(
        self,
        *,
        user: BookingUser,
        route: RouteRef,
        journey: Journey,
        passengers: list[Passenger],
        payment: Payment,
    ) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={'route.id': route.route_id, 'user.id': user.user_id},
        ) as span:
            booking_id = await self._generate_unique_booking_id()
            span.set_attribute('booking.id', booking_id)

            booking = Booking.create(
                booking_id=booking_id,
                user=user,
                route=route,
                journey=journey,
                passengers=passengers,
                payment=payment,
                now=self.clock(),
            )

            await self.seat_locking_service.confirm_booking(
                route_id=route.route_id,
                travel_date=journey.travel_date,
                seat_numbers=booking.seat_numbers,
                user_id=user.user_id,
                booking_id=booking_id,
            )

            try:
                await self.booking_repo.save(booking=booking)
            except Exception:
                await self._compensate(booking)
                raise

        Logger.base.info(
            f'🎫 [BOOKING] Created {booking_id} for {user.user_id} '
            f'({booking.total_passengers} passenger(s), seats {booking.seat_numbers})'
        )
        return booking

    async def _compensate(self, booking: Booking) -> None:
        try:
            await self.seat_locking_service.cancel_booking(
                route_id=booking.route.route_id,
                travel_date=booking.journey.travel_date,
                booking_id=booking.booking_id,
            )
            Logger.base.warning(
                f'↩️ [BOOKING] Released seats of unsaved booking {booking.booking_id}'
            )
        except Exception as e:
            Logger.base.error(
                f'❌ [BOOKING] Compensation failed for {booking.booking_id}, '
                f'seats {booking.seat_numbers} stay booked: {e}'
            )

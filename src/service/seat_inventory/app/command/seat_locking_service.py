"""
Seat Locking Service

Every mutator follows the same critical section, scoped to one
(route_id, travel_date) inventory:

1. Acquire the operation lease (non-blocking; contention -> LockAcquisitionError)
2. Load the inventory (lock_seats/initialize create it lazily from the route template)
3. Apply one SeatInventory transition
4. Persist, then refresh the per-user holds index
5. Release the lease on every exit path
"""

import time
from contextlib import asynccontextmanager, contextmanager
from datetime import date, datetime, timedelta
from typing import AsyncIterator, Iterator, Optional, Sequence

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.seat_inventory.app.clock import Clock, utc_now
from src.service.seat_inventory.app.dto import (
    CancelInventoryResult,
    ConfirmBookingResult,
    ExtendSeatLockResult,
    LockSeatsResult,
    ReleaseSeatsResult,
    SeatHold,
)
from src.service.seat_inventory.app.interface import (
    IDistributedLock,
    IRouteTemplateQueryRepo,
    ISeatHoldIndex,
    ISeatInventoryRepo,
)
from src.service.seat_inventory.domain.entity.route_template_entity import RouteTemplate
from src.service.seat_inventory.domain.entity.seat_inventory_entity import SeatInventory
from src.service.seat_inventory.domain.seat_inventory_errors import (
    HoldNotFoundError,
    InventoryNotFoundError,
    LockAcquisitionError,
    RouteNotFoundError,
)
from src.service.seat_inventory.domain.validators import (
    parse_travel_date,
    validate_positive_minutes,
    validate_required_string,
    validate_seat_numbers,
)
from src.service.seat_inventory.domain.value_object import InventoryRef


def lease_key(ref: InventoryRef) -> str:
    return f'booking_lock:{ref}'


class SeatLockingService:
    def __init__(
        self,
        *,
        inventory_repo: ISeatInventoryRepo,
        route_template_repo: IRouteTemplateQueryRepo,
        distributed_lock: IDistributedLock,
        hold_index: ISeatHoldIndex,
        clock: Clock = utc_now,
        hold_minutes: int = settings.SEAT_HOLD_MINUTES,
        lease_ttl_seconds: int = settings.OPERATION_LOCK_TTL_SECONDS,
        extension_minutes: int = settings.HOLD_EXTENSION_MINUTES,
        index_ttl_buffer_minutes: int = settings.HOLD_INDEX_TTL_BUFFER_MINUTES,
    ) -> None:
        self.inventory_repo = inventory_repo
        self.route_template_repo = route_template_repo
        self.distributed_lock = distributed_lock
        self.hold_index = hold_index
        self.clock = clock
        self.hold_minutes = hold_minutes
        self.lease_ttl_seconds = lease_ttl_seconds
        self.extension_minutes = extension_minutes
        self.index_ttl_buffer_minutes = index_ttl_buffer_minutes
        self.tracer = trace.get_tracer(__name__)

    # ------------------------------------------------------------------
    # Critical section plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _lease(self, *, ref: InventoryRef, holder: str) -> AsyncIterator[None]:
        async with self.distributed_lock.hold(
            key=lease_key(ref), holder=holder, ttl_seconds=self.lease_ttl_seconds
        ):
            metrics.record_lease(acquired=True)
            yield

    @contextmanager
    def _observe(self, operation: str, **attributes: str) -> Iterator[None]:
        start = time.perf_counter()
        with self.tracer.start_as_current_span(
            f'seat_locking.{operation}', attributes=attributes
        ) as span:
            try:
                yield
            except CustomBaseError as e:
                if isinstance(e, LockAcquisitionError):
                    metrics.record_lease(acquired=False)
                span.set_attribute('error.code', e.code)
                metrics.record_seat_operation(
                    operation=operation, result=e.code, duration=time.perf_counter() - start
                )
                raise
            except Exception:
                metrics.record_seat_operation(
                    operation=operation, result='error', duration=time.perf_counter() - start
                )
                raise
            metrics.record_seat_operation(
                operation=operation, result='ok', duration=time.perf_counter() - start
            )

    @staticmethod
    def _ref(route_id: str, travel_date: date | str) -> InventoryRef:
        return InventoryRef(
            validate_required_string(route_id, 'route_id'), parse_travel_date(travel_date)
        )

    async def _get_existing(self, ref: InventoryRef) -> SeatInventory:
        inventory = await self.inventory_repo.get(ref=ref)
        if inventory is None:
            raise InventoryNotFoundError(ref.route_id, ref.travel_date)
        return inventory

    async def _load_or_initialize(
        self,
        ref: InventoryRef,
        *,
        now: datetime,
        template: Optional[RouteTemplate] = None,
    ) -> SeatInventory:
        """Caller must already hold the lease for ``ref``."""
        inventory = await self.inventory_repo.get(ref=ref)
        if inventory is not None:
            return inventory

        if template is None:
            template = await self.route_template_repo.get(route_id=ref.route_id)
        if template is None:
            raise RouteNotFoundError(ref.route_id)

        inventory = SeatInventory.initialize(
            template=template, travel_date=ref.travel_date, now=now
        )
        await self.inventory_repo.save(inventory=inventory)
        Logger.base.info(
            f'🪑 [SEAT-INIT] Initialized inventory {ref} with {inventory.summary.total_seats} seats'
        )
        return inventory

    # ------------------------------------------------------------------
    # Holds index (non-authoritative, never fails a committed mutation)
    # ------------------------------------------------------------------

    async def _record_hold(
        self,
        *,
        user_id: str,
        ref: InventoryRef,
        seat_numbers: Sequence[str],
        now: datetime,
        lock_expiry: datetime,
        ttl_seconds: int,
    ) -> None:
        existing = await self.hold_index.get(user_id=user_id)
        merged = list(seat_numbers)
        if existing and existing.covers(route_id=ref.route_id, travel_date=ref.travel_date):
            merged = [s for s in existing.seat_numbers if s not in seat_numbers] + merged

        await self.hold_index.put(
            hold=SeatHold(
                user_id=user_id,
                route_id=ref.route_id,
                travel_date=ref.travel_date,
                seat_numbers=tuple(merged),
                locked_at=now,
                expires_at=lock_expiry,
            ),
            ttl_seconds=ttl_seconds,
        )

    async def _forget_held_seats(
        self, *, user_id: str, ref: InventoryRef, seat_numbers: Sequence[str], now: datetime
    ) -> None:
        try:
            existing = await self.hold_index.get(user_id=user_id)
            if not existing or not existing.covers(
                route_id=ref.route_id, travel_date=ref.travel_date
            ):
                return

            remaining = tuple(s for s in existing.seat_numbers if s not in seat_numbers)
            remaining_ttl = int((existing.expires_at - now).total_seconds())
            if not remaining or remaining_ttl <= 0:
                await self.hold_index.delete(user_id=user_id)
                return

            await self.hold_index.put(
                hold=SeatHold(
                    user_id=user_id,
                    route_id=existing.route_id,
                    travel_date=existing.travel_date,
                    seat_numbers=remaining,
                    locked_at=existing.locked_at,
                    expires_at=existing.expires_at,
                ),
                ttl_seconds=remaining_ttl,
            )
        except Exception as e:
            Logger.base.warning(f'⚠️ [SEAT-HOLDS] Failed to update holds index for {user_id}: {e}')

    async def _compensate_lock(
        self, *, ref: InventoryRef, seat_numbers: Sequence[str], user_id: str
    ) -> None:
        """Best-effort rollback of a lock whose follow-up steps failed. Never raises."""
        try:
            inventory = await self.inventory_repo.get(ref=ref)
            if inventory is None:
                return
            reverted, released = inventory.release(
                seat_numbers=seat_numbers, holder=user_id, now=self.clock()
            )
            if released:
                await self.inventory_repo.save(inventory=reverted)
            Logger.base.warning(
                f'↩️ [SEAT-LOCK] Compensated {len(released)} seat(s) on {ref} for {user_id}'
            )
        except Exception as e:
            Logger.base.error(f'❌ [SEAT-LOCK] Compensating release failed on {ref}: {e}')

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @Logger.io
    async def lock_seats(
        self,
        *,
        route_id: str,
        travel_date: date | str,
        seat_numbers: Sequence[str],
        user_id: str,
        hold_minutes: Optional[int] = None,
    ) -> LockSeatsResult:
        """
        Hold seats for ``user_id`` for ``hold_minutes`` (all-or-nothing)

        Raises:
            SeatUnavailableError: any requested seat is not available
            LockAcquisitionError: another operation holds the lease (retryable)
            RouteNotFoundError: inventory missing and no route template to seed it
        """
        ref = self._ref(route_id, travel_date)
        seats = validate_seat_numbers(seat_numbers)
        validate_required_string(user_id, 'user_id')
        minutes = validate_positive_minutes(
            self.hold_minutes if hold_minutes is None else hold_minutes, 'hold_minutes'
        )

        with self._observe('lock', **{'inventory.ref': str(ref), 'user.id': user_id}):
            async with self._lease(ref=ref, holder=user_id):
                now = self.clock()
                lock_expiry = now + timedelta(minutes=minutes)
                inventory = await self._load_or_initialize(ref, now=now)
                locked = inventory.lock(
                    seat_numbers=seats, holder=user_id, lock_expiry=lock_expiry, now=now
                )

                try:
                    await self.inventory_repo.save(inventory=locked)
                    await self._record_hold(
                        user_id=user_id,
                        ref=ref,
                        seat_numbers=seats,
                        now=now,
                        lock_expiry=lock_expiry,
                        ttl_seconds=minutes * 60,
                    )
                except Exception:
                    await self._compensate_lock(ref=ref, seat_numbers=seats, user_id=user_id)
                    raise

        Logger.base.info(
            f'🔒 [SEAT-LOCK] {user_id} locked {len(seats)} seat(s) on {ref} until {lock_expiry.isoformat()}'
        )
        return LockSeatsResult(locked_seats=seats, lock_expiry=lock_expiry)

    @Logger.io
    async def confirm_booking(
        self,
        *,
        route_id: str,
        travel_date: date | str,
        seat_numbers: Sequence[str],
        user_id: str,
        booking_id: str,
    ) -> ConfirmBookingResult:
        """
        Turn the user's held seats into booked seats carrying ``booking_id``

        Raises:
            OwnershipMismatchError: a seat is not held by the user, or the hold expired
            InventoryNotFoundError: no inventory for the route/date
        """
        ref = self._ref(route_id, travel_date)
        seats = validate_seat_numbers(seat_numbers)
        validate_required_string(user_id, 'user_id')
        validate_required_string(booking_id, 'booking_id')

        with self._observe('confirm', **{'inventory.ref': str(ref), 'booking.id': booking_id}):
            async with self._lease(ref=ref, holder=user_id):
                now = self.clock()
                inventory = await self._get_existing(ref)
                booked = inventory.confirm(
                    seat_numbers=seats, holder=user_id, booking_id=booking_id, now=now
                )
                await self.inventory_repo.save(inventory=booked)
                await self._forget_held_seats(
                    user_id=user_id, ref=ref, seat_numbers=seats, now=now
                )

        Logger.base.info(f'🎫 [SEAT-CONFIRM] {booking_id}: booked {seats} on {ref}')
        return ConfirmBookingResult(booked_seats=seats, booking_id=booking_id)

    @Logger.io
    async def release_seats(
        self,
        *,
        route_id: str,
        travel_date: date | str,
        seat_numbers: Sequence[str],
        user_id: str,
    ) -> ReleaseSeatsResult:
        """Release the user's holds; seats the user does not hold are skipped."""
        ref = self._ref(route_id, travel_date)
        seats = validate_seat_numbers(seat_numbers)
        validate_required_string(user_id, 'user_id')

        with self._observe('release', **{'inventory.ref': str(ref), 'user.id': user_id}):
            async with self._lease(ref=ref, holder=user_id):
                now = self.clock()
                inventory = await self._get_existing(ref)
                released_inventory, released = inventory.release(
                    seat_numbers=seats, holder=user_id, now=now
                )
                if released:
                    await self.inventory_repo.save(inventory=released_inventory)
                await self._forget_held_seats(
                    user_id=user_id, ref=ref, seat_numbers=seats, now=now
                )

        Logger.base.info(f'🔓 [SEAT-RELEASE] {user_id} released {len(released)} seat(s) on {ref}')
        return ReleaseSeatsResult(released_seats=released)

    @Logger.io
    async def extend_seat_lock(
        self, *, user_id: str, additional_minutes: Optional[int] = None
    ) -> ExtendSeatLockResult:
        """
        Push the expiry of the user's current holds to now + additional_minutes

        The holds index only locates the inventory; the seats come from the
        inventory itself.

        Raises:
            HoldNotFoundError: no holds index entry, or the user no longer validly holds any seat
        """
        validate_required_string(user_id, 'user_id')
        minutes = validate_positive_minutes(
            self.extension_minutes if additional_minutes is None else additional_minutes,
            'additional_minutes',
        )
        hold = await self.hold_index.get(user_id=user_id)
        if hold is None:
            raise HoldNotFoundError(user_id)
        ref = InventoryRef(hold.route_id, hold.travel_date)

        with self._observe('extend', **{'inventory.ref': str(ref), 'user.id': user_id}):
            async with self._lease(ref=ref, holder=user_id):
                now = self.clock()
                new_expiry = now + timedelta(minutes=minutes)
                inventory = await self._get_existing(ref)
                extended_inventory, extended = inventory.extend_holds(
                    seat_numbers=[seat.seat_number for seat in inventory.seats_held_by(user_id)],
                    holder=user_id,
                    new_expiry=new_expiry,
                    now=now,
                )
                if not extended:
                    raise HoldNotFoundError(user_id)
                await self.inventory_repo.save(inventory=extended_inventory)

                try:
                    await self.hold_index.put(
                        hold=SeatHold(
                            user_id=user_id,
                            route_id=ref.route_id,
                            travel_date=ref.travel_date,
                            seat_numbers=tuple(extended),
                            locked_at=hold.locked_at,
                            expires_at=new_expiry,
                        ),
                        ttl_seconds=(minutes + self.index_ttl_buffer_minutes) * 60,
                    )
                except Exception as e:
                    Logger.base.warning(
                        f'⚠️ [SEAT-HOLDS] Failed to refresh holds index for {user_id}: {e}'
                    )

        Logger.base.info(
            f'⏱️ [SEAT-EXTEND] {user_id} extended {len(extended)} seat(s) on {ref} to {new_expiry.isoformat()}'
        )
        return ExtendSeatLockResult(extended_seats=extended, new_expiry=new_expiry)

    @Logger.io
    async def cancel_booking(
        self, *, route_id: str, travel_date: date | str, booking_id: str
    ) -> CancelInventoryResult:
        """
        Return every seat booked under ``booking_id`` to available

        Raises:
            BookedSeatsNotFoundError: no seat carries the booking id
        """
        ref = self._ref(route_id, travel_date)
        validate_required_string(booking_id, 'booking_id')

        with self._observe('cancel', **{'inventory.ref': str(ref), 'booking.id': booking_id}):
            async with self._lease(ref=ref, holder=f'booking:{booking_id}'):
                inventory = await self._get_existing(ref)
                reverted, released = inventory.cancel_booking(
                    booking_id=booking_id, now=self.clock()
                )
                await self.inventory_repo.save(inventory=reverted)

        Logger.base.info(f'🚫 [SEAT-CANCEL] {booking_id}: released {released} on {ref}')
        return CancelInventoryResult(booking_id=booking_id, released_seats=released)

    @Logger.io
    async def initialize_for_route(
        self,
        *,
        route_id: str,
        travel_date: date | str,
        template: Optional[RouteTemplate] = None,
    ) -> SeatInventory:
        """Idempotent: an existing inventory is returned unchanged."""
        ref = self._ref(route_id, travel_date)

        with self._observe('initialize', **{'inventory.ref': str(ref)}):
            async with self._lease(ref=ref, holder='initializer'):
                return await self._load_or_initialize(ref, now=self.clock(), template=template)

    @Logger.io
    async def get_user_seat_holds(self, *, user_id: str) -> Optional[SeatHold]:
        return await self.hold_index.get(user_id=user_id)

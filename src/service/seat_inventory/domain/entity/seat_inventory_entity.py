"""
Seat Inventory Entity

Per route/travel-date seat state machine:

    available -> locked -> booked
    locked    -> available   (release or expiry)
    booked    -> available   (booking cancellation)
    blocked                  (operator-set, unreachable through these transitions)

Every transition returns a new SeatInventory; persisting it is the caller's
job, done while holding the operation lease for the inventory's scope.
The summary is always recomputed from the seats.
"""

from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.domain.entity.route_template_entity import RouteTemplate
from src.service.seat_inventory.domain.enum import SeatStatus, SeatType
from src.service.seat_inventory.domain.seat_inventory_errors import (
    BookedSeatsNotFoundError,
    OwnershipMismatchError,
    SeatUnavailableError,
)


@attrs.define(frozen=True)
class Seat:
    seat_number: str
    status: SeatStatus = attrs.field(converter=SeatStatus)
    price: int
    seat_type: SeatType = attrs.field(converter=SeatType)
    locked_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    lock_expiry: Optional[datetime] = None
    booked_by: Optional[str] = None
    booked_at: Optional[datetime] = None
    booking_id: Optional[str] = None

    def is_held_by(self, holder: str) -> bool:
        return self.status == SeatStatus.LOCKED and self.locked_by == holder

    def is_lock_expired(self, now: datetime) -> bool:
        return (
            self.status == SeatStatus.LOCKED
            and self.lock_expiry is not None
            and self.lock_expiry < now
        )

    def locked(self, *, holder: str, now: datetime, lock_expiry: datetime) -> 'Seat':
        return attrs.evolve(
            self,
            status=SeatStatus.LOCKED,
            locked_by=holder,
            locked_at=now,
            lock_expiry=lock_expiry,
        )

    def available(self) -> 'Seat':
        return attrs.evolve(
            self,
            status=SeatStatus.AVAILABLE,
            locked_by=None,
            locked_at=None,
            lock_expiry=None,
            booked_by=None,
            booked_at=None,
            booking_id=None,
        )

    def booked(self, *, holder: str, booking_id: str, now: datetime) -> 'Seat':
        return attrs.evolve(
            self,
            status=SeatStatus.BOOKED,
            booked_by=holder,
            booked_at=now,
            booking_id=booking_id,
            locked_by=None,
            locked_at=None,
            lock_expiry=None,
        )


@attrs.define(frozen=True)
class InventorySummary:
    total_seats: int
    available_count: int
    locked_count: int
    booked_count: int
    blocked_count: int

    @classmethod
    def from_seats(cls, seats: Iterable[Seat]) -> 'InventorySummary':
        seats = list(seats)
        counts = Counter(seat.status for seat in seats)
        return cls(
            total_seats=len(seats),
            available_count=counts[SeatStatus.AVAILABLE],
            locked_count=counts[SeatStatus.LOCKED],
            booked_count=counts[SeatStatus.BOOKED],
            blocked_count=counts[SeatStatus.BLOCKED],
        )


@attrs.define(frozen=True)
class SeatInventory:
    route_id: str
    travel_date: date
    seats: tuple[Seat, ...] = attrs.field(converter=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def summary(self) -> InventorySummary:
        return InventorySummary.from_seats(self.seats)

    def find_seat(self, seat_number: str) -> Optional[Seat]:
        return next((seat for seat in self.seats if seat.seat_number == seat_number), None)

    def seats_held_by(self, holder: str) -> list[Seat]:
        return [seat for seat in self.seats if seat.is_held_by(holder)]

    def expired_lock_seat_numbers(self, now: datetime) -> list[str]:
        return [seat.seat_number for seat in self.seats if seat.is_lock_expired(now)]

    def earliest_lock_expiry(self) -> Optional[datetime]:
        """Soonest lock_expiry among locked seats; None when nothing is held."""
        expiries = [
            seat.lock_expiry
            for seat in self.seats
            if seat.status == SeatStatus.LOCKED and seat.lock_expiry is not None
        ]
        return min(expiries, default=None)

    def _replace(self, updated: dict[str, Seat], now: datetime) -> 'SeatInventory':
        return attrs.evolve(
            self,
            seats=tuple(updated.get(seat.seat_number, seat) for seat in self.seats),
            updated_at=now,
        )

    @classmethod
    @Logger.io
    def initialize(
        cls, *, template: RouteTemplate, travel_date: date, now: datetime
    ) -> 'SeatInventory':
        seats = tuple(
            Seat(
                seat_number=seat.seat_number,
                status=SeatStatus.BLOCKED if seat.is_blocked else SeatStatus.AVAILABLE,
                price=seat.price,
                seat_type=seat.seat_type,
            )
            for seat in template.seat_map
        )
        return cls(
            route_id=template.route_id,
            travel_date=travel_date,
            seats=seats,
            created_at=now,
            updated_at=now,
        )

    @Logger.io
    def lock(
        self,
        *,
        seat_numbers: Sequence[str],
        holder: str,
        lock_expiry: datetime,
        now: datetime,
    ) -> 'SeatInventory':
        """All-or-nothing: any seat that is missing or not available aborts the batch."""
        unavailable = [
            seat_number
            for seat_number in seat_numbers
            if (seat := self.find_seat(seat_number)) is None
            or seat.status != SeatStatus.AVAILABLE
        ]
        if unavailable:
            raise SeatUnavailableError(unavailable)

        updated = {
            seat_number: self.find_seat(seat_number).locked(  # type: ignore[union-attr]
                holder=holder, now=now, lock_expiry=lock_expiry
            )
            for seat_number in seat_numbers
        }
        return self._replace(updated, now)

    @Logger.io
    def confirm(
        self,
        *,
        seat_numbers: Sequence[str],
        holder: str,
        booking_id: str,
        now: datetime,
    ) -> 'SeatInventory':
        """Locked -> booked. An expired hold is rejected even if the reaper has not run yet."""
        not_held = [
            seat_number
            for seat_number in seat_numbers
            if (seat := self.find_seat(seat_number)) is None or not seat.is_held_by(holder)
        ]
        if not_held:
            raise OwnershipMismatchError(not_held)

        expired = [
            seat_number
            for seat_number in seat_numbers
            if self.find_seat(seat_number).is_lock_expired(now)  # type: ignore[union-attr]
        ]
        if expired:
            raise OwnershipMismatchError(expired, expired=True)

        updated = {
            seat_number: self.find_seat(seat_number).booked(  # type: ignore[union-attr]
                holder=holder, booking_id=booking_id, now=now
            )
            for seat_number in seat_numbers
        }
        return self._replace(updated, now)

    def release(
        self,
        *,
        seat_numbers: Sequence[str],
        now: datetime,
        holder: Optional[str] = None,
    ) -> tuple['SeatInventory', list[str]]:
        """
        Locked -> available for the matching seats; everything else is skipped.

        Without ``holder`` any locked seat in the batch is released (expiry reclamation).
        """
        released = [
            seat.seat_number
            for seat in self.seats
            if seat.seat_number in seat_numbers
            and seat.status == SeatStatus.LOCKED
            and (holder is None or seat.locked_by == holder)
        ]
        if not released:
            return self, []
        updated = {seat_number: self.find_seat(seat_number).available() for seat_number in released}  # type: ignore[union-attr]
        return self._replace(updated, now), released

    def release_expired(self, *, now: datetime) -> tuple['SeatInventory', list[str]]:
        return self.release(seat_numbers=self.expired_lock_seat_numbers(now), now=now)

    def extend_holds(
        self,
        *,
        seat_numbers: Sequence[str],
        holder: str,
        new_expiry: datetime,
        now: datetime,
    ) -> tuple['SeatInventory', list[str]]:
        """Rewrite lock_expiry on the seats the holder still validly holds."""
        extended = [
            seat.seat_number
            for seat in self.seats
            if seat.seat_number in seat_numbers
            and seat.is_held_by(holder)
            and not seat.is_lock_expired(now)
        ]
        if not extended:
            return self, []
        updated = {
            seat_number: attrs.evolve(self.find_seat(seat_number), lock_expiry=new_expiry)
            for seat_number in extended
        }
        return self._replace(updated, now), extended

    @Logger.io
    def cancel_booking(
        self, *, booking_id: str, now: datetime
    ) -> tuple['SeatInventory', list[str]]:
        released = [
            seat.seat_number
            for seat in self.seats
            if seat.status == SeatStatus.BOOKED and seat.booking_id == booking_id
        ]
        if not released:
            raise BookedSeatsNotFoundError(booking_id)
        updated = {seat_number: self.find_seat(seat_number).available() for seat_number in released}  # type: ignore[union-attr]
        return self._replace(updated, now), released

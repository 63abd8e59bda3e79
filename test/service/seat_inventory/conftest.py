"""
In-memory fakes of every store port, plus service fixtures.

Each fake awaits ``asyncio.sleep(0)`` so concurrent callers interleave at
the same points a real Kvrocks round-trip would suspend them.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from src.service.seat_inventory.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.seat_inventory.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.seat_inventory.app.command.expiry_reaper import ExpiryReaper
from src.service.seat_inventory.app.command.seat_locking_service import SeatLockingService
from src.service.seat_inventory.app.dto import SeatHold
from src.service.seat_inventory.app.interface import (
    IBookingRepo,
    IDistributedLock,
    IRouteTemplateQueryRepo,
    ISeatHoldIndex,
    ISeatInventoryRepo,
)
from src.service.seat_inventory.domain.entity.booking_entity import Booking
from src.service.seat_inventory.domain.entity.route_template_entity import (
    RouteTemplate,
    SeatTemplate,
)
from src.service.seat_inventory.domain.entity.seat_inventory_entity import SeatInventory
from src.service.seat_inventory.domain.enum import PaymentMethod, SeatType
from src.service.seat_inventory.domain.value_object import (
    BookingUser,
    InventoryRef,
    Journey,
    Passenger,
    Payment,
    RouteRef,
)


ROUTE_ID = 'route-101'
TRAVEL_DATE = date(2024, 1, 15)
NOW = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemorySeatInventoryRepo(ISeatInventoryRepo):
    def __init__(self) -> None:
        self.documents: dict[InventoryRef, SeatInventory] = {}
        self.save_calls = 0
        self.fail_saves: int = 0

    async def get(self, *, ref: InventoryRef) -> Optional[SeatInventory]:
        await asyncio.sleep(0)
        return self.documents.get(ref)

    async def save(self, *, inventory: SeatInventory) -> None:
        await asyncio.sleep(0)
        self.save_calls += 1
        if self.fail_saves:
            self.fail_saves -= 1
            raise ConnectionError('inventory store unavailable')
        self.documents[InventoryRef(inventory.route_id, inventory.travel_date)] = inventory

    async def list_refs(self) -> list[InventoryRef]:
        return list(self.documents)

    async def find_refs_with_expired_locks(self, *, now: datetime) -> list[InventoryRef]:
        return [
            ref
            for ref, inventory in self.documents.items()
            if inventory.expired_lock_seat_numbers(now)
        ]


class InMemoryDistributedLock(IDistributedLock):
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.leases: dict[str, tuple[str, datetime]] = {}
        self.acquired: list[str] = []
        self.released: list[str] = []

    async def acquire(self, *, key: str, token: str, ttl_seconds: int) -> bool:
        await asyncio.sleep(0)
        current = self.leases.get(key)
        if current and current[1] > self.clock():
            return False
        self.leases[key] = (token, self.clock() + timedelta(seconds=ttl_seconds))
        self.acquired.append(key)
        return True

    async def release(self, *, key: str, token: str) -> bool:
        await asyncio.sleep(0)
        current = self.leases.get(key)
        if not current or current[0] != token:
            return False
        del self.leases[key]
        self.released.append(key)
        return True


class InMemorySeatHoldIndex(ISeatHoldIndex):
    def __init__(self) -> None:
        self.holds: dict[str, SeatHold] = {}
        self.ttls: dict[str, int] = {}
        self.fail_puts = False

    async def get(self, *, user_id: str) -> Optional[SeatHold]:
        return self.holds.get(user_id)

    async def put(self, *, hold: SeatHold, ttl_seconds: int) -> None:
        if self.fail_puts:
            raise ConnectionError('holds index unavailable')
        self.holds[hold.user_id] = hold
        self.ttls[hold.user_id] = ttl_seconds

    async def delete(self, *, user_id: str) -> None:
        self.holds.pop(user_id, None)
        self.ttls.pop(user_id, None)


class InMemoryRouteTemplateRepo(IRouteTemplateQueryRepo):
    def __init__(self, templates: list[RouteTemplate]) -> None:
        self.templates = {template.route_id: template for template in templates}

    async def get(self, *, route_id: str) -> Optional[RouteTemplate]:
        return self.templates.get(route_id)


class InMemoryBookingRepo(IBookingRepo):
    def __init__(self) -> None:
        self.bookings: dict[str, Booking] = {}
        self.fail_saves = False

    async def exists(self, *, booking_id: str) -> bool:
        return booking_id in self.bookings

    async def get(self, *, booking_id: str) -> Optional[Booking]:
        return self.bookings.get(booking_id)

    async def save(self, *, booking: Booking) -> None:
        if self.fail_saves:
            raise ConnectionError('booking store unavailable')
        self.bookings[booking.booking_id] = booking


def make_route_template(
    *, route_id: str = ROUTE_ID, seat_count: int = 6, blocked: tuple[str, ...] = ()
) -> RouteTemplate:
    """Seats "1".."n"; every third seat starting at 1 is a window seat."""
    seat_types = [SeatType.WINDOW, SeatType.AISLE, SeatType.MIDDLE]
    return RouteTemplate(
        route_id=route_id,
        route_code='BLR-MYS',
        departure_time='22:30',
        seat_map=tuple(
            SeatTemplate(
                seat_number=str(n),
                seat_type=seat_types[(n - 1) % 3],
                base_price=500,
                premium=100,
                is_blocked=str(n) in blocked,
                row=(n - 1) // 3 + 1,
                column=(n - 1) % 3 + 1,
            )
            for n in range(1, seat_count + 1)
        ),
    )


def make_booking_parts(
    *,
    seat_numbers: tuple[str, ...] = ('1', '2'),
    travel_date: date = TRAVEL_DATE,
    departure_time: str = '22:30',
    fare: int = 500,
) -> dict:
    return {
        'user': BookingUser(user_id='user-a', name='Asha', phone='+919800000001'),
        'route': RouteRef(
            route_id=ROUTE_ID,
            route_code='BLR-MYS',
            origin='Bengaluru',
            destination='Mysuru',
            operator_name='KSRTC',
        ),
        'journey': Journey(
            travel_date=travel_date,
            departure_time=departure_time,
            estimated_arrival_time='23:59',
            pickup_point='Majestic',
            drop_point='Mysuru Bus Stand',
        ),
        'passengers': [
            Passenger(name=f'Passenger {n}', age=30, gender='female', seat_number=n, fare=fare)
            for n in seat_numbers
        ],
        'payment': Payment(
            total_amount=fare * len(seat_numbers),
            base_fare=fare * len(seat_numbers),
            payment_method=PaymentMethod.UPI,
        ),
    }


def make_booking(*, booking_id: str = 'SB20240110123456', now: datetime = NOW, **kwargs) -> Booking:
    return Booking.create(booking_id=booking_id, now=now, **make_booking_parts(**kwargs))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def route_template() -> RouteTemplate:
    return make_route_template()


@pytest.fixture
def inventory_repo() -> InMemorySeatInventoryRepo:
    return InMemorySeatInventoryRepo()


@pytest.fixture
def distributed_lock(clock: FakeClock) -> InMemoryDistributedLock:
    return InMemoryDistributedLock(clock)


@pytest.fixture
def hold_index() -> InMemorySeatHoldIndex:
    return InMemorySeatHoldIndex()


@pytest.fixture
def route_template_repo(route_template: RouteTemplate) -> InMemoryRouteTemplateRepo:
    return InMemoryRouteTemplateRepo([route_template])


@pytest.fixture
def booking_repo() -> InMemoryBookingRepo:
    return InMemoryBookingRepo()


@pytest.fixture
def service(
    inventory_repo: InMemorySeatInventoryRepo,
    route_template_repo: InMemoryRouteTemplateRepo,
    distributed_lock: InMemoryDistributedLock,
    hold_index: InMemorySeatHoldIndex,
    clock: FakeClock,
) -> SeatLockingService:
    return SeatLockingService(
        inventory_repo=inventory_repo,
        route_template_repo=route_template_repo,
        distributed_lock=distributed_lock,
        hold_index=hold_index,
        clock=clock,
        hold_minutes=15,
        lease_ttl_seconds=30,
        extension_minutes=5,
        index_ttl_buffer_minutes=5,
    )


@pytest.fixture
def reaper(
    inventory_repo: InMemorySeatInventoryRepo,
    distributed_lock: InMemoryDistributedLock,
    clock: FakeClock,
) -> ExpiryReaper:
    return ExpiryReaper(
        inventory_repo=inventory_repo,
        distributed_lock=distributed_lock,
        clock=clock,
        lease_ttl_seconds=30,
    )


@pytest.fixture
def create_booking_use_case(
    booking_repo: InMemoryBookingRepo, service: SeatLockingService, clock: FakeClock
) -> CreateBookingUseCase:
    return CreateBookingUseCase(
        booking_repo=booking_repo,
        seat_locking_service=service,
        clock=clock,
        booking_id_prefix='SB',
    )


@pytest.fixture
def cancel_booking_use_case(
    booking_repo: InMemoryBookingRepo, service: SeatLockingService, clock: FakeClock
) -> CancelBookingUseCase:
    return CancelBookingUseCase(booking_repo=booking_repo, seat_locking_service=service, clock=clock)


@pytest.fixture
def route_id() -> str:
    return ROUTE_ID


@pytest.fixture
def travel_date() -> date:
    return TRAVEL_DATE


@pytest.fixture
def template_factory():
    return make_route_template


@pytest.fixture
def booking_parts_factory():
    return make_booking_parts


@pytest.fixture
def booking_factory():
    return make_booking


@pytest.fixture
def fake_clock_factory():
    return FakeClock


@pytest.fixture
def lock_factory():
    return InMemoryDistributedLock

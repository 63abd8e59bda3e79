"""
Concurrent seat locking

Callers race on the same inventory through the in-memory lease. Lease
contention is retried the way a client would; the seat-level outcome must
still be exactly one winner per seat.
"""

import asyncio
from datetime import date

import pytest

from src.service.seat_inventory.app.command.seat_locking_service import SeatLockingService
from src.service.seat_inventory.domain.seat_inventory_errors import (
    LockAcquisitionError,
    SeatUnavailableError,
)
from src.service.seat_inventory.domain.value_object import InventoryRef


ROUTE_ID = 'route-101'
TRAVEL_DATE = date(2024, 1, 15)


async def lock_with_retry(
    service: SeatLockingService, seat_numbers: list[str], user_id: str, *, attempts: int = 200
):
    for _ in range(attempts):
        try:
            return await service.lock_seats(
                route_id=ROUTE_ID,
                travel_date=TRAVEL_DATE,
                seat_numbers=seat_numbers,
                user_id=user_id,
            )
        except LockAcquisitionError:
            await asyncio.sleep(0)
    raise AssertionError(f'{user_id} never acquired the lease')


@pytest.mark.unit
class TestConcurrentLocking:
    @pytest.mark.asyncio
    async def test_overlapping_batches_have_exactly_one_winner(self, service, inventory_repo):
        results = await asyncio.gather(
            lock_with_retry(service, ['1', '2'], 'user-a'),
            lock_with_retry(service, ['2', '3'], 'user-b'),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, SeatUnavailableError)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert failures[0].seat_numbers == ['2']

        inventory = inventory_repo.documents[InventoryRef(ROUTE_ID, TRAVEL_DATE)]
        assert inventory.summary.locked_count == 2
        assert inventory.summary.available_count == 4

    @pytest.mark.asyncio
    async def test_many_users_racing_for_one_seat(self, service, inventory_repo):
        users = [f'user-{n}' for n in range(10)]

        results = await asyncio.gather(
            *(lock_with_retry(service, ['4'], user) for user in users),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, BaseException)]
        assert len(winners) == 1
        assert all(
            isinstance(r, SeatUnavailableError) for r in results if isinstance(r, BaseException)
        )
        seat = inventory_repo.documents[InventoryRef(ROUTE_ID, TRAVEL_DATE)].find_seat('4')
        assert seat.locked_by in users

    @pytest.mark.asyncio
    async def test_disjoint_batches_all_succeed(self, service, inventory_repo):
        results = await asyncio.gather(
            lock_with_retry(service, ['1'], 'user-a'),
            lock_with_retry(service, ['2'], 'user-b'),
            lock_with_retry(service, ['3'], 'user-c'),
        )

        assert [r.locked_seats for r in results] == [['1'], ['2'], ['3']]
        inventory = inventory_repo.documents[InventoryRef(ROUTE_ID, TRAVEL_DATE)]
        assert inventory.summary.locked_count == 3

    @pytest.mark.asyncio
    async def test_contention_surfaces_without_retry(self, service):
        results = await asyncio.gather(
            service.lock_seats(
                route_id=ROUTE_ID, travel_date=TRAVEL_DATE, seat_numbers=['1'], user_id='user-a'
            ),
            service.lock_seats(
                route_id=ROUTE_ID, travel_date=TRAVEL_DATE, seat_numbers=['5'], user_id='user-b'
            ),
            return_exceptions=True,
        )

        assert sum(isinstance(r, LockAcquisitionError) for r in results) == 1

from datetime import date
from unittest.mock import AsyncMock

import anyio
import pytest

from src.service.seat_inventory.app.command.expiry_reaper import REAPER_HOLDER, ExpiryReaper
from src.service.seat_inventory.app.command.seat_locking_service import lease_key
from src.service.seat_inventory.app.dto import ReleaseExpiredLocksResult
from src.service.seat_inventory.domain.enum import SeatStatus
from src.service.seat_inventory.domain.seat_inventory_errors import OwnershipMismatchError
from src.service.seat_inventory.domain.value_object import InventoryRef
from src.service.seat_inventory.driving_adapter.reaper.start_expiry_reaper import run_reaper_loop


ROUTE_ID = 'route-101'
TRAVEL_DATE = date(2024, 1, 15)
REF = InventoryRef(ROUTE_ID, TRAVEL_DATE)


async def lock(service, seats, user_id, travel_date=TRAVEL_DATE, **kwargs):
    return await service.lock_seats(
        route_id=ROUTE_ID, travel_date=travel_date, seat_numbers=seats, user_id=user_id, **kwargs
    )


@pytest.mark.unit
class TestReleaseExpiredLocks:
    @pytest.mark.asyncio
    async def test_expired_hold_is_rejected_then_reclaimed(
        self, service, reaper, inventory_repo, clock
    ):
        # Given: a hold whose expiry passed one second ago
        await lock(service, ['1', '2'], 'user-a')
        clock.advance(minutes=15, seconds=1)

        with pytest.raises(OwnershipMismatchError):
            await service.confirm_booking(
                route_id=ROUTE_ID,
                travel_date=TRAVEL_DATE,
                seat_numbers=['1', '2'],
                user_id='user-a',
                booking_id='SB1',
            )

        # When
        result = await reaper.release_expired_locks()

        # Then
        assert result.cleaned_count == 2
        assert result.inventories_touched == 1
        inventory = inventory_repo.documents[REF]
        assert inventory.summary.available_count == 6
        assert inventory.find_seat('1').locked_by is None

    @pytest.mark.asyncio
    async def test_unexpired_holds_are_left_alone(self, service, reaper, inventory_repo, clock):
        await lock(service, ['1'], 'user-a', hold_minutes=5)
        await lock(service, ['2'], 'user-b', hold_minutes=30)
        clock.advance(minutes=10)

        result = await reaper.release_expired_locks()

        assert result.cleaned_count == 1
        inventory = inventory_repo.documents[REF]
        assert inventory.find_seat('1').status == SeatStatus.AVAILABLE
        assert inventory.find_seat('2').status == SeatStatus.LOCKED

    @pytest.mark.asyncio
    async def test_sweep_without_expired_holds_writes_nothing(
        self, service, reaper, inventory_repo
    ):
        await lock(service, ['1'], 'user-a')
        saves_before = inventory_repo.save_calls

        result = await reaper.release_expired_locks()

        assert result == ReleaseExpiredLocksResult(cleaned_count=0)
        assert inventory_repo.save_calls == saves_before

    @pytest.mark.asyncio
    async def test_sweep_covers_every_inventory(self, service, reaper, clock):
        await lock(service, ['1'], 'user-a')
        await lock(service, ['2', '3'], 'user-b', travel_date=date(2024, 1, 16))
        clock.advance(minutes=20)

        result = await reaper.release_expired_locks()

        assert result.cleaned_count == 3
        assert result.inventories_touched == 2

    @pytest.mark.asyncio
    async def test_contended_inventory_is_skipped(
        self, service, reaper, distributed_lock, inventory_repo, clock
    ):
        await lock(service, ['1'], 'user-a')
        clock.advance(minutes=20)
        await distributed_lock.acquire(key=lease_key(REF), token='busy', ttl_seconds=300)

        result = await reaper.release_expired_locks()

        assert result.cleaned_count == 0
        assert result.inventories_skipped == 1
        assert inventory_repo.documents[REF].find_seat('1').status == SeatStatus.LOCKED

    @pytest.mark.asyncio
    async def test_failing_inventory_does_not_stop_sweep(
        self, service, reaper, inventory_repo, clock
    ):
        await lock(service, ['1'], 'user-a')
        await lock(service, ['2'], 'user-b', travel_date=date(2024, 1, 16))
        clock.advance(minutes=20)
        inventory_repo.fail_saves = 1

        result = await reaper.release_expired_locks()

        assert result.inventories_failed == 1
        assert result.cleaned_count == 1

    @pytest.mark.asyncio
    async def test_reaper_takes_the_request_lease(self, inventory_repo, clock, lock_factory):
        distributed_lock = lock_factory(clock)
        distributed_lock.acquire = AsyncMock(return_value=True)
        distributed_lock.release = AsyncMock(return_value=True)
        inventory_repo.find_refs_with_expired_locks = AsyncMock(return_value=[REF])
        reaper = ExpiryReaper(
            inventory_repo=inventory_repo, distributed_lock=distributed_lock, clock=clock
        )

        await reaper.release_expired_locks()

        kwargs = distributed_lock.acquire.await_args.kwargs
        assert kwargs['key'] == lease_key(REF)
        assert kwargs['token'].startswith(f'{REAPER_HOLDER}:')
        distributed_lock.release.assert_awaited_once()


@pytest.mark.unit
class TestRunReaperLoop:
    @pytest.mark.asyncio
    async def test_stops_after_shutdown_requested_during_sweep(self):
        shutdown_event = anyio.Event()
        reaper = AsyncMock()

        async def sweep_then_stop():
            shutdown_event.set()
            return ReleaseExpiredLocksResult(cleaned_count=0)

        reaper.release_expired_locks.side_effect = sweep_then_stop

        sweeps = await run_reaper_loop(
            reaper=reaper, interval_seconds=60, shutdown_event=shutdown_event
        )

        assert sweeps == 1
        reaper.release_expired_locks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_sweep_does_not_stop_schedule(self):
        shutdown_event = anyio.Event()
        reaper = AsyncMock()
        calls = []

        async def flaky_sweep():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError('kvrocks down')
            shutdown_event.set()
            return ReleaseExpiredLocksResult(cleaned_count=0)

        reaper.release_expired_locks.side_effect = flaky_sweep

        sweeps = await run_reaper_loop(
            reaper=reaper, interval_seconds=0.01, shutdown_event=shutdown_event
        )

        assert sweeps == 2

    @pytest.mark.asyncio
    async def test_no_sweep_after_shutdown(self):
        shutdown_event = anyio.Event()
        shutdown_event.set()
        reaper = AsyncMock()

        sweeps = await run_reaper_loop(
            reaper=reaper, interval_seconds=60, shutdown_event=shutdown_event
        )

        assert sweeps == 0
        reaper.release_expired_locks.assert_not_awaited()

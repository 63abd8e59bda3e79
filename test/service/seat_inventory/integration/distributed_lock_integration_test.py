"""
Integration tests for DistributedLockImpl

Runs SET NX EX and the compare-and-delete release script against real Kvrocks.
"""

import asyncio

import pytest

from src.service.seat_inventory.domain.seat_inventory_errors import LockAcquisitionError
from src.service.seat_inventory.driven_adapter.state.distributed_lock_impl import (
    DistributedLockImpl,
)
from src.service.seat_inventory.driven_adapter.state.key_str_generator import make_key


LEASE_KEY = 'booking_lock:route-101:2024-01-15'


async def wait_until_expired(kvrocks, key: str, *, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while await kvrocks.exists(key):
        if loop.time() > deadline:
            raise AssertionError(f'{key} did not expire within {timeout}s')
        await asyncio.sleep(0.1)


@pytest.mark.integration
class TestDistributedLockIntegration:
    @pytest.mark.asyncio
    async def test_second_holder_is_refused_until_release(self, kvrocks):
        lock = DistributedLockImpl(client=kvrocks)

        assert await lock.acquire(key=LEASE_KEY, token='user-a:1', ttl_seconds=30) is True
        assert await lock.acquire(key=LEASE_KEY, token='user-b:1', ttl_seconds=30) is False

        # A non-owner cannot release
        assert await lock.release(key=LEASE_KEY, token='user-b:1') is False
        assert await kvrocks.get(make_key(LEASE_KEY)) == 'user-a:1'

        assert await lock.release(key=LEASE_KEY, token='user-a:1') is True
        assert await lock.acquire(key=LEASE_KEY, token='user-b:1', ttl_seconds=30) is True

    @pytest.mark.asyncio
    async def test_lease_carries_ttl(self, kvrocks):
        lock = DistributedLockImpl(client=kvrocks)

        await lock.acquire(key=LEASE_KEY, token='user-a:1', ttl_seconds=30)

        ttl = await kvrocks.ttl(make_key(LEASE_KEY))
        assert 0 < ttl <= 30

    @pytest.mark.asyncio
    async def test_stale_token_cannot_release_new_holders_lease(self, kvrocks):
        # Given: user-a's lease expires and user-b takes it over
        lock = DistributedLockImpl(client=kvrocks)
        await lock.acquire(key=LEASE_KEY, token='user-a:1', ttl_seconds=1)
        await wait_until_expired(kvrocks, make_key(LEASE_KEY))
        assert await lock.acquire(key=LEASE_KEY, token='user-b:1', ttl_seconds=30) is True

        # When: user-a releases late
        released = await lock.release(key=LEASE_KEY, token='user-a:1')

        # Then: user-b's lease is intact
        assert released is False
        assert await kvrocks.get(make_key(LEASE_KEY)) == 'user-b:1'
        assert await lock.acquire(key=LEASE_KEY, token='user-c:1', ttl_seconds=30) is False

    @pytest.mark.asyncio
    async def test_scope_outliving_its_lease_leaves_takeover_intact(self, kvrocks):
        lock = DistributedLockImpl(client=kvrocks)

        async with lock.hold(key=LEASE_KEY, holder='user-a', ttl_seconds=1):
            await wait_until_expired(kvrocks, make_key(LEASE_KEY))
            assert await lock.acquire(key=LEASE_KEY, token='user-b:1', ttl_seconds=30) is True

        assert await kvrocks.get(make_key(LEASE_KEY)) == 'user-b:1'

    @pytest.mark.asyncio
    async def test_scope_on_held_key_raises_and_leaves_holder(self, kvrocks):
        lock = DistributedLockImpl(client=kvrocks)
        await lock.acquire(key=LEASE_KEY, token='user-a:1', ttl_seconds=30)

        with pytest.raises(LockAcquisitionError):
            async with lock.hold(key=LEASE_KEY, holder='user-b', ttl_seconds=30):
                pass

        assert await kvrocks.get(make_key(LEASE_KEY)) == 'user-a:1'

    @pytest.mark.asyncio
    async def test_concurrent_acquires_have_one_winner(self, kvrocks):
        lock = DistributedLockImpl(client=kvrocks)

        results = await asyncio.gather(
            *(
                lock.acquire(key=LEASE_KEY, token=f'user-{n}:1', ttl_seconds=30)
                for n in range(10)
            )
        )

        assert results.count(True) == 1

"""
Distributed Lock using Kvrocks (Redis)

Operation lease via SET NX EX; release is a compare-and-delete Lua script so
a holder whose lease already expired cannot delete a newer holder's lease.
"""

from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.interface import IDistributedLock
from src.service.seat_inventory.driven_adapter.state.key_str_generator import make_key


RELEASE_IF_OWNER_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLockImpl(IDistributedLock):
    def __init__(self, *, client: AsyncRedis) -> None:
        self.client = client

    async def acquire(self, *, key: str, token: str, ttl_seconds: int) -> bool:
        lock_key = make_key(key)
        try:
            # NX: only set if absent, EX: lease expiry in seconds
            result = await self.client.set(lock_key, token, nx=True, ex=ttl_seconds)
        except Exception as e:
            Logger.base.error(f'❌ [LOCK] Error acquiring lock {lock_key}: {e}')
            return False

        if result:
            Logger.base.debug(f'🔒 [LOCK] Acquired lock: {lock_key} (ttl={ttl_seconds}s)')
            return True
        Logger.base.debug(f'⏳ [LOCK] Failed to acquire lock: {lock_key} (already locked)')
        return False

    async def release(self, *, key: str, token: str) -> bool:
        lock_key = make_key(key)
        try:
            result = await self.client.eval(RELEASE_IF_OWNER_SCRIPT, 1, lock_key, token)  # type: ignore[misc]
        except Exception as e:
            Logger.base.error(f'❌ [LOCK] Error releasing lock {lock_key}: {e}')
            return False

        if result:
            Logger.base.debug(f'🔓 [LOCK] Released lock: {lock_key}')
            return True
        Logger.base.warning(
            f'⚠️ [LOCK] Failed to release lock: {lock_key} (ownership mismatch or expired)'
        )
        return False

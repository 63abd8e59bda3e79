"""
Distributed Lock Interface

Operation lease serializing read-modify-write access to one inventory.
"""

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import uuid4

from src.service.seat_inventory.domain.seat_inventory_errors import LockAcquisitionError


def build_holder_token(holder: str) -> str:
    """Requester identity + acquisition time, made unique per acquisition."""
    return f'{holder}:{int(time.time() * 1000)}:{uuid4().hex[:8]}'


class IDistributedLock(ABC):
    @abstractmethod
    async def acquire(self, *, key: str, token: str, ttl_seconds: int) -> bool:
        """
        Set-if-absent-with-expiry. Never blocks or retries.

        Returns:
            True if the lease is now held under ``token``
        """
        pass

    @abstractmethod
    async def release(self, *, key: str, token: str) -> bool:
        """
        Delete the lease only if ``token`` still owns it.

        Returns:
            False when the lease expired or was taken over by another holder
        """
        pass

    @asynccontextmanager
    async def hold(self, *, key: str, holder: str, ttl_seconds: int) -> AsyncIterator[str]:
        """
        Scoped lease: acquired on entry, released on every exit path.

        Raises:
            LockAcquisitionError: another holder owns the lease (retryable)
        """
        token = build_holder_token(holder)
        if not await self.acquire(key=key, token=token, ttl_seconds=ttl_seconds):
            raise LockAcquisitionError(key)
        try:
            yield token
        finally:
            await self.release(key=key, token=token)

"""
Kvrocks fixtures for integration tests

Every key lives under KVROCKS_KEY_PREFIX (set in test/conftest.py), and the
prefix is wiped before and after each test. Tests are skipped when no
Kvrocks server is reachable.
"""

import asyncio
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from redis.asyncio import ConnectionPool as AsyncConnectionPool, Redis as AsyncRedis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)

from src.platform.config.core_setting import settings
from src.platform.state.kvrocks_client import KvrocksClient


class KvrocksTestClientAsync(KvrocksClient):
    """
    One connection per event loop.

    pytest-asyncio runs each test function on its own loop, and a
    redis.asyncio pool is bound to the loop that created it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._clients: dict[int, AsyncRedis] = {}

    async def initialize(self) -> AsyncRedis:
        loop_id = id(asyncio.get_running_loop())
        if loop_id in self._clients:
            return self._clients[loop_id]

        pool = AsyncConnectionPool.from_url(
            f'redis://{settings.KVROCKS_HOST}:{settings.KVROCKS_PORT}/{settings.KVROCKS_DB}',
            password=settings.KVROCKS_PASSWORD or None,
            decode_responses=settings.REDIS_DECODE_RESPONSES,
            max_connections=settings.KVROCKS_POOL_MAX_CONNECTIONS,
            socket_timeout=settings.KVROCKS_POOL_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT,
        )
        client = AsyncRedis.from_pool(pool)
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        self._clients[loop_id] = client
        return client

    def get_client(self) -> AsyncRedis:
        loop_id = id(asyncio.get_running_loop())
        if loop_id not in self._clients:
            raise RuntimeError(f'Kvrocks test client not initialized for loop {loop_id}')
        return self._clients[loop_id]

    async def disconnect(self) -> None:
        loop_id = id(asyncio.get_running_loop())
        if client := self._clients.pop(loop_id, None):
            await client.aclose()


kvrocks_client_async_for_test = KvrocksTestClientAsync()


async def _delete_prefixed_keys(client: AsyncRedis) -> None:
    key_prefix = os.getenv('KVROCKS_KEY_PREFIX', 'test_')
    keys: list[str] = await client.keys(f'{key_prefix}*')  # type: ignore
    if keys:
        await client.delete(*keys)


@pytest_asyncio.fixture
async def kvrocks() -> AsyncGenerator[AsyncRedis, None]:
    try:
        client = await kvrocks_client_async_for_test.initialize()
    except (RedisConnectionError, RedisTimeoutError, OSError) as e:
        pytest.skip(f'Kvrocks not reachable: {e}')

    await _delete_prefixed_keys(client)
    yield client
    await _delete_prefixed_keys(client)
    await kvrocks_client_async_for_test.disconnect()

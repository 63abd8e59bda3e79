"""
Standalone Expiry Reaper Entry Point (Async)

Usage:
    PYTHONPATH=$PWD uv run python src/service/seat_inventory/driving_adapter/reaper/start_expiry_reaper.py

Shares nothing in memory with the request handlers; coordination happens
only through the per-inventory operation lease in Kvrocks.
"""

import signal

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.seat_inventory.app.command.expiry_reaper import ExpiryReaper


async def run_reaper_loop(
    *, reaper: ExpiryReaper, interval_seconds: float, shutdown_event: anyio.Event
) -> int:
    """Sweep every ``interval_seconds`` until shutdown. Returns the number of sweeps run."""
    sweeps = 0
    while not shutdown_event.is_set():
        try:
            await reaper.release_expired_locks()
        except Exception as e:
            # A failed sweep never stops the schedule
            Logger.base.error(f'❌ [REAPER] Sweep failed: {e}')
        sweeps += 1

        with anyio.move_on_after(interval_seconds):
            await shutdown_event.wait()
    return sweeps


async def main() -> None:
    Logger.base.info('🚀 [Expiry Reaper] Starting...')

    tracing = TracingConfig(service_name='seat-expiry-reaper')
    tracing.setup()
    tracing.instrument_redis()
    Logger.base.info('📊 [Expiry Reaper] OpenTelemetry configured')

    try:
        await kvrocks_client.initialize()
        Logger.base.info('📡 [Expiry Reaper] Kvrocks initialized')
    except Exception as e:
        Logger.base.error(f'❌ [Expiry Reaper] Failed to initialize Kvrocks: {e}')
        raise

    reaper = container.expiry_reaper()
    shutdown_event = anyio.Event()

    try:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:

            async def signal_watcher() -> None:
                async for signum in signals:
                    Logger.base.info(f'🛑 [Expiry Reaper] Received signal {signum}')
                    shutdown_event.set()
                    break

            async with anyio.create_task_group() as tg:
                tg.start_soon(signal_watcher)  # type: ignore[arg-type]
                await run_reaper_loop(
                    reaper=reaper,
                    interval_seconds=settings.REAPER_INTERVAL_SECONDS,
                    shutdown_event=shutdown_event,
                )
                tg.cancel_scope.cancel()
    finally:
        try:
            await kvrocks_client.disconnect()
            Logger.base.info('📡 [Expiry Reaper] Kvrocks disconnected')
        except Exception as e:
            Logger.base.warning(f'⚠️ [Expiry Reaper] Error disconnecting Kvrocks: {e}')

        tracing.shutdown()
        Logger.base.info('👋 [Expiry Reaper] Shutdown complete')


if __name__ == '__main__':
    anyio.run(main)  # type: ignore[arg-type]

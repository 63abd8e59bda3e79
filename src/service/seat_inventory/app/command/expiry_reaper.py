"""
Expiry Reaper

Periodic sweep returning abandoned seat holds to available. Keeps no
in-memory state between sweeps, so any number of instances may run it.
Each affected inventory is re-read and rewritten under the same operation
lease as request-driven mutators.
"""

import time

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.seat_inventory.app.clock import Clock, utc_now
from src.service.seat_inventory.app.command.seat_locking_service import lease_key
from src.service.seat_inventory.app.dto import ReleaseExpiredLocksResult
from src.service.seat_inventory.app.interface import IDistributedLock, ISeatInventoryRepo
from src.service.seat_inventory.domain.seat_inventory_errors import LockAcquisitionError
from src.service.seat_inventory.domain.value_object import InventoryRef


REAPER_HOLDER = 'expiry-reaper'


class ExpiryReaper:
    def __init__(
        self,
        *,
        inventory_repo: ISeatInventoryRepo,
        distributed_lock: IDistributedLock,
        clock: Clock = utc_now,
        lease_ttl_seconds: int = settings.OPERATION_LOCK_TTL_SECONDS,
    ) -> None:
        self.inventory_repo = inventory_repo
        self.distributed_lock = distributed_lock
        self.clock = clock
        self.lease_ttl_seconds = lease_ttl_seconds
        self.tracer = trace.get_tracer(__name__)

    async def _reap(self, ref: InventoryRef) -> int:
        async with self.distributed_lock.hold(
            key=lease_key(ref), holder=REAPER_HOLDER, ttl_seconds=self.lease_ttl_seconds
        ):
            inventory = await self.inventory_repo.get(ref=ref)
            if inventory is None:
                return 0
            reclaimed_inventory, reclaimed = inventory.release_expired(now=self.clock())
            if reclaimed:
                await self.inventory_repo.save(inventory=reclaimed_inventory)
                Logger.base.info(f'🧹 [REAPER] {ref}: reclaimed {reclaimed}')
            return len(reclaimed)

    @Logger.io
    async def release_expired_locks(self) -> ReleaseExpiredLocksResult:
        """
        One sweep over every inventory holding expired locks.

        A contended inventory is left for the next sweep; a failing one is
        logged and does not stop the sweep.
        """
        start = time.perf_counter()
        result = ReleaseExpiredLocksResult(cleaned_count=0)

        with self.tracer.start_as_current_span('expiry_reaper.sweep') as span:
            refs = await self.inventory_repo.find_refs_with_expired_locks(now=self.clock())
            span.set_attribute('reaper.candidates', len(refs))

            for ref in refs:
                try:
                    reclaimed = await self._reap(ref)
                except LockAcquisitionError:
                    metrics.record_lease(acquired=False)
                    result.inventories_skipped += 1
                    Logger.base.debug(f'⏳ [REAPER] {ref} busy, retrying next sweep')
                    continue
                except Exception as e:
                    result.inventories_failed += 1
                    span.record_exception(e)
                    Logger.base.error(f'❌ [REAPER] Failed to reap {ref}: {e}')
                    continue

                metrics.record_lease(acquired=True)
                if reclaimed:
                    result.cleaned_count += reclaimed
                    result.inventories_touched += 1

            span.set_attribute('reaper.cleaned_count', result.cleaned_count)

        metrics.record_sweep(reclaimed=result.cleaned_count, duration=time.perf_counter() - start)
        if result.cleaned_count:
            Logger.base.info(
                f'🧹 [REAPER] Sweep reclaimed {result.cleaned_count} seat(s) '
                f'across {result.inventories_touched} inventories'
            )
        return result

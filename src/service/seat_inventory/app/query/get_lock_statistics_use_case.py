from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.dto import LockStatistics
from src.service.seat_inventory.app.interface import ISeatInventoryRepo


def _percentage(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total > 0 else 0.0


class GetLockStatisticsUseCase:
    def __init__(self, inventory_repo: ISeatInventoryRepo):
        self.inventory_repo = inventory_repo

    @Logger.io
    async def get_lock_statistics(self) -> LockStatistics:
        """Totals across every inventory, for monitoring. Read without leases."""
        total = locked = booked = available = blocked = inventories = 0

        for ref in await self.inventory_repo.list_refs():
            inventory = await self.inventory_repo.get(ref=ref)
            if inventory is None:
                continue
            summary = inventory.summary
            inventories += 1
            total += summary.total_seats
            locked += summary.locked_count
            booked += summary.booked_count
            available += summary.available_count
            blocked += summary.blocked_count

        return LockStatistics(
            total_inventories=inventories,
            total_seats=total,
            locked_seats=locked,
            booked_seats=booked,
            available_seats=available,
            blocked_seats=blocked,
            lock_utilization=_percentage(locked, total),
            booking_utilization=_percentage(booked, total),
        )

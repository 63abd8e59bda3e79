from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.service.seat_inventory.domain.entity.seat_inventory_entity import SeatInventory
from src.service.seat_inventory.domain.value_object import InventoryRef


class ISeatInventoryRepo(ABC):
    """
    Durable SeatInventory documents, one per (route_id, travel_date).

    Writes are only issued while the caller holds the inventory's lease.
    """

    @abstractmethod
    async def get(self, *, ref: InventoryRef) -> Optional[SeatInventory]:
        pass

    @abstractmethod
    async def save(self, *, inventory: SeatInventory) -> None:
        pass

    @abstractmethod
    async def list_refs(self) -> list[InventoryRef]:
        pass

    @abstractmethod
    async def find_refs_with_expired_locks(self, *, now: datetime) -> list[InventoryRef]:
        """
        Inventories holding at least one locked seat whose lock_expiry < now.

        Read without the lease: the caller must re-check under the lease.
        """
        pass

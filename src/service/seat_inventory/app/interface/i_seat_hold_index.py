from abc import ABC, abstractmethod
from typing import Optional

from src.service.seat_inventory.app.dto import SeatHold


class ISeatHoldIndex(ABC):
    """Ephemeral per-user holds index (TTL-backed, non-authoritative)."""

    @abstractmethod
    async def get(self, *, user_id: str) -> Optional[SeatHold]:
        pass

    @abstractmethod
    async def put(self, *, hold: SeatHold, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def delete(self, *, user_id: str) -> None:
        pass

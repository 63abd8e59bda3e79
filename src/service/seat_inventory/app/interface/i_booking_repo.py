from abc import ABC, abstractmethod
from typing import Optional

from src.service.seat_inventory.domain.entity.booking_entity import Booking


class IBookingRepo(ABC):
    @abstractmethod
    async def exists(self, *, booking_id: str) -> bool:
        pass

    @abstractmethod
    async def get(self, *, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def save(self, *, booking: Booking) -> None:
        """Insert or overwrite. Bookings are never deleted."""
        pass

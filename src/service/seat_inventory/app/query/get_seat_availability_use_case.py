from datetime import date

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.interface import ISeatInventoryRepo
from src.service.seat_inventory.domain.entity.seat_inventory_entity import SeatInventory
from src.service.seat_inventory.domain.seat_inventory_errors import InventoryNotFoundError
from src.service.seat_inventory.domain.validators import parse_travel_date
from src.service.seat_inventory.domain.value_object import InventoryRef


class GetSeatAvailabilityUseCase:
    """Lock-free display read; the snapshot may already be stale when returned."""

    def __init__(self, inventory_repo: ISeatInventoryRepo):
        self.inventory_repo = inventory_repo

    @Logger.io
    async def get_seat_availability(self, *, route_id: str, travel_date: date | str) -> SeatInventory:
        ref = InventoryRef(route_id, parse_travel_date(travel_date))
        inventory = await self.inventory_repo.get(ref=ref)
        if inventory is None:
            raise InventoryNotFoundError(ref.route_id, ref.travel_date)
        return inventory

"""Application layer interfaces (Ports)"""

from src.service.seat_inventory.app.interface.i_booking_repo import IBookingRepo
from src.service.seat_inventory.app.interface.i_distributed_lock import IDistributedLock
from src.service.seat_inventory.app.interface.i_route_template_query_repo import (
    IRouteTemplateQueryRepo,
)
from src.service.seat_inventory.app.interface.i_seat_hold_index import ISeatHoldIndex
from src.service.seat_inventory.app.interface.i_seat_inventory_repo import ISeatInventoryRepo


__all__ = [
    'IBookingRepo',
    'IDistributedLock',
    'IRouteTemplateQueryRepo',
    'ISeatHoldIndex',
    'ISeatInventoryRepo',
]

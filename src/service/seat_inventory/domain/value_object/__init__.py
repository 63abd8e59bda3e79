"""Seat Inventory Domain Value Objects"""

from src.service.seat_inventory.domain.value_object.booking_details import (
    BookingUser,
    Cancellation,
    CancellationCheck,
    CancellationQuote,
    Journey,
    Modification,
    Passenger,
    Payment,
    RefundDetails,
    RouteRef,
)
from src.service.seat_inventory.domain.value_object.inventory_ref import InventoryRef


__all__ = [
    'InventoryRef',
    'BookingUser',
    'Cancellation',
    'CancellationCheck',
    'CancellationQuote',
    'Journey',
    'Modification',
    'Passenger',
    'Payment',
    'RefundDetails',
    'RouteRef',
]

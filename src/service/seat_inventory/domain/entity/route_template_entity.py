from typing import Optional

import attrs

from src.service.seat_inventory.domain.enum import SeatType
from src.service.seat_inventory.domain.validators import validate_hhmm


@attrs.define(frozen=True)
class SeatTemplate:
    """One entry of a route's seat map (read-only, owned by route management)."""

    seat_number: str
    seat_type: SeatType = attrs.field(converter=SeatType)
    base_price: int = 0
    premium: int = 0
    is_blocked: bool = False
    row: Optional[int] = None
    column: Optional[int] = None

    @property
    def price(self) -> int:
        # Only window seats carry the premium
        if self.seat_type == SeatType.WINDOW:
            return self.base_price + self.premium
        return self.base_price


@attrs.define(frozen=True)
class RouteTemplate:
    route_id: str
    seat_map: tuple[SeatTemplate, ...] = attrs.field(converter=tuple)
    route_code: str = ''
    departure_time: str = attrs.field(default='00:00', validator=validate_hhmm)
    timezone: str = 'UTC'

    @property
    def total_seats(self) -> int:
        return len(self.seat_map)

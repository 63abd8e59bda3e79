from datetime import date

import attrs


@attrs.define(frozen=True)
class InventoryRef:
    """Identity of one inventory and the scope of its operation lease."""

    route_id: str
    travel_date: date

    def __str__(self) -> str:
        return f'{self.route_id}:{self.travel_date.isoformat()}'

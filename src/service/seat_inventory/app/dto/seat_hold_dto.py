"""Ephemeral "my active holds" index entry."""

from datetime import date, datetime

import attrs


@attrs.define(frozen=True)
class SeatHold:
    """
    Denormalized cache of one user's seat holds.

    Never authoritative: the durable inventory wins on any discrepancy.
    """

    user_id: str
    route_id: str
    travel_date: date
    seat_numbers: tuple[str, ...] = attrs.field(converter=tuple)
    locked_at: datetime
    expires_at: datetime

    def covers(self, *, route_id: str, travel_date: date) -> bool:
        return self.route_id == route_id and self.travel_date == travel_date

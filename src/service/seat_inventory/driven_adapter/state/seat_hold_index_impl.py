from datetime import date, datetime
from typing import Optional

import orjson
from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.dto import SeatHold
from src.service.seat_inventory.app.interface import ISeatHoldIndex
from src.service.seat_inventory.driven_adapter.state.key_str_generator import (
    make_seat_hold_key,
)


class SeatHoldIndexImpl(ISeatHoldIndex):
    """
    seat_locks:{user_id} -> JSON
    {"routeId", "travelDate", "seatNumbers", "lockedAt", "expiresAt"} with a TTL
    """

    def __init__(self, *, client: AsyncRedis) -> None:
        self.client = client

    @Logger.io
    async def get(self, *, user_id: str) -> Optional[SeatHold]:
        raw = await self.client.get(make_seat_hold_key(user_id=user_id))
        if not raw:
            return None
        data = orjson.loads(raw)
        return SeatHold(
            user_id=user_id,
            route_id=data['routeId'],
            travel_date=date.fromisoformat(data['travelDate']),
            seat_numbers=tuple(data['seatNumbers']),
            locked_at=datetime.fromisoformat(data['lockedAt']),
            expires_at=datetime.fromisoformat(data['expiresAt']),
        )

    @Logger.io
    async def put(self, *, hold: SeatHold, ttl_seconds: int) -> None:
        payload = orjson.dumps(
            {
                'routeId': hold.route_id,
                'travelDate': hold.travel_date.isoformat(),
                'seatNumbers': list(hold.seat_numbers),
                'lockedAt': hold.locked_at.isoformat(),
                'expiresAt': hold.expires_at.isoformat(),
            }
        )
        await self.client.set(make_seat_hold_key(user_id=hold.user_id), payload, ex=max(1, ttl_seconds))

    @Logger.io
    async def delete(self, *, user_id: str) -> None:
        await self.client.delete(make_seat_hold_key(user_id=user_id))

from typing import Optional

from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.interface import IBookingRepo
from src.service.seat_inventory.domain.entity.booking_entity import Booking
from src.service.seat_inventory.driven_adapter.repo.document_codec import (
    decode_booking,
    encode_booking,
)
from src.service.seat_inventory.driven_adapter.state.key_str_generator import make_booking_key


class BookingRepoImpl(IBookingRepo):
    def __init__(self, *, client: AsyncRedis) -> None:
        self.client = client

    async def exists(self, *, booking_id: str) -> bool:
        return bool(await self.client.exists(make_booking_key(booking_id=booking_id)))

    @Logger.io
    async def get(self, *, booking_id: str) -> Optional[Booking]:
        raw = await self.client.get(make_booking_key(booking_id=booking_id))
        return decode_booking(raw) if raw else None

    @Logger.io
    async def save(self, *, booking: Booking) -> None:
        await self.client.set(make_booking_key(booking_id=booking.booking_id), encode_booking(booking))

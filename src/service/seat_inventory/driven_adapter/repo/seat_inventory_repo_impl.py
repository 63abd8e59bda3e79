from datetime import date, datetime
from typing import Optional

from opentelemetry import trace
from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.interface import ISeatInventoryRepo
from src.service.seat_inventory.domain.entity.seat_inventory_entity import SeatInventory
from src.service.seat_inventory.domain.value_object import InventoryRef
from src.service.seat_inventory.driven_adapter.repo.document_codec import (
    decode_inventory,
    encode_inventory,
)
from src.service.seat_inventory.driven_adapter.state.key_str_generator import (
    make_lock_expiry_index_key,
    make_seat_inventory_key,
    make_seat_inventory_pattern,
    strip_key_prefix,
)


def parse_ref(value: str) -> InventoryRef:
    """{route_id}:{YYYY-MM-DD} -> InventoryRef (route ids may contain ':')"""
    route_id, travel_date = value.rsplit(':', 1)
    return InventoryRef(route_id, date.fromisoformat(travel_date))


def parse_inventory_key(key: str) -> InventoryRef:
    return parse_ref(strip_key_prefix(key).removeprefix('seat_inventory:'))


def _text(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value


class SeatInventoryRepoImpl(ISeatInventoryRepo):
    """
    One JSON document per inventory in Kvrocks (disk-backed).

    A sorted set scores every inventory that still holds locked seats by its
    earliest lock_expiry. It is written in the same MULTI as the document, so
    the reaper reads expired candidates with one range query instead of
    scanning every inventory ever created.
    """

    def __init__(self, *, client: AsyncRedis, scan_count: int = 500) -> None:
        self.client = client
        self.scan_count = scan_count
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def get(self, *, ref: InventoryRef) -> Optional[SeatInventory]:
        raw = await self.client.get(
            make_seat_inventory_key(route_id=ref.route_id, travel_date=ref.travel_date)
        )
        return decode_inventory(raw) if raw else None

    @Logger.io
    async def save(self, *, inventory: SeatInventory) -> None:
        member = str(InventoryRef(inventory.route_id, inventory.travel_date))
        earliest_expiry = inventory.earliest_lock_expiry()

        pipe = self.client.pipeline(transaction=True)
        pipe.set(
            make_seat_inventory_key(route_id=inventory.route_id, travel_date=inventory.travel_date),
            encode_inventory(inventory),
        )
        if earliest_expiry is None:
            pipe.zrem(make_lock_expiry_index_key(), member)
        else:
            pipe.zadd(make_lock_expiry_index_key(), {member: earliest_expiry.timestamp()})
        await pipe.execute()

    async def list_refs(self) -> list[InventoryRef]:
        refs = []
        async for key in self.client.scan_iter(
            match=make_seat_inventory_pattern(), count=self.scan_count
        ):
            key = _text(key)
            try:
                refs.append(parse_inventory_key(key))
            except ValueError:
                Logger.base.warning(f'⚠️ [INVENTORY] Skipping malformed key {key}')
        return refs

    async def find_refs_with_expired_locks(self, *, now: datetime) -> list[InventoryRef]:
        with self.tracer.start_as_current_span('inventory_repo.find_expired_locks') as span:
            # Exclusive upper bound: a lock expiring exactly at `now` is still valid
            members = await self.client.zrangebyscore(
                make_lock_expiry_index_key(), '-inf', f'({now.timestamp()}'
            )
            matches = []
            for member in members:
                member = _text(member)
                try:
                    matches.append(parse_ref(member))
                except ValueError:
                    Logger.base.warning(f'⚠️ [INVENTORY] Skipping malformed index member {member}')
            span.set_attribute('inventory.expired_matches', len(matches))
            return matches

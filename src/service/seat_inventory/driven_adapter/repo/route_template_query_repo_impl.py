from typing import Optional

from redis.asyncio import Redis as AsyncRedis

from src.platform.logging.loguru_io import Logger
from src.service.seat_inventory.app.interface import IRouteTemplateQueryRepo
from src.service.seat_inventory.domain.entity.route_template_entity import RouteTemplate
from src.service.seat_inventory.driven_adapter.repo.document_codec import decode_route_template
from src.service.seat_inventory.driven_adapter.state.key_str_generator import (
    make_route_template_key,
)


class RouteTemplateQueryRepoImpl(IRouteTemplateQueryRepo):
    """
    Reads route_template:{route_id}, written by route management:
    {"routeId", "routeCode", "departureTime", "seatMap": [{"seatNumber", "type", "basePrice", "premium", "isBlocked"}]}
    """

    def __init__(self, *, client: AsyncRedis) -> None:
        self.client = client

    @Logger.io
    async def get(self, *, route_id: str) -> Optional[RouteTemplate]:
        raw = await self.client.get(make_route_template_key(route_id=route_id))
        return decode_route_template(raw) if raw else None

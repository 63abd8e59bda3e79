from abc import ABC, abstractmethod
from typing import Optional

from src.service.seat_inventory.domain.entity.route_template_entity import RouteTemplate


class IRouteTemplateQueryRepo(ABC):
    """Read-only lookup of a route's seat map."""

    @abstractmethod
    async def get(self, *, route_id: str) -> Optional[RouteTemplate]:
        pass

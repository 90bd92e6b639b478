# careflow/services/providers.py
from typing import List, Optional

from ..core.errors import ProviderNotFound
from ..schemas import LatLng, Provider, ProviderFilters, ProviderIn
from .geo import distance_between

class ProviderDirectory:
    def __init__(self, providers):
        self.providers = providers

    async def create(self, data: ProviderIn) -> Provider:
        return await self.providers.insert(data)

    async def get(self, provider_id: str) -> Provider:
        p = await self.providers.get(provider_id)
        if p is None:
            raise ProviderNotFound(provider_id)
        return p

    async def update_wait_time(self, provider_id: str, minutes: Optional[int]) -> Provider:
        if not await self.providers.update_wait_time(provider_id, minutes):
            raise ProviderNotFound(provider_id)
        return await self.get(provider_id)

    async def set_active(self, provider_id: str, active: bool) -> Provider:
        if not await self.providers.set_active(provider_id, active):
            raise ProviderNotFound(provider_id)
        return await self.get(provider_id)

    async def search(
        self,
        filters: Optional[ProviderFilters] = None,
        center: Optional[LatLng] = None,
        radius_miles: Optional[float] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Provider]:
        rows = await self.providers.query_active(filters)
        if center is not None and radius_miles is not None:
            rows = [p for p in rows if p.location is not None and distance_between(center, p.location) <= radius_miles]
        rows.sort(key=lambda p: p.id)
        return rows[offset:offset + limit]

    async def low_wait(self, max_wait_minutes: int = 30, limit: int = 10) -> List[Provider]:
        # unknown wait never qualifies as "low"
        rows = [p for p in await self.providers.query_active()
                if p.current_wait_time is not None and p.current_wait_time <= max_wait_minutes]
        rows.sort(key=lambda p: (p.current_wait_time, p.id))
        return rows[:limit]

    async def top_rated(self, min_rating: float = 4.0, limit: int = 10) -> List[Provider]:
        rows = [p for p in await self.providers.query_active()
                if p.rating is not None and p.rating >= min_rating]
        rows.sort(key=lambda p: (-p.rating, p.id))
        return rows[:limit]

# careflow/services/finder.py
from typing import List, Optional

from ..schemas import LatLng, NearbyProviderResult, NearbyRequest, ProviderFilters
from .geo import distance_between

class NearbyProviderFinder:
    """
    Radius search over active providers. Read-only.

    Store errors (StoreUnavailable) propagate; an empty list always means
    "nothing in range", never "couldn't ask".
    """

    def __init__(self, providers):
        self.providers = providers

    async def find_nearby(
        self,
        center: LatLng,
        max_distance_miles: float,
        filters: Optional[ProviderFilters] = None,
        limit: int = 50,
    ) -> List[NearbyProviderResult]:
        candidates = await self.providers.query_active(filters)

        out: List[NearbyProviderResult] = []
        for p in candidates:
            # location-less providers never enter a distance-ranked result
            if p.location is None:
                continue
            d = distance_between(center, p.location)
            if d > max_distance_miles:
                continue
            out.append(NearbyProviderResult(
                provider_id=p.id,
                provider_name=p.name,
                provider_type=p.type,
                distance_miles=d,
                current_wait_time=p.current_wait_time,
                services=list(p.services),
                address=p.address,
                phone=p.phone,
            ))

        out.sort(key=lambda r: (r.distance_miles, r.provider_id))
        return out[:limit]

async def pending_requests_near(requests, center: LatLng, radius_miles: float) -> List[NearbyRequest]:
    """
    Pending requests within radius of center, in priority order
    (urgency asc, created_at asc), each annotated with its distance.
    """
    out: List[NearbyRequest] = []
    for r in await requests.list_pending():
        d = distance_between(center, r.location)
        if d <= radius_miles:
            out.append(NearbyRequest(**r.model_dump(), distance_miles=d))
    return out

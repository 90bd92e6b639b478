# careflow/services/requests.py
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from ..core.errors import GeocodeError, RequestNotFound, InvalidStateTransition
from ..core.states import sources_for
from ..schemas import LatLng, PatientRequest, RequestIn

logger = logging.getLogger(__name__)

def _utcnow():
    return datetime.now(timezone.utc)

class RequestService:
    """Patient request lifecycle outside of matching: create, cancel, fulfill, queries."""

    def __init__(self, requests, geocoder=None):
        self.requests = requests
        self.geocoder = geocoder

    async def create(self, data: RequestIn) -> PatientRequest:
        location = data.location
        if location is None:
            # RequestIn guarantees an address when location is missing
            if self.geocoder is None:
                raise GeocodeError("No geocoder configured")
            lat, lng = await self.geocoder.geocode(data.address)
            location = LatLng(lat=lat, lng=lng)

        req = PatientRequest(
            id=uuid.uuid4().hex,
            location=location,
            status="pending",
            created_at=_utcnow(),
            **data.model_dump(exclude={"location"}),
        )
        await self.requests.insert(req)
        logger.info("request %s created (service=%s urgency=%d)", req.id, req.requested_service, req.urgency_level)
        return req

    async def get(self, request_id: str) -> PatientRequest:
        req = await self.requests.get(request_id)
        if req is None:
            raise RequestNotFound(request_id)
        return req

    async def _transition(self, request_id: str, dst: str) -> PatientRequest:
        if await self.requests.compare_and_set_status(request_id, sources_for(dst), dst):
            logger.info("request %s -> %s", request_id, dst)
            return await self.get(request_id)
        current = await self.get(request_id)
        raise InvalidStateTransition(request_id, current.status, dst)

    async def cancel(self, request_id: str) -> PatientRequest:
        return await self._transition(request_id, "cancelled")

    async def fulfill(self, request_id: str) -> PatientRequest:
        return await self._transition(request_id, "fulfilled")

    async def urgent(self, max_urgency_level: int = 2, limit: int = 20) -> List[PatientRequest]:
        return await self.requests.list_pending(max_urgency=max_urgency_level, limit=limit)

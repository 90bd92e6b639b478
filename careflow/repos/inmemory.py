# careflow/repos/inmemory.py
import uuid
from datetime import datetime
from typing import Optional, List, Dict

from ..schemas import Provider, ProviderIn, ProviderFilters, PatientRequest

def _id() -> str:
    return uuid.uuid4().hex

def _priority_key(r: PatientRequest):
    return (r.urgency_level, r.created_at)

class InMemoryProviderStore:
    def __init__(self):
        self.providers: Dict[str, Provider] = {}

    async def insert(self, data: ProviderIn, provider_id: Optional[str] = None, is_active: bool = True) -> Provider:
        pid = provider_id or _id()
        doc = Provider(id=pid, is_active=is_active, **data.model_dump())
        self.providers[pid] = doc
        return doc.model_copy(deep=True)

    async def get(self, provider_id: str) -> Optional[Provider]:
        p = self.providers.get(provider_id)
        return p.model_copy(deep=True) if p else None

    async def query_active(self, filters: Optional[ProviderFilters] = None) -> List[Provider]:
        f = filters or ProviderFilters()
        return [p.model_copy(deep=True) for p in self.providers.values() if p.is_active and f.matches(p)]

    async def update_wait_time(self, provider_id: str, minutes: Optional[int]) -> bool:
        p = self.providers.get(provider_id)
        if p is None:
            return False
        p.current_wait_time = minutes
        return True

    async def set_active(self, provider_id: str, active: bool) -> bool:
        p = self.providers.get(provider_id)
        if p is None:
            return False
        p.is_active = active
        return True

class InMemoryRequestStore:
    """
    Conditional updates below never await between the status check and the
    write, so they are atomic with respect to other coroutines on the loop.
    """

    def __init__(self):
        self.requests: Dict[str, PatientRequest] = {}

    async def insert(self, req: PatientRequest) -> PatientRequest:
        self.requests[req.id] = req.model_copy(deep=True)
        return req

    async def get(self, request_id: str) -> Optional[PatientRequest]:
        r = self.requests.get(request_id)
        return r.model_copy(deep=True) if r else None

    async def list_pending(self, max_urgency: Optional[int] = None, limit: Optional[int] = None) -> List[PatientRequest]:
        rows = [
            r for r in self.requests.values()
            if r.status == "pending" and (max_urgency is None or r.urgency_level <= max_urgency)
        ]
        rows.sort(key=_priority_key)
        if limit is not None:
            rows = rows[:limit]
        return [r.model_copy(deep=True) for r in rows]

    async def list_by_date_range(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[PatientRequest]:
        out = []
        for r in self.requests.values():
            if start is not None and r.created_at < start:
                continue
            if end is not None and r.created_at > end:
                continue
            out.append(r.model_copy(deep=True))
        return out

    async def compare_and_set_matched(self, request_id: str, provider_id: str, score: float,
                                      expected_status: str = "pending") -> bool:
        r = self.requests.get(request_id)
        if r is None or r.status != expected_status:
            return False
        r.status = "matched"
        r.matched_provider_id = provider_id
        r.match_score = score
        return True

    async def compare_and_set_status(self, request_id: str, expected: List[str], status: str) -> bool:
        r = self.requests.get(request_id)
        if r is None or r.status not in expected:
            return False
        r.status = status
        return True

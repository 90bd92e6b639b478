# careflow/repos/mongo.py
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from ..core.errors import StoreUnavailable
from ..schemas import Provider, ProviderIn, ProviderFilters, PatientRequest

@contextmanager
def _driver_errors(op: str):
    try:
        yield
    except PyMongoError as ex:
        raise StoreUnavailable(f"{op} failed: {ex}") from ex

def _geo(location: Optional[dict]) -> Optional[dict]:
    if not location:
        return None
    return {"type": "Point", "coordinates": [float(location["lng"]), float(location["lat"])]}

# --------------------------------------------------
# Document <-> model mapping
# --------------------------------------------------
def provider_to_doc(p: Provider) -> Dict[str, Any]:
    doc = p.model_dump(exclude={"id"})
    doc["_id"] = p.id
    geo = _geo(doc.get("location"))
    if geo:
        doc["geo"] = geo
    else:
        # never leave a bogus point behind for location-less providers
        doc.pop("geo", None)
    return doc

def provider_from_doc(doc: Dict[str, Any]) -> Provider:
    d = dict(doc)
    d["id"] = str(d.pop("_id"))
    d.pop("geo", None)
    return Provider.model_validate(d)

def request_to_doc(r: PatientRequest) -> Dict[str, Any]:
    doc = r.model_dump(exclude={"id"})
    doc["_id"] = r.id
    doc["geo"] = _geo(doc["location"])
    return doc

def request_from_doc(doc: Dict[str, Any]) -> PatientRequest:
    d = dict(doc)
    d["id"] = str(d.pop("_id"))
    d.pop("geo", None)
    return PatientRequest.model_validate(d)

def filters_to_query(filters: Optional[ProviderFilters]) -> Dict[str, Any]:
    q: Dict[str, Any] = {"is_active": True}
    if filters is None:
        return q
    if filters.provider_type is not None:
        q["type"] = filters.provider_type
    if filters.service_type is not None:
        q["services"] = filters.service_type
    if filters.accepts_walk_ins is not None:
        q["accepts_walk_ins"] = filters.accepts_walk_ins
    if filters.telehealth_available is not None:
        q["telehealth_available"] = filters.telehealth_available
    if filters.language is not None:
        q["languages_spoken"] = filters.language
    if filters.insurance is not None:
        q["insurance_accepted"] = filters.insurance
    return q

PRIORITY_ORDER = [("urgency_level", ASCENDING), ("created_at", ASCENDING), ("_id", ASCENDING)]

# --------------------------------------------------
# Stores
# --------------------------------------------------
class MongoProviderStore:
    def __init__(self, col):
        self.col = col

    async def insert(self, data: ProviderIn, provider_id: Optional[str] = None, is_active: bool = True) -> Provider:
        p = Provider(id=provider_id or uuid.uuid4().hex, is_active=is_active, **data.model_dump())
        with _driver_errors("insert provider"):
            await self.col.insert_one(provider_to_doc(p))
        return p

    async def get(self, provider_id: str) -> Optional[Provider]:
        with _driver_errors("get provider"):
            doc = await self.col.find_one({"_id": provider_id})
        return provider_from_doc(doc) if doc else None

    async def query_active(self, filters: Optional[ProviderFilters] = None) -> List[Provider]:
        out: List[Provider] = []
        with _driver_errors("query providers"):
            async for doc in self.col.find(filters_to_query(filters)):
                out.append(provider_from_doc(doc))
        return out

    async def update_wait_time(self, provider_id: str, minutes: Optional[int]) -> bool:
        with _driver_errors("update wait time"):
            res = await self.col.update_one({"_id": provider_id}, {"$set": {"current_wait_time": minutes}})
        return bool(res.matched_count)

    async def set_active(self, provider_id: str, active: bool) -> bool:
        with _driver_errors("set provider active"):
            res = await self.col.update_one({"_id": provider_id}, {"$set": {"is_active": active}})
        return bool(res.matched_count)

class MongoRequestStore:
    def __init__(self, col):
        self.col = col

    async def insert(self, req: PatientRequest) -> PatientRequest:
        with _driver_errors("insert request"):
            await self.col.insert_one(request_to_doc(req))
        return req

    async def get(self, request_id: str) -> Optional[PatientRequest]:
        with _driver_errors("get request"):
            doc = await self.col.find_one({"_id": request_id})
        return request_from_doc(doc) if doc else None

    async def list_pending(self, max_urgency: Optional[int] = None, limit: Optional[int] = None) -> List[PatientRequest]:
        q: Dict[str, Any] = {"status": "pending"}
        if max_urgency is not None:
            q["urgency_level"] = {"$lte": max_urgency}
        cur = self.col.find(q).sort(PRIORITY_ORDER)
        if limit is not None:
            cur = cur.limit(limit)
        out: List[PatientRequest] = []
        with _driver_errors("list pending requests"):
            async for doc in cur:
                out.append(request_from_doc(doc))
        return out

    async def list_by_date_range(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[PatientRequest]:
        q: Dict[str, Any] = {}
        rng: Dict[str, Any] = {}
        if start is not None:
            rng["$gte"] = start
        if end is not None:
            rng["$lte"] = end
        if rng:
            q["created_at"] = rng
        out: List[PatientRequest] = []
        with _driver_errors("list requests by date"):
            async for doc in self.col.find(q):
                out.append(request_from_doc(doc))
        return out

    async def compare_and_set_matched(self, request_id: str, provider_id: str, score: float,
                                      expected_status: str = "pending") -> bool:
        with _driver_errors("commit match"):
            res = await self.col.update_one(
                {"_id": request_id, "status": expected_status},
                {"$set": {"status": "matched", "matched_provider_id": provider_id, "match_score": score}},
            )
        return bool(res.modified_count)

    async def compare_and_set_status(self, request_id: str, expected: List[str], status: str) -> bool:
        with _driver_errors("update request status"):
            res = await self.col.update_one(
                {"_id": request_id, "status": {"$in": list(expected)}},
                {"$set": {"status": status}},
            )
        return bool(res.modified_count)

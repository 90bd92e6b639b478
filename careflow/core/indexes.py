# careflow/core/indexes.py
from pymongo import ASCENDING, GEOSPHERE

async def ensure_index(col, keys, name: str, **kwargs):
    existing = [ix["name"] async for ix in col.list_indexes()]
    if name in existing:
        return
    await col.create_index(keys, name=name, **kwargs)

async def ensure_indexes(db):
    # Providers: active flag + filters, geo for map queries
    await ensure_index(db.providers, [("is_active", ASCENDING), ("type", ASCENDING)], "is_active_1_type_1")
    await ensure_index(db.providers, [("services", ASCENDING)], "services_1")
    await ensure_index(db.providers, [("geo", GEOSPHERE)], "geo_2dsphere", sparse=True)

    # Requests: auto-match order, stats ranges
    await ensure_index(
        db.patient_requests,
        [("status", ASCENDING), ("urgency_level", ASCENDING), ("created_at", ASCENDING)],
        "status_1_urgency_level_1_created_at_1",
    )
    await ensure_index(db.patient_requests, [("created_at", ASCENDING)], "created_at_1")

# careflow/db.py
from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient

from .core.config import settings

@lru_cache(maxsize=1)
def get_client() -> AsyncIOMotorClient:
    # Cached to play nicely with uvicorn --reload
    return AsyncIOMotorClient(settings.mongo_uri, tz_aware=True, uuidRepresentation="standard")

def get_db():
    return get_client()[settings.mongo_db]

def providers_col():
    return get_db()["providers"]

def requests_col():
    return get_db()["patient_requests"]

__all__ = ["get_client", "get_db", "providers_col", "requests_col"]

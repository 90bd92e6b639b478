# tests/conftest.py
from datetime import datetime, timedelta, timezone
from math import degrees

import pytest
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from careflow.deps import get_geocoder, get_provider_store, get_request_store
from careflow.main import app
from careflow.repos.inmemory import InMemoryProviderStore, InMemoryRequestStore
from careflow.schemas import LatLng, PatientRequest, ProviderIn
from careflow.services.geo import EARTH_RADIUS_MILES

ORIGIN = LatLng(lat=38.85, lng=-77.27)
T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

def north_of(point: LatLng, miles: float) -> LatLng:
    """A point exactly `miles` due north of `point` (along the meridian)."""
    return LatLng(lat=point.lat + degrees(miles / EARTH_RADIUS_MILES), lng=point.lng)

def make_provider(name="P", type_="urgent_care", miles=None, wait=None, services=("urgent_care",), **kw) -> ProviderIn:
    return ProviderIn(
        name=name,
        type=type_,
        location=north_of(ORIGIN, miles) if miles is not None else None,
        services=list(services),
        current_wait_time=wait,
        **kw,
    )

def make_request(rid, urgency=3, service="urgent_care", status="pending", minutes=0, location=None, **kw) -> PatientRequest:
    return PatientRequest(
        id=rid,
        location=location or ORIGIN,
        requested_service=service,
        urgency_level=urgency,
        status=status,
        created_at=T0 + timedelta(minutes=minutes),
        **kw,
    )

class FakeGeocoder:
    def __init__(self, result=(38.85, -77.27)):
        self.result = result
        self.calls = []

    async def geocode(self, address):
        self.calls.append(address)
        return self.result

@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"

@pytest.fixture
def provider_store():
    return InMemoryProviderStore()

@pytest.fixture
def request_store():
    return InMemoryRequestStore()

@pytest.fixture
def geocoder():
    return FakeGeocoder()

@pytest.fixture
async def test_client(provider_store, request_store, geocoder):
    app.dependency_overrides[get_provider_store] = lambda: provider_store
    app.dependency_overrides[get_request_store] = lambda: request_store
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    try:
        async with LifespanManager(app):
            transport = ASGITransport(app=app, raise_app_exceptions=True)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
    finally:
        app.dependency_overrides.clear()

# careflow/routers/providers.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ..deps import get_directory, get_finder
from ..schemas import (
    LatLng, NearbyProviderResult, Provider, ProviderFilters, ProviderIn, ProviderType, ServiceType, WaitTimeIn,
)

router = APIRouter(prefix="/providers", tags=["providers"])

def _filters(
    provider_type: Optional[ProviderType] = None,
    service_type: Optional[ServiceType] = None,
    accepts_walk_ins: Optional[bool] = None,
    telehealth_available: Optional[bool] = None,
    language: Optional[str] = None,
    insurance: Optional[str] = None,
) -> ProviderFilters:
    return ProviderFilters(
        provider_type=provider_type,
        service_type=service_type,
        accepts_walk_ins=accepts_walk_ins,
        telehealth_available=telehealth_available,
        language=language,
        insurance=insurance,
    )

@router.post("", response_model=Provider, status_code=201)
async def create_provider(payload: ProviderIn, directory=Depends(get_directory)):
    return await directory.create(payload)

@router.get("", response_model=List[Provider])
async def search_providers(
    filters: ProviderFilters = Depends(_filters),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_miles: float = Query(10, gt=0),
    limit: int = Query(50, gt=0, le=100),
    offset: int = Query(0, ge=0),
    directory=Depends(get_directory),
):
    if (lat is None) != (lng is None):
        raise HTTPException(400, "lat and lng must be given together")
    center = LatLng(lat=lat, lng=lng) if lat is not None else None
    return await directory.search(filters, center, radius_miles if center else None, limit, offset)

@router.get("/nearby", response_model=List[NearbyProviderResult])
async def nearby_providers(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    max_distance_miles: float = Query(10, gt=0),
    provider_type: Optional[ProviderType] = None,
    service_type: Optional[ServiceType] = None,
    limit: int = Query(50, gt=0, le=100),
    finder=Depends(get_finder),
):
    return await finder.find_nearby(
        LatLng(lat=lat, lng=lng),
        max_distance_miles,
        ProviderFilters(provider_type=provider_type, service_type=service_type),
        limit,
    )

@router.get("/low-wait", response_model=List[Provider])
async def low_wait_providers(
    max_wait_minutes: int = Query(30, ge=0),
    limit: int = Query(10, gt=0, le=100),
    directory=Depends(get_directory),
):
    return await directory.low_wait(max_wait_minutes, limit)

@router.get("/top-rated", response_model=List[Provider])
async def top_rated_providers(
    min_rating: float = Query(4.0, ge=0, le=5),
    limit: int = Query(10, gt=0, le=100),
    directory=Depends(get_directory),
):
    return await directory.top_rated(min_rating, limit)

@router.get("/{provider_id}", response_model=Provider)
async def get_provider(provider_id: str, directory=Depends(get_directory)):
    return await directory.get(provider_id)

@router.patch("/{provider_id}/wait-time", response_model=Provider)
async def update_wait_time(provider_id: str, payload: WaitTimeIn, directory=Depends(get_directory)):
    return await directory.update_wait_time(provider_id, payload.minutes)

@router.patch("/{provider_id}/active", response_model=Provider)
async def set_provider_active(
    provider_id: str,
    active: bool = Body(..., embed=True),
    directory=Depends(get_directory),
):
    return await directory.set_active(provider_id, active)

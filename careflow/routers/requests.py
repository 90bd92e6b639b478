# careflow/routers/requests.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..core.errors import NoCandidatesFound
from ..deps import get_matcher, get_request_service, get_request_store, get_scheduler, get_statistics
from ..schemas import (
    AutoMatchOut, LatLng, MatchAlgorithm, MatchOut, NearbyRequest, PatientRequest, RequestIn, RequestStats,
)
from ..services.finder import pending_requests_near
from ..services.stats import plot_by_service_png

router = APIRouter(prefix="/requests", tags=["requests"])

# Static paths first so they are not captured by /{request_id}

@router.post("", response_model=PatientRequest, status_code=201)
async def create_request(payload: RequestIn, svc=Depends(get_request_service)):
    return await svc.create(payload)

@router.get("/urgent", response_model=List[PatientRequest])
async def urgent_requests(
    max_urgency_level: int = Query(2, ge=1, le=5),
    limit: int = Query(20, gt=0, le=100),
    svc=Depends(get_request_service),
):
    return await svc.urgent(max_urgency_level, limit)

@router.get("/pending-near", response_model=List[NearbyRequest])
async def pending_near(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_miles: float = Query(10, gt=0),
    store=Depends(get_request_store),
):
    return await pending_requests_near(store, LatLng(lat=lat, lng=lng), radius_miles)

@router.post("/auto-match", response_model=AutoMatchOut)
async def auto_match(scheduler=Depends(get_scheduler)):
    report = await scheduler.run()
    return AutoMatchOut(
        processed=report.processed,
        matched=report.matched,
        skipped=report.skipped,
        failed=report.failed,
    )

@router.get("/stats", response_model=RequestStats)
async def request_stats(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    statistics=Depends(get_statistics),
):
    return await statistics.get_statistics(start, end)

@router.get("/stats/by-service.png")
async def request_stats_plot(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    statistics=Depends(get_statistics),
):
    buf = await plot_by_service_png(statistics, start, end)
    return StreamingResponse(buf, media_type="image/png")

@router.get("/{request_id}", response_model=PatientRequest)
async def get_request(request_id: str, svc=Depends(get_request_service)):
    return await svc.get(request_id)

@router.post("/{request_id}/match", response_model=MatchOut)
async def match_request(
    request_id: str,
    algorithm: MatchAlgorithm = "smart",
    matcher=Depends(get_matcher),
):
    try:
        return await matcher.match_and_commit(request_id, algorithm)
    except NoCandidatesFound:
        return MatchOut(request_id=request_id, matched=False)

@router.post("/{request_id}/cancel", response_model=PatientRequest)
async def cancel_request(request_id: str, svc=Depends(get_request_service)):
    return await svc.cancel(request_id)

@router.post("/{request_id}/fulfill", response_model=PatientRequest)
async def fulfill_request(request_id: str, svc=Depends(get_request_service)):
    return await svc.fulfill(request_id)

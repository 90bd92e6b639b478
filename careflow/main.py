# careflow/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.indexes import ensure_indexes
from .db import get_client, get_db
from .deps import get_geocoder
from .core.errors import (
    GeocodeError, InvalidStateTransition, ProviderNotFound, RequestNotFound, StoreUnavailable,
)
from .routers import providers as providers_router
from .routers import requests as requests_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if settings.use_mongo:
        await ensure_indexes(get_db())
        logger.info("mongo indexes ensured on %s", settings.mongo_db)
    else:
        logger.info("using in-memory stores")

    yield

    # only close what was actually created
    if get_geocoder.cache_info().currsize:
        await get_geocoder().aclose()
    if settings.use_mongo:
        get_client().close()

app = FastAPI(lifespan=lifespan, title="CareFlow Matching API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Error mapping ----------------
@app.exception_handler(RequestNotFound)
@app.exception_handler(ProviderNotFound)
async def _not_found(request: Request, exc: Exception):
    return JSONResponse({"detail": str(exc)}, status_code=404)

@app.exception_handler(InvalidStateTransition)
async def _conflict(request: Request, exc: InvalidStateTransition):
    return JSONResponse({"detail": str(exc), "status": exc.src}, status_code=409)

@app.exception_handler(StoreUnavailable)
async def _unavailable(request: Request, exc: StoreUnavailable):
    logger.error("store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": "Datastore unavailable, please try again"}, status_code=503)

@app.exception_handler(GeocodeError)
async def _geocode(request: Request, exc: GeocodeError):
    return JSONResponse({"detail": f"Could not locate address: {exc}"}, status_code=422)

# ---------------- Include routers ----------------
app.include_router(requests_router.router)      # /requests
app.include_router(providers_router.router)     # /providers

# Health
@app.get("/health")
def health():
    return {"ok": True}

# careflow/deps.py
from functools import lru_cache

from fastapi import Depends

from .core.config import settings
from .core.geocode import Geocoder
from .services.auto_match import AutoMatchScheduler
from .services.finder import NearbyProviderFinder
from .services.matching import RequestMatcher
from .services.providers import ProviderDirectory
from .services.requests import RequestService
from .services.stats import RequestStatistics

@lru_cache(maxsize=1)
def _stores():
    if settings.use_mongo:
        from .db import providers_col, requests_col
        from .repos.mongo import MongoProviderStore, MongoRequestStore
        return MongoProviderStore(providers_col()), MongoRequestStore(requests_col())
    from .repos.inmemory import InMemoryProviderStore, InMemoryRequestStore
    return InMemoryProviderStore(), InMemoryRequestStore()

def get_provider_store():
    return _stores()[0]

def get_request_store():
    return _stores()[1]

@lru_cache(maxsize=1)
def get_geocoder() -> Geocoder:
    return Geocoder(
        provider=settings.geocoder,
        opencage_key=settings.opencage_key,
        google_maps_key=settings.google_maps_key,
        admin_contact=settings.admin_contact,
        min_delay_seconds=settings.geocode_min_interval_seconds,
    )

def get_finder(providers=Depends(get_provider_store)) -> NearbyProviderFinder:
    return NearbyProviderFinder(providers)

def get_matcher(requests=Depends(get_request_store), finder=Depends(get_finder)) -> RequestMatcher:
    return RequestMatcher(
        requests,
        finder,
        search_radius_miles=settings.default_search_radius_miles,
        candidate_limit=settings.match_candidate_limit,
    )

def get_scheduler(requests=Depends(get_request_store), matcher=Depends(get_matcher)) -> AutoMatchScheduler:
    return AutoMatchScheduler(requests, matcher, timeout_seconds=settings.auto_match_timeout_seconds)

def get_statistics(requests=Depends(get_request_store)) -> RequestStatistics:
    return RequestStatistics(requests)

def get_request_service(requests=Depends(get_request_store), geocoder=Depends(get_geocoder)) -> RequestService:
    return RequestService(requests, geocoder)

def get_directory(providers=Depends(get_provider_store)) -> ProviderDirectory:
    return ProviderDirectory(providers)

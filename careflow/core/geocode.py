# careflow/core/geocode.py
from __future__ import annotations
from typing import Optional, Tuple

import httpx
from geopy.extra.rate_limiter import AsyncRateLimiter

from .errors import GeocodeError

class Geocoder:
    """
    Address -> (lat, lng) via Nominatim (default), OpenCage or Google.
    Raises GeocodeError on failure.

    Outbound calls go through a geopy AsyncRateLimiter owned by this instance,
    so each geocoder keeps its own spacing between requests.
    """

    def __init__(
        self,
        provider: str = "nominatim",
        opencage_key: Optional[str] = None,
        google_maps_key: Optional[str] = None,
        admin_contact: str = "mailto:admin@example.com",
        min_delay_seconds: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.provider = (provider or "nominatim").lower()
        self.opencage_key = opencage_key
        self.google_maps_key = google_maps_key
        self.admin_contact = admin_contact
        self.client = client or httpx.AsyncClient(timeout=12)
        # GeocodeError is not a geopy service error, so it is never retried or swallowed
        self.limiter = AsyncRateLimiter(
            self._fetch_json,
            min_delay_seconds=min_delay_seconds,
            max_retries=0,
            swallow_exceptions=False,
        )

    async def aclose(self):
        await self.client.aclose()

    async def _fetch_json(self, url: str, params: dict, headers: Optional[dict] = None):
        try:
            r = await self.client.get(url, params=params, headers=headers)
            r.raise_for_status()
        except httpx.HTTPError as ex:
            raise GeocodeError(f"Geocoding request failed: {ex}") from ex
        return r.json()

    async def _get_json(self, url: str, params: dict, headers: Optional[dict] = None):
        return await self.limiter(url, params, headers)

    async def geocode(self, address: str) -> Tuple[float, float]:
        a = (address or "").strip()
        if not a:
            raise GeocodeError("Empty address")

        if self.provider == "opencage":
            if not self.opencage_key:
                raise GeocodeError("OPENCAGE_KEY not set")
            js = await self._get_json(
                "https://api.opencagedata.com/geocode/v1/json",
                {"q": a, "key": self.opencage_key, "limit": 1},
            )
            if not js.get("results"):
                raise GeocodeError("No results")
            g = js["results"][0]["geometry"]
            return float(g["lat"]), float(g["lng"])

        if self.provider == "google":
            if not self.google_maps_key:
                raise GeocodeError("GOOGLE_MAPS_KEY not set")
            js = await self._get_json(
                "https://maps.googleapis.com/maps/api/geocode/json",
                {"address": a, "key": self.google_maps_key},
            )
            if not js.get("results"):
                raise GeocodeError("No results")
            loc = js["results"][0]["geometry"]["location"]
            return float(loc["lat"]), float(loc["lng"])

        # Nominatim policy: identify the app with a UA + contact
        headers = {"User-Agent": f"CareFlow/1.0 (+{self.admin_contact})"}
        js = await self._get_json(
            "https://nominatim.openstreetmap.org/search",
            {"q": a, "format": "json", "limit": 1},
            headers,
        )
        if not js:
            raise GeocodeError("No results")
        return float(js[0]["lat"]), float(js[0]["lon"])

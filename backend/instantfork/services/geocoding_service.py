"""Reverse geocoding for display labels.

Turns a coordinate into a short place name ("Bethesda, Maryland") using a
Nominatim-compatible reverse endpoint. Results are display text only and
nothing depends on them: any failure resolves to ``None`` and callers fall
back to the nearest named service location.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
import structlog
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from instantfork.config import settings
from instantfork.core.exceptions import GeocodingError
from instantfork.core.rate_limit import HostRateLimiter
from instantfork.services.cache_service import CacheService, cache_key_for_geocode

logger = structlog.get_logger(__name__)

_rate_limiter = HostRateLimiter(default_rpm=settings.GEOCODER_RPM)

_PLACE_KEYS = ("city", "town", "village", "suburb", "neighbourhood", "county")


def _is_transient(exc: BaseException) -> bool:
    """Timeouts, network errors, 429 and 5xx are worth another attempt."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def format_place(payload: Dict[str, Any]) -> Optional[str]:
    """Short "Place, State" label from a Nominatim reverse response."""
    address = payload.get("address") or {}
    place = next((address[key] for key in _PLACE_KEYS if address.get(key)), None)
    state = address.get("state")

    if place and state:
        return f"{place}, {state}"
    if place or state:
        return place or state

    display_name = payload.get("display_name")
    if display_name:
        # "Street, Neighbourhood, City, County, State, Zip, Country"
        return ", ".join(part.strip() for part in display_name.split(",")[:2])
    return None


class GeocodingService:
    """Reverse geocoder with caching, throttling and retries."""

    def __init__(
        self,
        cache: Optional[CacheService] = None,
        rate_limiter: Optional[HostRateLimiter] = None,
        base_url: Optional[str] = None,
    ):
        self.cache = cache
        self.rate_limiter = rate_limiter or _rate_limiter
        self.base_url = base_url or settings.GEOCODER_URL
        self.host = urlparse(self.base_url).netloc
        self._timeout = settings.GEOCODER_TIMEOUT_SECONDS
        self.logger = logger.bind(service="geocoding_service")

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """Place label for a coordinate, or None if it cannot be resolved.

        Args:
            latitude: WGS84 latitude
            longitude: WGS84 longitude

        Returns:
            Label such as "Arlington, Virginia", or None
        """
        key = cache_key_for_geocode(latitude, longitude)
        if self.cache:
            cached = await self.cache.get(key)
            if cached:
                return cached

        try:
            payload = await self._call_reverse_api(latitude, longitude)
            label = format_place(payload)
            if label is None:
                raise GeocodingError("No place name in geocoder response")
        except (RetryError, httpx.HTTPError, GeocodingError, ValueError) as e:
            self.logger.warning(
                "reverse_geocode_failed",
                latitude=latitude,
                longitude=longitude,
                error=str(e),
            )
            return None

        if self.cache:
            await self.cache.set(key, label, ttl=settings.GEOCODE_CACHE_TTL_SECONDS)

        self.logger.debug("reverse_geocoded", latitude=latitude, longitude=longitude, label=label)
        return label

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    async def _call_reverse_api(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """Single call to the reverse endpoint.

        Raises:
            httpx.HTTPStatusError: If the geocoder returns an error status
            httpx.TimeoutException: If the request times out
            httpx.NetworkError: If a network error occurs
        """
        await self.rate_limiter.acquire(self.host)

        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "jsonv2",
            "zoom": 14,
            "addressdetails": 1,
        }
        headers = {"User-Agent": settings.GEOCODER_USER_AGENT}

        async with httpx.AsyncClient(timeout=self._timeout, headers=headers) as client:
            response = await client.get(self.base_url, params=params)

            if response.status_code == 429:
                self.logger.warning("geocoder_rate_limit_hit")
            response.raise_for_status()

            data = response.json()
            if not isinstance(data, dict):
                raise GeocodingError("Unexpected geocoder response")
            if "error" in data:
                raise GeocodingError(str(data["error"]))
            return data

"""Service-region lookups: supported places, search and coordinate resolution."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from instantfork.schemas import ApiResponse, ListMeta, LocationResolveResponse, ServiceLocationResponse
from instantfork.services.cache_service import CacheService, get_cache
from instantfork.services.geo import (
    DMV_LOCATIONS,
    find_location,
    get_nearest_location,
    is_within_service_area,
    resolve_user_location,
    search_locations,
)
from instantfork.services.geocoding_service import GeocodingService

router = APIRouter()


async def get_geocoder(cache: CacheService = Depends(get_cache)) -> GeocodingService:
    return GeocodingService(cache=cache)


@router.get("", response_model=ApiResponse)
async def list_locations():
    """Every named place InstantFork serves."""
    return ApiResponse(
        status="success",
        data=[ServiceLocationResponse(**loc.to_dict()) for loc in DMV_LOCATIONS],
        meta=ListMeta(total=len(DMV_LOCATIONS)),
    )


@router.get("/search", response_model=ApiResponse)
async def search(q: str = Query("", max_length=100, description="Place name fragment")):
    """Autocomplete over the supported places.

    Free text such as "I live in Reston" matches nothing by label, so it falls
    back to the first place whose city the text mentions.
    """
    matches = search_locations(q)
    if not matches:
        place = find_location(q)
        if place is not None:
            matches = [place]
    return ApiResponse(
        status="success",
        data=[ServiceLocationResponse(**loc.to_dict()) for loc in matches],
        meta=ListMeta(total=len(matches)),
    )


@router.get("/resolve", response_model=ApiResponse)
async def resolve(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    geocoder: GeocodingService = Depends(get_geocoder),
):
    """Check a coordinate against the service region and name it.

    Without a coordinate the downtown fallback is used. Outside the region
    the response still succeeds, with ``in_service_area`` false and the
    nearest supported place, so the client can offer it.
    """
    location = resolve_user_location(lat, lng)
    nearest = get_nearest_location(location.latitude, location.longitude)

    place_name = await geocoder.reverse(location.latitude, location.longitude)

    return ApiResponse(
        status="success",
        data=LocationResolveResponse(
            latitude=location.latitude,
            longitude=location.longitude,
            is_fallback=location.is_fallback,
            in_service_area=is_within_service_area(location.latitude, location.longitude),
            place_name=place_name or nearest.label,
            nearest_location=ServiceLocationResponse(**nearest.to_dict()),
        ),
    )

"""Service-region location schemas."""

from pydantic import BaseModel


class ServiceLocationResponse(BaseModel):
    name: str
    state: str
    label: str
    latitude: float
    longitude: float
    radius_miles: float


class LocationResolveResponse(BaseModel):
    """Where the user is, as far as the catalog is concerned."""

    latitude: float
    longitude: float
    is_fallback: bool
    in_service_area: bool
    place_name: str
    nearest_location: ServiceLocationResponse

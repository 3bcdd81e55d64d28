"""Service-region geometry for the DC / Maryland / Northern Virginia area.

Distances are great-circle (haversine) in miles. The region itself is a
plain latitude/longitude box; the named locations are used for search,
autocomplete and "nearest supported location" suggestions.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from instantfork.config import settings
from instantfork.core.exceptions import ServiceAreaError

EARTH_RADIUS_MILES = 3959.0


@dataclass(frozen=True)
class ServiceLocation:
    """A named place inside the service region."""

    name: str
    state: str
    latitude: float
    longitude: float
    radius_miles: float

    @property
    def label(self) -> str:
        return f"{self.name}, {self.state}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "state": self.state,
            "label": self.label,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius_miles": self.radius_miles,
        }


@dataclass(frozen=True)
class UserLocation:
    """A coordinate the catalog is evaluated against."""

    latitude: float
    longitude: float
    is_fallback: bool = False


DMV_LOCATIONS: List[ServiceLocation] = [
    # Washington DC
    ServiceLocation("Washington", "DC", 38.9072, -77.0369, 10),
    ServiceLocation("Georgetown", "DC", 38.9097, -77.0654, 3),
    ServiceLocation("Capitol Hill", "DC", 38.8899, -76.9926, 3),
    ServiceLocation("Dupont Circle", "DC", 38.9097, -77.0434, 2),
    # Maryland
    ServiceLocation("Bethesda", "MD", 38.9807, -77.0947, 5),
    ServiceLocation("Silver Spring", "MD", 38.9907, -77.0261, 5),
    ServiceLocation("Rockville", "MD", 39.0840, -77.1528, 5),
    ServiceLocation("College Park", "MD", 38.9807, -76.9369, 4),
    ServiceLocation("Greenbelt", "MD", 39.0046, -76.8755, 4),
    ServiceLocation("Gaithersburg", "MD", 39.1434, -77.2014, 5),
    ServiceLocation("Annapolis", "MD", 38.9784, -76.4922, 5),
    ServiceLocation("Baltimore", "MD", 39.2904, -76.6122, 10),
    # Northern Virginia
    ServiceLocation("Arlington", "VA", 38.8816, -77.0910, 5),
    ServiceLocation("Alexandria", "VA", 38.8048, -77.0469, 5),
    ServiceLocation("Fairfax", "VA", 38.8462, -77.3064, 5),
    ServiceLocation("Falls Church", "VA", 38.8823, -77.1711, 3),
    ServiceLocation("McLean", "VA", 38.9339, -77.1773, 4),
    ServiceLocation("Tysons", "VA", 38.9187, -77.2311, 3),
    ServiceLocation("Reston", "VA", 38.9586, -77.3570, 4),
    ServiceLocation("Herndon", "VA", 38.9695, -77.3861, 3),
    ServiceLocation("Manassas", "VA", 38.7509, -77.4753, 5),
]


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def service_area_bounds() -> Tuple[float, float, float, float]:
    """(south, north, west, east) of the supported region."""
    return (
        settings.SERVICE_AREA_SOUTH,
        settings.SERVICE_AREA_NORTH,
        settings.SERVICE_AREA_WEST,
        settings.SERVICE_AREA_EAST,
    )


def is_within_service_area(latitude: float, longitude: float) -> bool:
    """Inclusive bounding-box check against the service region."""
    south, north, west, east = service_area_bounds()
    return south <= latitude <= north and west <= longitude <= east


def get_nearest_location(latitude: float, longitude: float) -> ServiceLocation:
    """The named service location closest to the coordinate."""
    return min(
        DMV_LOCATIONS,
        key=lambda loc: calculate_distance(latitude, longitude, loc.latitude, loc.longitude),
    )


def find_location(term: str) -> Optional[ServiceLocation]:
    """Look up a service location by free text ("bethesda", "Arlington, VA").

    Matches when the full label or the city name contains the term, or the
    term contains the city name. Returns the first match in list order.
    """
    needle = term.strip().lower()
    if not needle:
        return None

    for loc in DMV_LOCATIONS:
        label = loc.label.lower()
        city = loc.name.lower()
        if needle in label or needle in city or city in needle:
            return loc
    return None


def search_locations(term: str) -> List[ServiceLocation]:
    """All service locations whose label contains the term (autocomplete)."""
    needle = term.strip().lower()
    if not needle:
        return list(DMV_LOCATIONS)
    return [loc for loc in DMV_LOCATIONS if needle in loc.label.lower()]


def check_service_area(latitude: float, longitude: float) -> None:
    """Raise ServiceAreaError, with a nearest-location suggestion, outside the region."""
    if not is_within_service_area(latitude, longitude):
        nearest = get_nearest_location(latitude, longitude)
        raise ServiceAreaError(latitude, longitude, nearest=nearest.to_dict())


def resolve_user_location(
    latitude: Optional[float],
    longitude: Optional[float],
) -> UserLocation:
    """Use the supplied coordinate, or the fallback one when it is incomplete."""
    if latitude is None or longitude is None:
        return UserLocation(
            latitude=settings.DEFAULT_LATITUDE,
            longitude=settings.DEFAULT_LONGITUDE,
            is_fallback=True,
        )
    return UserLocation(latitude=latitude, longitude=longitude)

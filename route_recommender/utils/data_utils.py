"""
Geographic and Text Utilities
=============================

Essential geo math and text helpers used across the application.

Key Features:
- Haversine great-circle distance between Locations
- Nearest-endpoint classification for route enrichment
- Linear interpolation between route endpoints
- Coordinate validation and distance formatting
- Name normalization for deduplication keys

Functions:
    validate_coordinates: Check if latitude/longitude are valid
    distance_km: Great-circle distance between two Locations
    closest_endpoint: Distance to, and identity of, the nearer endpoint
    interpolate: Point at fraction t between two Locations
    format_distance: Human-readable distance string
    normalize_name: Lowercase, whitespace-collapsed name for dedup keys

Author: Route Recommender Team
"""

import math
import logging
from typing import Tuple

from ..data_pipeline.data_models import Location


# Module logger
logger = logging.getLogger(__name__)

# Constants for geographic calculations
EARTH_RADIUS_KM = 6371.0  # Earth's radius in kilometers
MAX_LATITUDE = 90.0
MIN_LATITUDE = -90.0
MAX_LONGITUDE = 180.0
MIN_LONGITUDE = -180.0

ORIGIN = "origin"
DESTINATION = "destination"


def validate_coordinates(latitude: float, longitude: float) -> bool:
    """
    Validate if latitude and longitude coordinates are within valid ranges

    Args:
        latitude (float): Latitude coordinate
        longitude (float): Longitude coordinate

    Returns:
        bool: True if coordinates are valid, False otherwise

    Examples:
        >>> validate_coordinates(28.6139, 77.2090)  # New Delhi
        True
        >>> validate_coordinates(91.0, 181.0)  # Invalid
        False
    """
    try:
        lat = float(latitude)
        lon = float(longitude)

        if math.isnan(lat) or math.isnan(lon):
            return False

        if not (MIN_LATITUDE <= lat <= MAX_LATITUDE):
            return False

        if not (MIN_LONGITUDE <= lon <= MAX_LONGITUDE):
            return False

        return True

    except (ValueError, TypeError):
        return False


def distance_km(a: Location, b: Location) -> float:
    """
    Calculate the great circle distance between two Locations using Haversine formula

    Args:
        a (Location): First point
        b (Location): Second point

    Returns:
        float: Distance in kilometers, symmetric and never negative

    Examples:
        >>> round(distance_km(Location(0, 0), Location(0, 1)), 2)
        111.19
    """
    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lng - a.lng)

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    # Clamp against rounding drift just above 1.0
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_KM * c


def closest_endpoint(point: Location, origin: Location,
                     destination: Location) -> Tuple[float, str]:
    """
    Distance from a point to the nearer of two route endpoints

    Args:
        point (Location): POI position
        origin (Location): Route origin
        destination (Location): Route destination

    Returns:
        Tuple[float, str]: (distance in km, "origin" or "destination");
        equal distances resolve to "origin"
    """
    to_origin = distance_km(point, origin)
    to_destination = distance_km(point, destination)

    if to_origin <= to_destination:
        return to_origin, ORIGIN
    return to_destination, DESTINATION


def interpolate(origin: Location, destination: Location, t: float,
                address: str = "") -> Location:
    """
    Linear interpolation in latitude/longitude space

    Not geodesic-accurate over long distances; the straight lat/lng line
    is the accepted approximation of the route.

    Args:
        origin (Location): Start point (t = 0)
        destination (Location): End point (t = 1)
        t (float): Progress fraction, clamped to [0, 1]
        address (str): Address label for the resulting Location

    Returns:
        Location: Exactly origin at t=0, exactly destination at t=1
    """
    t = min(1.0, max(0.0, t))
    lat = (1.0 - t) * origin.lat + t * destination.lat
    lng = (1.0 - t) * origin.lng + t * destination.lng
    return Location(lat=lat, lng=lng, address=address)


def format_distance(km: float) -> str:
    """
    Format distance for display

    Examples:
        >>> format_distance(0.85)
        '850m'
        >>> format_distance(4.21)
        '4.2km'
        >>> format_distance(37.4)
        '37km'
    """
    if km < 1:
        return f"{round(km * 1000)}m"
    elif km < 10:
        return f"{km:.1f}km"
    return f"{round(km)}km"


def normalize_name(text: str) -> str:
    """Lowercase and collapse whitespace so near-identical names compare equal"""
    if not text:
        return ""
    return " ".join(text.lower().split())

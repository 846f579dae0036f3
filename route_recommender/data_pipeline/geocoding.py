"""
Nominatim Geocoding
===================

Resolves free-text place names into coordinates through OpenStreetMap's
Nominatim service. When the service is unreachable, a small table of
well-known cities keeps search usable offline.

Author: Route Recommender Team
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from ..utils.error_handler import ErrorHandler

from config import config


@dataclass(frozen=True)
class GeocodeResult:
    """Single geocoding match"""
    lat: float
    lng: float
    address: str
    place_id: Optional[str] = None


FALLBACK_LOCATIONS = [
    GeocodeResult(23.2599, 77.4126, "Bhopal, Madhya Pradesh, India"),
    GeocodeResult(22.4676, 78.6677, "Pachmarhi, Madhya Pradesh, India"),
    GeocodeResult(28.6139, 77.2090, "New Delhi, Delhi, India"),
    GeocodeResult(19.0760, 72.8777, "Mumbai, Maharashtra, India"),
    GeocodeResult(12.9716, 77.5946, "Bangalore, Karnataka, India"),
    GeocodeResult(13.0827, 80.2707, "Chennai, Tamil Nadu, India"),
    GeocodeResult(22.5726, 88.3639, "Kolkata, West Bengal, India"),
    GeocodeResult(18.5204, 73.8567, "Pune, Maharashtra, India"),
    GeocodeResult(26.9124, 75.7873, "Jaipur, Rajasthan, India"),
    GeocodeResult(17.3850, 78.4867, "Hyderabad, Telangana, India"),
    GeocodeResult(40.7128, -74.0060, "New York, NY, USA"),
    GeocodeResult(34.0522, -118.2437, "Los Angeles, CA, USA"),
    GeocodeResult(51.5074, -0.1278, "London, UK"),
    GeocodeResult(48.8566, 2.3522, "Paris, France"),
    GeocodeResult(35.6762, 139.6503, "Tokyo, Japan"),
]

MAX_RESULTS = 5
COUNTRY_CODES = "in,us,gb,ca,au"


class NominatimGeocoder:
    """Geocoding collaborator backed by Nominatim"""

    def __init__(self, session: Optional[requests.Session] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.base_url = (base_url or config.NOMINATIM_URL).rstrip("/")
        self.timeout = timeout or config.GEOCODING_TIMEOUT_SECONDS
        self.headers = {"User-Agent": config.HTTP_USER_AGENT}
        self.error_handler = error_handler or ErrorHandler()

    def search(self, text: str) -> List[GeocodeResult]:
        """
        Search for places matching free text

        Args:
            text (str): Place name or address fragment

        Returns:
            List[GeocodeResult]: Up to 5 matches; the offline city table on failure
        """
        if not text or len(text.strip()) < 2:
            return []

        params = {
            "format": "json",
            "q": text,
            "limit": MAX_RESULTS,
            "addressdetails": 1,
            "countrycodes": COUNTRY_CODES,
        }

        try:
            response = self.session.get(f"{self.base_url}/search", params=params,
                                        headers=self.headers, timeout=self.timeout)
            response.raise_for_status()

            results = [
                GeocodeResult(
                    lat=float(item["lat"]),
                    lng=float(item["lon"]),
                    address=item.get("display_name", ""),
                    place_id=str(item["place_id"]) if item.get("place_id") is not None else None,
                )
                for item in response.json()
            ]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            status_code = getattr(getattr(e, "response", None), "status_code", None)
            self.error_handler.handle_api_error("Nominatim", "search", e, status_code)
            return self.fallback_results(text)

        self.logger.info(f"Nominatim returned {len(results)} results for '{text}'")
        return results[:MAX_RESULTS]

    def reverse_geocode(self, lat: float, lng: float) -> str:
        """
        Resolve coordinates into a display address

        Returns:
            str: Nominatim display name, or "lat, lng" to 4 decimals on failure
        """
        params = {"format": "json", "lat": lat, "lon": lng, "addressdetails": 1}

        try:
            response = self.session.get(f"{self.base_url}/reverse", params=params,
                                        headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            display_name = response.json().get("display_name")
        except (requests.RequestException, ValueError, AttributeError) as e:
            self.logger.warning(f"Reverse geocoding failed for {lat}, {lng}: {e}")
            display_name = None

        return display_name or f"{lat:.4f}, {lng:.4f}"

    @staticmethod
    def fallback_results(text: str) -> List[GeocodeResult]:
        """Offline matches by case-insensitive substring"""
        wanted = text.strip().lower()
        matches = [place for place in FALLBACK_LOCATIONS if wanted in place.address.lower()]
        return matches[:MAX_RESULTS]

"""
OpenStreetMap Data Loader
========================

Fetches Points of Interest (POIs) from OpenStreetMap using the Overpass API
and normalizes OSM elements into canonical POIs.

Author: Route Recommender Team
"""

import logging
from typing import List, Dict, Optional, Sequence, Tuple

import requests

from .data_models import POI, POICategory, Location
from .poi_sources import POISource, OverpassRecord, RawRecord
from .fallback_generator import POI_DESCRIPTIONS, DEFAULT_POI_DESCRIPTION, placeholder_photo

from config import config


# Category -> list of (OSM key, value); "*" matches any value of the key
CATEGORY_OSM_TAGS: Dict[POICategory, List[Tuple[str, str]]] = {
    POICategory.RESTAURANTS: [("amenity", "restaurant"), ("amenity", "fast_food"), ("amenity", "cafe")],
    POICategory.MUSEUMS: [("tourism", "museum"), ("amenity", "arts_centre")],
    POICategory.PARKS: [("leisure", "park"), ("leisure", "garden")],
    POICategory.SHOPPING: [("shop", "*"), ("amenity", "marketplace")],
    POICategory.HISTORIC_SITES: [("historic", "*"), ("tourism", "attraction")],
    POICategory.ENTERTAINMENT: [("amenity", "theatre"), ("amenity", "cinema"), ("leisure", "amusement_arcade")],
}


class OSMQueryBuilder:
    """
    Helper class for building Overpass API queries
    Constructs radius queries around a point for the requested categories
    """

    @staticmethod
    def tags_for_hints(category_hints: Sequence[str]) -> List[Tuple[str, str]]:
        """Map preference tags onto OSM tag filters, ignoring tags with no mapping"""
        tags = []
        for hint in category_hints:
            category = POICategory.from_label(hint)
            for tag in CATEGORY_OSM_TAGS.get(category, []):
                if tag not in tags:
                    tags.append(tag)
        return tags

    @staticmethod
    def build_around_query(location: Location, category_hints: Sequence[str],
                           radius_km: float) -> str:
        """
        Build query to fetch POIs within a radius of a point

        Args:
            location (Location): Search center
            category_hints (Sequence[str]): Preference tags to filter by
            radius_km (float): Search radius in kilometers

        Returns:
            str: Overpass QL query string
        """
        around = f"(around:{radius_km * 1000:g},{location.lat},{location.lng})"
        osm_tags = OSMQueryBuilder.tags_for_hints(category_hints)

        query_parts = []
        for key, value in osm_tags:
            selector = f'["{key}"]' if value == "*" else f'["{key}"="{value}"]'
            query_parts.append(f"node{selector}{around};")
            query_parts.append(f"way{selector}{around};")

        # No usable hints: general tourist query
        if not query_parts:
            query_parts = [
                f'node["tourism"]{around};',
                f'node["amenity"~"restaurant|cafe|museum|theatre"]{around};',
                f'way["tourism"]{around};',
                f'way["amenity"~"restaurant|cafe|museum|theatre"]{around};',
            ]

        return f"[out:json][timeout:25];({''.join(query_parts)});out center meta;"


class OverpassPOISource(POISource):
    """
    POI source backed by the Overpass API
    Single attempt per search; failures propagate to the aggregator
    """

    name = "Overpass"
    priority = 10

    def __init__(self, session: Optional[requests.Session] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize Overpass source

        Args:
            session (requests.Session): HTTP session, injectable for tests
            base_url (str): Interpreter endpoint (default from config)
            timeout (float): Request timeout in seconds (default from config)
        """
        super().__init__()
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.base_url = base_url or config.OVERPASS_URL
        self.timeout = timeout or config.SOURCE_TIMEOUT_SECONDS
        self.headers = {"User-Agent": config.HTTP_USER_AGENT}

    def fetch_records(self, location: Location, category_hints: Sequence[str],
                      radius_km: float) -> List[RawRecord]:
        query = OSMQueryBuilder.build_around_query(location, category_hints, radius_km)

        self.logger.debug(f"Overpass query near {location.lat:.4f},{location.lng:.4f}")
        response = self.session.post(
            self.base_url,
            data={"data": query},
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()

        elements = response.json().get("elements") or []
        return [OverpassRecord(element) for element in elements]

    def normalize(self, record: RawRecord) -> Optional[POI]:
        """Parse a single POI from an OSM element"""
        element = record.payload
        tags = element.get("tags") or {}

        name = tags.get("name")
        if not name:
            return None

        center = element.get("center") or {}
        lat = element.get("lat", center.get("lat"))
        lon = element.get("lon", center.get("lon"))
        if lat is None or lon is None:
            return None

        category = self.map_category(tags)

        return POI(
            id=f"osm_{element.get('type', 'node')}_{element.get('id')}",
            name=name,
            description=tags.get("description") or POI_DESCRIPTIONS.get(category, DEFAULT_POI_DESCRIPTION),
            category=category,
            location=Location(lat=float(lat), lng=float(lon), address=self._extract_address(tags)),
            rating=self.estimate_rating(tags),
            price_level=self.estimate_price_level(tags),
            photos=[placeholder_photo(name)],
            opening_hours=[tags["opening_hours"]] if tags.get("opening_hours") else [],
            website=tags.get("website"),
            phone=tags.get("phone"),
        )

    @staticmethod
    def map_category(tags: Dict) -> POICategory:
        """Determine POI category from OSM tags"""
        amenity = tags.get("amenity")
        tourism = tags.get("tourism")
        leisure = tags.get("leisure")

        if amenity in ("restaurant", "cafe", "fast_food"):
            return POICategory.RESTAURANTS
        if tourism == "museum" or amenity == "arts_centre":
            return POICategory.MUSEUMS
        if tourism == "gallery":
            return POICategory.ART_GALLERIES
        if leisure in ("park", "garden"):
            return POICategory.PARKS
        if amenity == "marketplace":
            return POICategory.LOCAL_MARKETS
        if tags.get("shop"):
            return POICategory.SHOPPING
        if tags.get("historic") or tourism == "attraction":
            return POICategory.HISTORIC_SITES
        if tourism == "viewpoint":
            return POICategory.SCENIC_VIEWS
        if amenity in ("theatre", "cinema") or leisure == "amusement_arcade":
            return POICategory.ENTERTAINMENT
        if amenity in ("bar", "pub", "nightclub"):
            return POICategory.NIGHTLIFE
        if tags.get("natural") or leisure in ("nature_reserve", "sports_centre"):
            return POICategory.OUTDOOR_ACTIVITIES

        return POICategory.OTHER

    @staticmethod
    def estimate_rating(tags: Dict) -> float:
        """Estimate a rating from how complete the OSM record is"""
        rating = 3.5

        if tags.get("website"):
            rating += 0.3
        if tags.get("phone"):
            rating += 0.2
        if tags.get("opening_hours"):
            rating += 0.2
        if tags.get("wheelchair") == "yes":
            rating += 0.3

        return min(5.0, round(rating, 1))

    @staticmethod
    def estimate_price_level(tags: Dict) -> int:
        """Estimate price level (0-4) from OSM tags, 2 when nothing hints at it"""
        amenity = tags.get("amenity")

        if amenity == "fast_food":
            return 1
        if amenity == "cafe":
            return 2
        if amenity == "restaurant":
            return 3
        if tags.get("tourism") == "museum":
            return 2
        if tags.get("fee") == "no":
            return 1
        if tags.get("fee") == "yes":
            return 3
        return 2

    def _extract_address(self, tags: Dict) -> str:
        """Extract address from OSM tags"""
        address_parts = [tags[key] for key in ("addr:housenumber", "addr:street", "addr:city")
                         if tags.get(key)]
        return " ".join(address_parts) if address_parts else "Address not available"

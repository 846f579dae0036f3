"""
SerpApi Data Loader
===================

Searches Google Maps listings through SerpApi and normalizes the
`local_results` entries into canonical POIs. Only configured when
SERPAPI_API_KEY is set.

Author: Route Recommender Team
"""

import logging
from typing import Dict, List, Optional, Sequence

import requests

from .data_models import POI, POICategory, Location
from .poi_sources import POISource, SerpApiRecord, RawRecord
from .fallback_generator import placeholder_photo

from config import config


QUERY_MAP: Dict[POICategory, str] = {
    POICategory.RESTAURANTS: "restaurants cafes food",
    POICategory.MUSEUMS: "museums galleries cultural sites",
    POICategory.PARKS: "parks gardens outdoor spaces",
    POICategory.SHOPPING: "shopping malls stores markets",
    POICategory.HISTORIC_SITES: "historic sites monuments landmarks",
    POICategory.ENTERTAINMENT: "entertainment theaters cinemas venues",
    POICategory.OUTDOOR_ACTIVITIES: "outdoor activities recreation sports",
    POICategory.ART_GALLERIES: "art galleries exhibitions",
    POICategory.LOCAL_MARKETS: "local markets farmers markets",
    POICategory.SCENIC_VIEWS: "scenic viewpoints lookouts",
    POICategory.COFFEE_SHOPS: "coffee shops cafes",
    POICategory.NIGHTLIFE: "bars nightlife clubs",
}
DEFAULT_QUERY = "restaurants museums parks attractions near me"

# Substring of the business type -> category; first match wins
TYPE_MAP = [
    ("restaurant", POICategory.RESTAURANTS),
    ("food", POICategory.RESTAURANTS),
    ("cafe", POICategory.RESTAURANTS),
    ("museum", POICategory.MUSEUMS),
    ("gallery", POICategory.ART_GALLERIES),
    ("park", POICategory.PARKS),
    ("shopping", POICategory.SHOPPING),
    ("store", POICategory.SHOPPING),
    ("historic", POICategory.HISTORIC_SITES),
    ("monument", POICategory.HISTORIC_SITES),
    ("entertainment", POICategory.ENTERTAINMENT),
    ("theater", POICategory.ENTERTAINMENT),
    ("cinema", POICategory.ENTERTAINMENT),
]

TYPE_DESCRIPTIONS = [
    ("restaurant", "A popular dining establishment offering delicious meals."),
    ("cafe", "A cozy spot perfect for coffee and light meals."),
    ("museum", "Explore fascinating exhibits and learn about local culture."),
    ("park", "Beautiful outdoor space perfect for relaxation and activities."),
    ("shopping", "Great place to find unique items and local products."),
    ("historic", "Discover the rich history and heritage of this area."),
    ("entertainment", "Popular venue for entertainment and cultural experiences."),
]


class SerpApiPOISource(POISource):
    """POI source backed by SerpApi's google_maps engine"""

    name = "SerpApi"
    priority = 0

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize SerpApi source

        Args:
            api_key (str): SerpApi key (default from config)
            session (requests.Session): HTTP session, injectable for tests
            base_url (str): Search endpoint (default from config)
            timeout (float): Request timeout in seconds (default from config)
        """
        super().__init__()
        self.logger = logging.getLogger(__name__)

        self.api_key = api_key or config.SERPAPI_API_KEY
        if not self.api_key:
            raise ValueError("SerpApi source requires an API key")

        self.session = session or requests.Session()
        self.base_url = base_url or config.SERPAPI_URL
        self.timeout = timeout or config.SOURCE_TIMEOUT_SECONDS

    @staticmethod
    def build_query(category_hints: Sequence[str]) -> str:
        """Build the free-text search phrase for the requested categories"""
        if not category_hints:
            return DEFAULT_QUERY

        terms = []
        for hint in category_hints:
            category = POICategory.from_label(hint)
            terms.append(QUERY_MAP.get(category, hint.lower()))

        return f"{' '.join(terms)} near me"

    def fetch_records(self, location: Location, category_hints: Sequence[str],
                      radius_km: float) -> List[RawRecord]:
        params = {
            "engine": "google_maps",
            "q": self.build_query(category_hints),
            "ll": f"@{location.lat},{location.lng},14z",
            "type": "search",
            "api_key": self.api_key,
        }

        response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        if data.get("error"):
            raise RuntimeError(f"SerpApi error: {data['error']}")

        results = data.get("local_results") or []
        self.logger.debug(f"SerpApi returned {len(results)} local results")
        return [SerpApiRecord(result) for result in results]

    def normalize(self, record: RawRecord) -> Optional[POI]:
        result = record.payload

        title = result.get("title")
        coordinates = result.get("gps_coordinates") or {}
        lat, lng = coordinates.get("latitude"), coordinates.get("longitude")
        if not title or lat is None or lng is None:
            return None

        place_id = result.get("place_id") or result.get("data_id") or f"{lat}_{lng}"
        business_type = result.get("type") or ""

        return POI(
            id=f"serp_{place_id}",
            name=title,
            description=result.get("description") or self.describe_type(business_type),
            category=self.map_category(business_type),
            location=Location(lat=float(lat), lng=float(lng),
                              address=result.get("address") or "Address not available"),
            rating=float(result["rating"]) if result.get("rating") is not None else None,
            price_level=self.map_price_level(result.get("price")),
            photos=[result["thumbnail"]] if result.get("thumbnail") else [placeholder_photo(title)],
            opening_hours=[result["hours"]] if result.get("hours") else [],
            website=result.get("website"),
            phone=result.get("phone"),
        )

    @staticmethod
    def map_category(business_type: str) -> POICategory:
        """Map SerpApi business type to the POI taxonomy"""
        lower_type = (business_type or "").lower()
        for key, category in TYPE_MAP:
            if key in lower_type:
                return category
        return POICategory.OTHER

    @staticmethod
    def map_price_level(price: Optional[str]) -> int:
        """Map "$"-style price strings onto 0-4, 2 when absent"""
        if not price:
            return 2

        dollars = price.count("$")
        if dollars >= 4:
            return 4
        if dollars in (1, 2, 3):
            return dollars
        return 2

    @staticmethod
    def describe_type(business_type: str) -> str:
        if not business_type:
            return "An interesting local attraction worth visiting."

        lower_type = business_type.lower()
        for key, description in TYPE_DESCRIPTIONS:
            if key in lower_type:
                return description
        return "A notable local business or attraction."

"""
Data Pipeline Module
===================

Data collection and normalization for the route recommender:
- POI sources (SerpApi, Overpass) behind a common contract
- Multi-source aggregation with deduplication and fallback data
- Cached weather lookup and suitability scoring
- Geocoding of free-text places
- Route input and POI validation

Only the data models are imported here; loaders import utils, which in
turn needs the models, so they are imported from their own modules.

Author: Route Recommender Team
"""

__version__ = "1.0.0"
__module_name__ = "data_pipeline"

from .data_models import (
    POICategory,
    WeatherCondition,
    Location,
    RouteInput,
    RouteCheckpoint,
    WeatherSnapshot,
    POI,
    ScoreBreakdown,
    ScoredPOI,
    TripPlan,
)

__all__ = [
    "POICategory",
    "WeatherCondition",
    "Location",
    "RouteInput",
    "RouteCheckpoint",
    "WeatherSnapshot",
    "POI",
    "ScoreBreakdown",
    "ScoredPOI",
    "TripPlan",
]


def get_supported_data_sources():
    """Return list of supported data sources"""
    return {
        "serpapi": "Google Maps listings via SerpApi (requires SERPAPI_API_KEY)",
        "osm": "OpenStreetMap via Overpass API",
        "weather": "wttr.in current conditions",
        "geocoding": "OpenStreetMap Nominatim",
    }

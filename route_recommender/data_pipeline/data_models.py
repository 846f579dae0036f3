"""
Data Models for Route Recommender
=================================

Centralized data models to avoid circular imports.
Contains Location, RouteInput, POI, WeatherSnapshot, ScoredPOI, TripPlan
and the closed enumerations they use.

Author: Route Recommender Team
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple


class POICategory(Enum):
    """Fixed POI taxonomy shared by every source"""
    RESTAURANTS = "Restaurants"
    MUSEUMS = "Museums"
    PARKS = "Parks"
    SHOPPING = "Shopping"
    HISTORIC_SITES = "Historic Sites"
    ENTERTAINMENT = "Entertainment"
    OUTDOOR_ACTIVITIES = "Outdoor Activities"
    ART_GALLERIES = "Art Galleries"
    LOCAL_MARKETS = "Local Markets"
    SCENIC_VIEWS = "Scenic Views"
    COFFEE_SHOPS = "Coffee Shops"
    NIGHTLIFE = "Nightlife"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["POICategory"]:
        """Case-insensitive lookup by display label, None if not in the taxonomy"""
        if not label:
            return None
        wanted = label.strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        return None


class WeatherCondition(Enum):
    """Closed set of weather conditions, UNKNOWN catches everything else"""
    CLEAR = "Clear"
    SUNNY = "Sunny"
    PARTLY_CLOUDY = "Partly Cloudy"
    CLOUDY = "Cloudy"
    OVERCAST = "Overcast"
    LIGHT_RAIN = "Light Rain"
    RAIN = "Rain"
    HEAVY_RAIN = "Heavy Rain"
    SNOW = "Snow"
    THUNDERSTORM = "Thunderstorm"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "WeatherCondition":
        """
        Map free provider text (e.g. "Patchy light rain") onto the enumeration

        Args:
            label (str): Condition description from a weather provider

        Returns:
            WeatherCondition: Best matching condition, UNKNOWN if nothing fits
        """
        if not label:
            return cls.UNKNOWN

        text = " ".join(label.strip().lower().split())
        for condition in cls:
            if condition.value.lower() == text:
                return condition

        # Order matters: most specific keywords first
        keyword_map = [
            ("thunder", cls.THUNDERSTORM),
            ("snow", cls.SNOW),
            ("blizzard", cls.SNOW),
            ("sleet", cls.SNOW),
            ("heavy rain", cls.HEAVY_RAIN),
            ("torrential", cls.HEAVY_RAIN),
            ("light rain", cls.LIGHT_RAIN),
            ("drizzle", cls.LIGHT_RAIN),
            ("patchy rain", cls.LIGHT_RAIN),
            ("shower", cls.LIGHT_RAIN),
            ("rain", cls.RAIN),
            ("overcast", cls.OVERCAST),
            ("partly", cls.PARTLY_CLOUDY),
            ("cloud", cls.CLOUDY),
            ("sunny", cls.SUNNY),
            ("clear", cls.CLEAR),
        ]
        for keyword, condition in keyword_map:
            if keyword in text:
                return condition

        return cls.UNKNOWN


@dataclass(frozen=True)
class Location:
    """
    Geographic point with a display address

    Attributes:
        lat (float): Latitude in degrees
        lng (float): Longitude in degrees
        address (str): Human-readable address
    """
    lat: float
    lng: float
    address: str = ""


@dataclass(frozen=True)
class RouteInput:
    """
    Caller-submitted route request

    Attributes:
        origin (Location): Start of the route
        destination (Location): End of the route
        departure_time (datetime): When the traveler leaves the origin
        preferences (Tuple[str, ...]): Free-text category tags, matched case-insensitively
    """
    origin: Location
    destination: Location
    departure_time: datetime
    preferences: Tuple[str, ...] = ()

    def __post_init__(self):
        cleaned = tuple(p.strip() for p in (self.preferences or ()) if p and p.strip())
        object.__setattr__(self, "preferences", cleaned)


@dataclass(frozen=True)
class RouteCheckpoint:
    """
    Sampled point along the straight-line route

    Attributes:
        location (Location): Checkpoint position
        distance_from_start (float): Cumulative distance from origin in km
        estimated_time (datetime): Estimated arrival time
    """
    location: Location
    distance_from_start: float
    estimated_time: datetime


@dataclass(frozen=True)
class WeatherSnapshot:
    """
    Weather at a single location

    Attributes:
        temperature (float): Temperature in Celsius
        condition (WeatherCondition): Normalized condition
        humidity (float): Relative humidity percentage
        wind_speed (float): Wind speed in km/h
        icon (str): Emoji glyph for display
    """
    temperature: float
    condition: WeatherCondition
    humidity: float
    wind_speed: float
    icon: str = "🌤️"


@dataclass
class POI:
    """
    Point of Interest in canonical shape, whatever source produced it

    Attributes:
        id (str): Stable identifier, prefixed with its source (serp_, osm_, fallback_)
        name (str): POI name
        description (str): Free-text description
        category (POICategory): Category within the fixed taxonomy
        location (Location): Where the POI is
        rating (float): User rating (0-5), None when unknown
        price_level (int): Price level (0-4), None when unknown
        photos (List[str]): Photo references
        opening_hours (List[str]): Opening hours strings
        website (str): Website URL if available
        phone (str): Phone number if available
        distance_from_route (float): Km to the nearer route endpoint, set during enrichment
        closest_to (str): "origin" or "destination", set during enrichment
        weather (WeatherSnapshot): Weather attached during enrichment
    """
    id: str
    name: str
    description: str
    category: POICategory
    location: Location
    rating: Optional[float] = None
    price_level: Optional[int] = None
    photos: List[str] = field(default_factory=list)
    opening_hours: List[str] = field(default_factory=list)
    website: Optional[str] = None
    phone: Optional[str] = None
    distance_from_route: Optional[float] = None
    closest_to: Optional[str] = None
    weather: Optional[WeatherSnapshot] = None


@dataclass(frozen=True)
class ScoreBreakdown:
    """Six named sub-scores, each in [0, 1]"""
    weather_suitability: float
    preference_match: float
    time_relevance: float
    seasonal_relevance: float
    popularity_score: float
    accessibility_score: float

    def as_dict(self) -> dict:
        return {
            'weather_suitability': self.weather_suitability,
            'preference_match': self.preference_match,
            'time_relevance': self.time_relevance,
            'seasonal_relevance': self.seasonal_relevance,
            'popularity_score': self.popularity_score,
            'accessibility_score': self.accessibility_score,
        }


@dataclass(frozen=True)
class ScoredPOI:
    """
    POI with its aggregate score, breakdown and recommendation sentence

    A re-score produces a new ScoredPOI; instances are never mutated.
    """
    poi: POI
    ai_score: float
    score_breakdown: ScoreBreakdown
    recommendation_reason: str

    @property
    def name(self) -> str:
        return self.poi.name

    @property
    def category(self) -> POICategory:
        return self.poi.category

    @property
    def distance_from_route(self) -> Optional[float]:
        return self.poi.distance_from_route


@dataclass(frozen=True)
class TripPlan:
    """
    Persisted result of a route-processing call

    Attributes:
        id (str): Trip identifier
        route (RouteInput): Originating request
        checkpoints (List[RouteCheckpoint]): Ordered checkpoints
        pois (List[ScoredPOI]): Ranked and diversified recommendations
        created_at (datetime): Creation timestamp
        updated_at (datetime): Last update timestamp
    """
    id: str
    route: RouteInput
    checkpoints: List[RouteCheckpoint]
    pois: List[ScoredPOI]
    created_at: datetime
    updated_at: datetime


# Export classes for easy import
__all__ = [
    'POICategory', 'WeatherCondition', 'Location', 'RouteInput',
    'RouteCheckpoint', 'WeatherSnapshot', 'POI', 'ScoreBreakdown',
    'ScoredPOI', 'TripPlan',
]

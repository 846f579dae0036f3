"""
wttr.in Weather Data Loader
===========================

Fetches current weather from wttr.in, caches it by coordinate bucket and
falls back to synthetic weather when the provider is unavailable. Also
scores how favorable a snapshot is for outdoor activities.

Author: Route Recommender Team
"""

import logging
from typing import Dict, Optional

import requests

from .data_models import Location, WeatherSnapshot, WeatherCondition
from .fallback_generator import FallbackWeatherGenerator
from ..utils.cache_manager import CacheManager
from ..utils.error_handler import ErrorHandler

from config import config


CONDITION_FACTORS: Dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 1.0,
    WeatherCondition.SUNNY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 0.9,
    WeatherCondition.CLOUDY: 0.7,
    WeatherCondition.OVERCAST: 0.6,
    WeatherCondition.LIGHT_RAIN: 0.4,
    WeatherCondition.RAIN: 0.2,
    WeatherCondition.HEAVY_RAIN: 0.1,
    WeatherCondition.SNOW: 0.3,
    WeatherCondition.THUNDERSTORM: 0.1,
}
DEFAULT_CONDITION_FACTOR = 0.5

DEFAULT_ICON = "🌤️"

WEATHER_ICONS: Dict[str, str] = {
    "113": "☀️",
    "116": "⛅",
    "119": "☁️",
    "122": "☁️",
    "143": "🌫️",
    "176": "🌦️",
    "179": "🌨️",
    "182": "🌧️",
    "185": "🌧️",
    "200": "⛈️",
    "227": "🌨️",
    "230": "❄️",
    "248": "🌫️",
    "260": "🌫️",
    "263": "🌦️",
    "266": "🌧️",
    "281": "🌧️",
    "284": "🌧️",
    "293": "🌦️",
    "296": "🌧️",
    "299": "🌧️",
    "302": "🌧️",
    "305": "🌧️",
    "308": "🌧️",
    "311": "🌧️",
    "314": "🌧️",
    "317": "🌧️",
    "320": "🌧️",
    "323": "🌨️",
    "326": "🌨️",
    "329": "🌨️",
    "332": "🌨️",
    "335": "🌨️",
    "338": "❄️",
    "350": "🌧️",
    "353": "🌦️",
    "356": "🌧️",
    "359": "🌧️",
    "362": "🌧️",
    "365": "🌧️",
    "368": "🌨️",
    "371": "❄️",
    "374": "🌧️",
    "377": "🌧️",
    "386": "⛈️",
    "389": "⛈️",
    "392": "⛈️",
    "395": "⛈️",
}


class WeatherAnalyzer:
    """Helper class for analyzing weather conditions"""

    @staticmethod
    def suitability(snapshot: WeatherSnapshot) -> float:
        """
        Calculate suitability score for outdoor activities

        Starts at 1.0 and multiplies by a temperature penalty, a condition
        factor and a wind penalty.

        Args:
            snapshot (WeatherSnapshot): Weather to evaluate

        Returns:
            float: Score in [0, 1]
        """
        score = 1.0
        temperature = snapshot.temperature

        # Temperature penalties (full score 15-28 C)
        if temperature < 5 or temperature > 35:
            score *= 0.3
        elif temperature < 10 or temperature > 30:
            score *= 0.6
        elif temperature < 15 or temperature > 28:
            score *= 0.8

        score *= CONDITION_FACTORS.get(snapshot.condition, DEFAULT_CONDITION_FACTOR)

        # Wind penalties
        if snapshot.wind_speed > 40:
            score *= 0.3
        elif snapshot.wind_speed > 25:
            score *= 0.7

        return max(0.0, min(1.0, score))

    @staticmethod
    def should_recommend_indoor(snapshot: WeatherSnapshot) -> bool:
        """Determine if indoor activities should be recommended"""
        return WeatherAnalyzer.suitability(snapshot) < 0.4


class WttrWeatherClient:
    """
    Weather collaborator backed by wttr.in's JSON format
    Single attempt per call; failures propagate to the loader
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.base_url = (base_url or config.WTTR_URL).rstrip("/")
        self.timeout = timeout or config.WEATHER_TIMEOUT_SECONDS
        self.headers = {"User-Agent": config.HTTP_USER_AGENT}

    def fetch(self, location: Location) -> WeatherSnapshot:
        """
        Fetch current weather for a location

        Raises:
            requests.RequestException: On network or HTTP failure
            ValueError: When the response cannot be parsed
        """
        url = f"{self.base_url}/{location.lat},{location.lng}"
        response = self.session.get(url, params={"format": "j1"},
                                    headers=self.headers, timeout=self.timeout)
        response.raise_for_status()

        return self.parse_response(response.json())

    @staticmethod
    def parse_response(data: Dict) -> WeatherSnapshot:
        """Parse wttr.in j1 response; falls back to the first hourly entry"""
        current = (data.get("current_condition") or [{}])[0]
        today = (data.get("weather") or [{}])[0]
        hourly = (today.get("hourly") or [{}])[0]

        description = ((current.get("weatherDesc") or hourly.get("weatherDesc") or [{}])[0]
                       .get("value", "Clear"))
        code = str(current.get("weatherCode") or hourly.get("weatherCode") or "113")

        return WeatherSnapshot(
            temperature=float(current.get("temp_C") or today.get("maxtempC") or 20),
            condition=WeatherCondition.from_label(description),
            humidity=float(current.get("humidity") or 50),
            wind_speed=float(current.get("windspeedKmph") or 10),
            icon=WEATHER_ICONS.get(code, DEFAULT_ICON),
        )


class WeatherDataLoader:
    """
    Cache-first weather lookup with a synthetic fallback

    Never raises for provider failures: the caller always gets a snapshot.
    """

    def __init__(self, client=None, cache: Optional[CacheManager] = None,
                 fallback_generator: Optional[FallbackWeatherGenerator] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 cache_ttl: Optional[float] = None):
        """
        Initialize Weather Data Loader

        Args:
            client: Object with `fetch(location) -> WeatherSnapshot` (default wttr.in)
            cache (CacheManager): Snapshot cache
            fallback_generator (FallbackWeatherGenerator): Synthetic weather source
            error_handler (ErrorHandler): Reports provider failures
            cache_ttl (float): Freshness window in seconds (default from config)
        """
        self.logger = logging.getLogger(__name__)
        self.analyzer = WeatherAnalyzer()

        self.client = client or WttrWeatherClient()
        self.cache = cache if cache is not None else CacheManager()
        self.fallback_generator = fallback_generator or FallbackWeatherGenerator()
        self.error_handler = error_handler or ErrorHandler()
        self.cache_ttl = cache_ttl if cache_ttl is not None else config.WEATHER_CACHE_TTL

    @staticmethod
    def cache_key(location: Location) -> str:
        return f"{location.lat:.2f},{location.lng:.2f}"

    def fetch(self, location: Location) -> WeatherSnapshot:
        """
        Get weather for a location

        Args:
            location (Location): Where to look up the weather

        Returns:
            WeatherSnapshot: Cached, fetched, or synthetic weather
        """
        key = self.cache_key(location)

        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug(f"Using cached weather for {key}")
            return cached

        try:
            snapshot = self.client.fetch(location)
        except Exception as e:
            status_code = getattr(getattr(e, "response", None), "status_code", None)
            self.error_handler.handle_api_error("Weather", key, e, status_code)
            return self.fallback_generator.generate()

        self.cache.set(key, snapshot, ttl=self.cache_ttl)
        return snapshot

    def suitability(self, snapshot: WeatherSnapshot) -> float:
        return self.analyzer.suitability(snapshot)

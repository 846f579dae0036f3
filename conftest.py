"""
Shared pytest fixtures
======================

Fake collaborators (POI sources, weather clients, HTTP sessions, trip
stores) so nothing in the suite touches the network.

Author: Route Recommender Team
"""

import os

# Quiet, deterministic settings before config is first imported
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CHECKPOINT_WORKERS", "1")

import itertools
import random
import threading
from datetime import datetime

import pytest
import requests

from route_recommender.data_pipeline.data_models import (
    Location, POI, POICategory, RouteInput, WeatherCondition, WeatherSnapshot
)
from route_recommender.data_pipeline.fallback_generator import (
    FallbackPOIGenerator, FallbackWeatherGenerator
)
from route_recommender.data_pipeline.poi_aggregator import POIAggregator
from route_recommender.data_pipeline.poi_sources import POISource
from route_recommender.data_pipeline.weather_loader import WeatherDataLoader
from route_recommender.planner.route_orchestrator import RouteOrchestrator
from route_recommender.planner.trip_store import InMemoryTripStore
from route_recommender.utils.cache_manager import CacheManager
from route_recommender.utils.error_handler import ErrorHandler


DELHI = Location(28.6139, 77.2090, "New Delhi, Delhi, India")
MUMBAI = Location(19.0760, 72.8777, "Mumbai, Maharashtra, India")


# =============================================================================
# HTTP FAKES
# =============================================================================

class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Records every request and replays one canned response or error"""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else FakeResponse({})
        self.error = error
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)


# =============================================================================
# POI SOURCE FAKES
# =============================================================================

class StaticPOISource(POISource):
    """Returns the same POIs for every search"""

    def __init__(self, pois=(), name="static", priority=100):
        super().__init__()
        self.pois = list(pois)
        self.name = name
        self.priority = priority
        self.calls = []

    def fetch_records(self, location, category_hints, radius_km):
        self.calls.append((location, list(category_hints), radius_km))
        return list(self.pois)

    def normalize(self, record):
        return record


class FailingPOISource(StaticPOISource):
    """Raises on every search"""

    def __init__(self, error=None, name="failing", priority=100):
        super().__init__(name=name, priority=priority)
        self.error = error or requests.ConnectionError("connection refused")

    def fetch_records(self, location, category_hints, radius_km):
        self.calls.append((location, list(category_hints), radius_km))
        raise self.error


class BlockingPOISource(StaticPOISource):
    """Holds every search until `release` is set"""

    def __init__(self, release, pois=(), name="slow", priority=100):
        super().__init__(pois, name=name, priority=priority)
        self.release = release

    def fetch_records(self, location, category_hints, radius_km):
        self.release.wait(timeout=5)
        return super().fetch_records(location, category_hints, radius_km)


class NearbyPOISource(StaticPOISource):
    """Two POIs per category a few hundred meters from whatever location is searched"""

    categories = (
        POICategory.MUSEUMS,
        POICategory.PARKS,
        POICategory.RESTAURANTS,
        POICategory.SHOPPING,
        POICategory.HISTORIC_SITES,
        POICategory.ENTERTAINMENT,
    )

    def __init__(self, name="nearby", priority=100):
        super().__init__(name=name, priority=priority)

    def fetch_records(self, location, category_hints, radius_km):
        self.calls.append((location, list(category_hints), radius_km))
        records = []
        for index, category in enumerate(self.categories):
            for n in range(2):
                records.append(POI(
                    id=f"nearby_{location.lat:.4f}_{location.lng:.4f}_{index}_{n}",
                    name=f"{category.value} {n} near {location.lat:.3f},{location.lng:.3f}",
                    description=f"A {category.value.lower()} stop",
                    category=category,
                    location=Location(location.lat + 0.002 * (n + 1),
                                      location.lng + 0.002 * index),
                    rating=round(3.5 + 0.2 * n + 0.1 * index, 1),
                    price_level=2,
                    photos=["a.jpg", "b.jpg"],
                    opening_hours=["Daily: 9:00 AM - 6:00 PM"] if n else [],
                    website="https://example.org" if index % 2 else None,
                    phone="+91-11-0000-0000" if n else None,
                ))
        return records


# =============================================================================
# WEATHER FAKES
# =============================================================================

class FixedWeatherClient:
    """Always returns the same snapshot and counts calls"""

    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.calls = 0

    def fetch(self, location):
        self.calls += 1
        return self.snapshot


class FailingWeatherClient:
    def __init__(self, error=None):
        self.error = error or requests.Timeout("read timed out")
        self.calls = 0

    def fetch(self, location):
        self.calls += 1
        raise self.error


class BlockingWeatherClient(FixedWeatherClient):
    """Holds every fetch until `release` is set"""

    def __init__(self, snapshot, release):
        super().__init__(snapshot)
        self.release = release

    def fetch(self, location):
        self.release.wait(timeout=5)
        return super().fetch(location)


# =============================================================================
# TRIP STORE FAKES
# =============================================================================

class FailingTripStore(InMemoryTripStore):
    """Rejects every save"""

    def save(self, plan):
        raise OSError("disk full")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def morning():
    """Fixed spring-morning departure"""
    return datetime(2024, 4, 15, 9, 0)


@pytest.fixture
def clear_weather():
    return WeatherSnapshot(temperature=22.0, condition=WeatherCondition.CLEAR,
                           humidity=50.0, wind_speed=10.0, icon="☀️")


@pytest.fixture
def heavy_rain():
    return WeatherSnapshot(temperature=20.0, condition=WeatherCondition.HEAVY_RAIN,
                           humidity=95.0, wind_speed=15.0, icon="🌧️")


@pytest.fixture
def delhi_to_mumbai(morning):
    return RouteInput(origin=DELHI, destination=MUMBAI, departure_time=morning,
                      preferences=("Museums",))


@pytest.fixture
def release():
    """Event gating blocking fakes; always set on teardown so worker threads finish"""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def make_poi():
    """Factory for POIs with sensible defaults; extra keywords go to POI"""
    counter = itertools.count(1)

    def _make(name=None, category=POICategory.MUSEUMS, lat=28.61, lng=77.21, **fields):
        index = next(counter)
        fields.setdefault("id", f"test_{index}")
        fields.setdefault("description", "")
        return POI(
            name=name if name is not None else f"Place {index}",
            category=category,
            location=Location(lat, lng),
            **fields,
        )

    return _make


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def static_source():
    return StaticPOISource


@pytest.fixture
def failing_source():
    return FailingPOISource


@pytest.fixture
def blocking_source():
    return BlockingPOISource


@pytest.fixture
def nearby_source():
    return NearbyPOISource


@pytest.fixture
def fixed_weather_client():
    return FixedWeatherClient


@pytest.fixture
def failing_weather_client():
    return FailingWeatherClient


@pytest.fixture
def blocking_weather_client():
    return BlockingWeatherClient


@pytest.fixture
def failing_trip_store():
    return FailingTripStore()


@pytest.fixture
def build_orchestrator(rng, clear_weather):
    """
    Factory wiring a RouteOrchestrator from fakes

    Keyword arguments not consumed here are passed to RouteOrchestrator.
    """
    def _build(trip_store=None, sources=None, weather_client=None,
               error_handler=None, **kwargs):
        error_handler = error_handler or ErrorHandler()

        aggregator = POIAggregator(
            sources=sources if sources is not None else [NearbyPOISource()],
            fallback_generator=FallbackPOIGenerator(rng),
            error_handler=error_handler,
            source_timeout=2.0,
        )
        weather_loader = WeatherDataLoader(
            client=weather_client or FixedWeatherClient(clear_weather),
            cache=CacheManager(default_ttl=1800),
            fallback_generator=FallbackWeatherGenerator(rng),
            error_handler=error_handler,
        )

        return RouteOrchestrator(
            trip_store=trip_store if trip_store is not None else InMemoryTripStore(),
            poi_aggregator=aggregator,
            weather_loader=weather_loader,
            fallback_weather=FallbackWeatherGenerator(rng),
            error_handler=error_handler,
            **kwargs,
        )

    return _build

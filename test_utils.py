"""
Utilities Tests
===============

Geo math, cache, error handling and performance monitoring.

Usage:
    pytest test_utils.py

Author: Route Recommender Team
"""

import logging
import math

import pytest
import requests

from route_recommender.data_pipeline.data_models import Location
from route_recommender.utils.cache_manager import CacheManager
from route_recommender.utils.data_utils import (
    closest_endpoint, distance_km, format_distance, interpolate,
    normalize_name, validate_coordinates
)
from route_recommender.utils.error_handler import (
    ErrorCategory, ErrorHandler, ErrorSeverity, InputValidationError,
    PlanningTimeoutError, RoutePlannerError
)
from route_recommender.utils.performance_monitor import PerformanceMonitor, measure_time


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


# =============================================================================
# GEO MATH
# =============================================================================

@pytest.mark.parametrize("a, b", [
    (Location(0, 0), Location(0, 1)),
    (Location(28.6139, 77.2090), Location(19.0760, 72.8777)),
    (Location(-33.86, 151.21), Location(51.5074, -0.1278)),
])
def test_distance_is_symmetric_and_zero_on_self(a, b):
    assert distance_km(a, b) == distance_km(b, a)
    assert distance_km(a, a) == 0
    assert distance_km(a, b) > 0


def test_one_degree_of_longitude_at_equator():
    assert distance_km(Location(0, 0), Location(0, 1)) == pytest.approx(111.19, rel=0.01)


def test_delhi_to_mumbai_distance():
    delhi = Location(28.6139, 77.2090)
    mumbai = Location(19.0760, 72.8777)
    assert distance_km(delhi, mumbai) == pytest.approx(1150, rel=0.03)


def test_closest_endpoint_picks_nearer_side():
    origin, destination = Location(0, 0), Location(0, 2)

    distance, side = closest_endpoint(Location(0, 1.8), origin, destination)

    assert side == "destination"
    assert distance == pytest.approx(distance_km(Location(0, 1.8), destination))


def test_closest_endpoint_tie_goes_to_origin():
    distance, side = closest_endpoint(Location(0, 1), Location(0, 0), Location(0, 2))

    assert side == "origin"
    assert distance == pytest.approx(111.19, rel=0.01)


def test_interpolate_hits_endpoints_exactly():
    origin, destination = Location(12.5, 77.25), Location(19.125, 72.875)

    start = interpolate(origin, destination, 0.0)
    end = interpolate(origin, destination, 1.0)
    middle = interpolate(origin, destination, 0.5, address="Halfway")

    assert (start.lat, start.lng) == (origin.lat, origin.lng)
    assert (end.lat, end.lng) == (destination.lat, destination.lng)
    assert middle.lat == pytest.approx(15.8125)
    assert middle.address == "Halfway"


def test_interpolate_clamps_progress():
    origin, destination = Location(0, 0), Location(10, 10)

    assert interpolate(origin, destination, -1).lat == 0
    assert interpolate(origin, destination, 2).lat == 10


@pytest.mark.parametrize("lat, lng, expected", [
    (28.6139, 77.2090, True),
    (90, 180, True),
    (91.0, 0, False),
    (0, -181, False),
    (math.nan, 0, False),
    ("abc", 0, False),
    (None, 0, False),
])
def test_validate_coordinates(lat, lng, expected):
    assert validate_coordinates(lat, lng) is expected


def test_format_distance():
    assert format_distance(0.85) == "850m"
    assert format_distance(4.21) == "4.2km"
    assert format_distance(37.4) == "37km"


def test_normalize_name_collapses_case_and_whitespace():
    assert normalize_name("  Central   PARK ") == "central park"
    assert normalize_name("") == ""


# =============================================================================
# CACHE
# =============================================================================

def test_cache_hit_and_miss_counts():
    cache = CacheManager(max_size=10, default_ttl=60)

    assert cache.get("a") is None
    cache.set("a", 1)
    assert cache.get("a") == 1

    stats = cache.get_stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate() == 0.5


def test_cache_entries_expire_after_ttl():
    clock = FakeClock()
    cache = CacheManager(max_size=10, default_ttl=1800, clock=clock)
    cache.set("key", "value")

    clock.now += 1799
    assert cache.get("key") == "value"

    clock.now += 1
    assert cache.get("key") is None
    assert cache.get_stats().expired == 1
    assert len(cache) == 0


def test_cache_zero_ttl_never_expires():
    clock = FakeClock()
    cache = CacheManager(max_size=10, default_ttl=60, clock=clock)
    cache.set("forever", 1, ttl=0)

    clock.now += 10 ** 6

    assert cache.has_key("forever")


def test_cache_evicts_least_recently_used():
    cache = CacheManager(max_size=2, default_ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # "b" is now least recently used
    cache.set("c", 3)

    assert cache.has_key("a")
    assert not cache.has_key("b")
    assert cache.has_key("c")
    assert cache.get_stats().evictions == 1


def test_cache_cleanup_and_delete():
    clock = FakeClock()
    cache = CacheManager(max_size=10, default_ttl=10, clock=clock)
    cache.set("short", 1)
    cache.set("long", 2, ttl=100)

    clock.now += 50

    assert cache.cleanup_expired() == 1
    assert cache.delete("long") is True
    assert cache.delete("long") is False
    assert len(cache) == 0


# =============================================================================
# ERROR HANDLING
# =============================================================================

def test_exception_hierarchy():
    assert issubclass(InputValidationError, RoutePlannerError)
    assert issubclass(InputValidationError, ValueError)
    assert issubclass(PlanningTimeoutError, TimeoutError)


@pytest.mark.parametrize("status_code, exception, category", [
    (401, None, ErrorCategory.API_AUTHENTICATION),
    (403, None, ErrorCategory.API_QUOTA_EXCEEDED),
    (429, None, ErrorCategory.API_RATE_LIMIT),
    (None, TimeoutError("slow"), ErrorCategory.API_TIMEOUT),
    (None, requests.Timeout("read timed out"), ErrorCategory.API_TIMEOUT),
    (None, ConnectionError("down"), ErrorCategory.API_CONNECTION),
    (500, None, ErrorCategory.API_CONNECTION),
])
def test_api_errors_are_categorized(status_code, exception, category):
    handler = ErrorHandler()

    report = handler.handle_api_error("Overpass", "search", exception, status_code)

    assert report.category == category
    assert report.severity == ErrorSeverity.MEDIUM
    assert report.message.startswith("Overpass unavailable")


def test_api_errors_log_as_warnings(caplog):
    handler = ErrorHandler()

    with caplog.at_level(logging.WARNING, logger="route_recommender.utils.error_handler"):
        handler.handle_api_error("Weather", "12.34,56.78", RuntimeError("boom"))

    assert any(record.levelno == logging.WARNING and "Weather unavailable" in record.getMessage()
               for record in caplog.records)


def test_error_statistics():
    handler = ErrorHandler()
    handler.handle_api_error("SerpApi", "search", status_code=429)
    handler.handle_api_error("SerpApi", "search", status_code=429)
    handler.handle_error("save failed", OSError("disk"),
                         category=ErrorCategory.PERSISTENCE_FAILED,
                         severity=ErrorSeverity.HIGH)

    stats = handler.get_error_statistics()

    assert stats["total_errors"] == 3
    assert stats["errors_by_category"][ErrorCategory.API_RATE_LIMIT] == 2
    assert stats["most_common_error"] == ErrorCategory.API_RATE_LIMIT


# =============================================================================
# PERFORMANCE MONITORING
# =============================================================================

def test_track_records_timing_even_when_block_raises():
    monitor = PerformanceMonitor()

    with monitor.track("scoring"):
        pass
    with pytest.raises(RuntimeError):
        with monitor.track("scoring"):
            raise RuntimeError("boom")

    stats = monitor.get_stats("scoring")
    assert stats["call_count"] == 2
    assert stats["min_time"] >= 0


def test_measure_time_decorator():
    monitor = PerformanceMonitor()

    @measure_time(monitor, "geocoding")
    def resolve(text):
        return text.upper()

    assert resolve("delhi") == "DELHI"
    assert resolve.__name__ == "resolve"
    assert monitor.get_stats("geocoding")["call_count"] == 1
    assert monitor.get_stats("missing") == {}


def test_slow_stage_is_logged(caplog):
    monitor = PerformanceMonitor(slow_threshold=0.5, very_slow_threshold=1.0)

    with caplog.at_level(logging.INFO, logger="route_recommender.utils.performance_monitor"):
        monitor.record_timing("enrichment", 2.0)

    assert "Very slow stage: enrichment" in caplog.text


def test_report_summarizes_stages():
    monitor = PerformanceMonitor()
    monitor.record_timing("checkpoints", 0.1)
    monitor.record_timing("enrichment", 0.4)

    report = monitor.get_report()

    assert report["summary"]["stages_monitored"] == 2
    assert report["summary"]["total_calls"] == 2
    assert report["slowest_stages"][0]["name"] == "enrichment"
    assert isinstance(report["resource_usage"], dict)

    monitor.reset_stats()
    assert monitor.get_stats() == {}

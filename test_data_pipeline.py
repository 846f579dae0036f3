"""
Data Pipeline Tests
===================

POI sources, aggregation, fallback data, weather, geocoding and validation.
Every HTTP adapter runs against a fake session.

Usage:
    pytest test_data_pipeline.py

Author: Route Recommender Team
"""

import random
from datetime import datetime

import pytest
import requests

from config import config
from route_recommender.data_pipeline.data_models import (
    Location, POICategory, RouteInput, WeatherCondition, WeatherSnapshot
)
from route_recommender.data_pipeline.data_validator import DataValidator, is_admissible_poi
from route_recommender.data_pipeline.fallback_generator import (
    DEFAULT_FALLBACK_CATEGORIES, WEATHER_ARCHETYPES,
    FallbackPOIGenerator, FallbackWeatherGenerator
)
from route_recommender.data_pipeline.geocoding import NominatimGeocoder
from route_recommender.data_pipeline.osm_loader import OSMQueryBuilder, OverpassPOISource
from route_recommender.data_pipeline.poi_aggregator import POIAggregator
from route_recommender.data_pipeline.poi_sources import OverpassRecord, SerpApiRecord
from route_recommender.data_pipeline.serp_loader import SerpApiPOISource
from route_recommender.data_pipeline.weather_loader import (
    WeatherAnalyzer, WeatherDataLoader, WttrWeatherClient
)
from route_recommender.utils.cache_manager import CacheManager
from route_recommender.utils.error_handler import ErrorCategory, ErrorHandler, InputValidationError


CENTER = Location(28.6, 77.2, "Checkpoint 1")


def make_aggregator(sources, rng=None, **kwargs):
    kwargs.setdefault("error_handler", ErrorHandler())
    return POIAggregator(
        sources=sources,
        fallback_generator=FallbackPOIGenerator(rng or random.Random(1)),
        **kwargs,
    )


# =============================================================================
# DATA MODELS
# =============================================================================

@pytest.mark.parametrize("label, expected", [
    ("Partly cloudy", WeatherCondition.PARTLY_CLOUDY),
    ("Patchy light rain", WeatherCondition.LIGHT_RAIN),
    ("Moderate or heavy rain shower", WeatherCondition.HEAVY_RAIN),
    ("Thundery outbreaks possible", WeatherCondition.THUNDERSTORM),
    ("Mist", WeatherCondition.UNKNOWN),
    (None, WeatherCondition.UNKNOWN),
])
def test_weather_condition_from_provider_text(label, expected):
    assert WeatherCondition.from_label(label) == expected


def test_poi_category_lookup_is_case_insensitive():
    assert POICategory.from_label("  historic sites ") == POICategory.HISTORIC_SITES
    assert POICategory.from_label("vegan food") is None
    assert POICategory.from_label("") is None


def test_route_input_cleans_preferences(morning):
    route = RouteInput(CENTER, CENTER, morning, preferences=(" Museums ", "", "  "))
    assert route.preferences == ("Museums",)


# =============================================================================
# AGGREGATOR
# =============================================================================

def test_duplicates_differing_in_case_and_whitespace_collapse(make_poi, static_source):
    first = make_poi("Central Park", POICategory.PARKS, lat=12.34561, lng=77.00004, id="a")
    second = make_poi("  central   PARK ", POICategory.PARKS, lat=12.34564, lng=77.00001, id="b")
    aggregator = make_aggregator([static_source([first, second])])

    results = aggregator.search_near(CENTER)

    assert [poi.id for poi in results] == ["a"]


def test_sources_are_merged_in_priority_order(make_poi, static_source):
    osm = static_source([make_poi("Red Fort", id="osm_1", lat=28.6562, lng=77.241),
                         make_poi("Jama Masjid", id="osm_2")], name="Overpass", priority=10)
    serp = static_source([make_poi("red fort", id="serp_1", lat=28.6562, lng=77.241)],
                         name="SerpApi", priority=0)
    aggregator = make_aggregator([osm, serp])

    results = aggregator.search_near(CENTER)

    assert [poi.id for poi in results] == ["serp_1", "osm_2"]


def test_equal_priorities_keep_configured_order(make_poi, static_source):
    first = static_source([make_poi("Alpha", id="a1")], name="first")
    second = static_source([make_poi("Beta", id="b1")], name="second")

    results = make_aggregator([first, second]).search_near(CENTER)

    assert [poi.id for poi in results] == ["a1", "b1"]


def test_failing_source_contributes_nothing(make_poi, static_source, failing_source):
    handler = ErrorHandler()
    good = static_source([make_poi("India Gate", id="ok")], name="good")
    bad = failing_source(name="bad")
    aggregator = make_aggregator([bad, good], error_handler=handler)

    results = aggregator.search_near(CENTER, ["Museums"], 5)

    assert [poi.id for poi in results] == ["ok"]
    assert bad.calls and good.calls[0] == (CENTER, ["Museums"], 5)
    stats = handler.get_error_statistics()
    assert stats["errors_by_category"] == {ErrorCategory.API_CONNECTION: 1}


def test_slow_source_is_abandoned(make_poi, static_source, blocking_source, release):
    handler = ErrorHandler()
    slow = blocking_source(release, [make_poi("Too Late", id="late")])
    fast = static_source([make_poi("On Time", id="fast")])
    aggregator = make_aggregator([slow, fast], error_handler=handler, source_timeout=0.2)

    results = aggregator.search_near(CENTER)

    assert [poi.id for poi in results] == ["fast"]
    assert handler.get_error_statistics()["errors_by_category"] == {ErrorCategory.API_TIMEOUT: 1}


def test_inadmissible_records_are_dropped(make_poi, static_source):
    source = static_source([
        make_poi("   ", id="blank"),
        make_poi("Off The Map", lat=95.0, id="bad_lat"),
        make_poi("Lodhi Garden", POICategory.PARKS, id="good"),
    ])

    results = make_aggregator([source]).search_near(CENTER)

    assert [poi.id for poi in results] == ["good"]


def test_results_are_truncated(make_poi, static_source):
    pois = [make_poi(f"Stop {i}", lat=28.0 + i * 0.01) for i in range(30)]

    assert len(make_aggregator([static_source(pois)]).search_near(CENTER)) == 20
    assert len(make_aggregator([static_source(pois)], max_results=5).search_near(CENTER)) == 5


def test_empty_sources_fall_back_to_requested_categories(static_source):
    aggregator = make_aggregator([static_source([])])

    results = aggregator.search_near(CENTER, ["museums", "vegan food"])

    assert 2 <= len(results) <= 5
    assert {poi.category for poi in results} == {POICategory.MUSEUMS}
    assert all(poi.id.startswith("fallback_") for poi in results)


def test_no_sources_at_all_still_yields_pois():
    results = make_aggregator([]).search_near(CENTER, ["vegan food"])

    assert results
    assert {poi.category for poi in results} <= set(DEFAULT_FALLBACK_CATEGORIES)


# =============================================================================
# FALLBACK GENERATORS
# =============================================================================

def test_fallback_pois_cover_default_categories():
    pois = FallbackPOIGenerator(random.Random(3)).generate(CENTER)

    assert {poi.category for poi in pois} == set(DEFAULT_FALLBACK_CATEGORIES)
    for poi in pois:
        assert 3.0 <= poi.rating <= 5.0
        assert 1 <= poi.price_level <= 4
        assert len(poi.photos) == 2
        assert poi.website == f"https://example.com/{poi.id}"
        assert poi.phone.startswith("+1-")
        assert abs(poi.location.lat - CENTER.lat) < 0.0101
        assert abs(poi.location.lng - CENTER.lng) < 0.0101


def test_fallback_is_reproducible_with_a_seed():
    first = FallbackPOIGenerator(random.Random(7)).generate(CENTER, [POICategory.PARKS])
    second = FallbackPOIGenerator(random.Random(7)).generate(CENTER, [POICategory.PARKS])

    assert first == second


def test_fallback_weather_stays_within_archetype(rng):
    archetypes = {condition: (icon, temps) for condition, icon, temps in WEATHER_ARCHETYPES}
    generator = FallbackWeatherGenerator(rng)

    for _ in range(50):
        snapshot = generator.generate()
        icon, (low, high) = archetypes[snapshot.condition]
        assert snapshot.icon == icon
        assert low <= snapshot.temperature < high
        assert 40 <= snapshot.humidity <= 79
        assert 5 <= snapshot.wind_speed <= 24


# =============================================================================
# OVERPASS
# =============================================================================

def test_overpass_query_uses_category_tags():
    query = OSMQueryBuilder.build_around_query(CENTER, ["Museums"], 10)

    assert query.startswith("[out:json][timeout:25];")
    assert 'node["tourism"="museum"](around:10000,28.6,77.2);' in query
    assert query.endswith("out center meta;")


def test_overpass_query_without_hints_is_general():
    query = OSMQueryBuilder.build_around_query(CENTER, ["vegan food"], 2.5)

    assert 'node["tourism"](around:2500,28.6,77.2);' in query


def test_overpass_search_normalizes_elements(fake_session, fake_response):
    elements = [
        {
            "type": "way", "id": 123, "center": {"lat": 28.6129, "lon": 77.2295},
            "tags": {"name": "National Museum", "tourism": "museum",
                     "website": "https://nationalmuseum.example", "addr:street": "Janpath",
                     "addr:city": "New Delhi", "opening_hours": "Tu-Su 10:00-18:00"},
        },
        {"type": "node", "id": 2, "lat": 28.61, "lon": 77.2, "tags": {"amenity": "cafe"}},
        {"type": "node", "id": 3, "lat": "north", "lon": 77.2, "tags": {"name": "Broken"}},
    ]
    session = fake_session(fake_response({"elements": elements}))
    source = OverpassPOISource(session=session, base_url="https://overpass.test")

    pois = source.search(CENTER, ["Museums"], 10)

    assert len(pois) == 1
    museum = pois[0]
    assert museum.id == "osm_way_123"
    assert museum.category == POICategory.MUSEUMS
    assert museum.location.address == "Janpath New Delhi"
    assert museum.rating == 4.0
    assert museum.price_level == 2
    assert museum.opening_hours == ["Tu-Su 10:00-18:00"]

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://overpass.test")
    assert 'node["tourism"="museum"]' in kwargs["data"]["data"]


def test_overpass_http_errors_propagate(fake_session, fake_response):
    source = OverpassPOISource(session=fake_session(fake_response({}, status_code=504)))

    with pytest.raises(requests.HTTPError):
        source.search(CENTER, [], 10)


@pytest.mark.parametrize("tags, category", [
    ({"amenity": "restaurant"}, POICategory.RESTAURANTS),
    ({"amenity": "cafe"}, POICategory.RESTAURANTS),
    ({"tourism": "gallery"}, POICategory.ART_GALLERIES),
    ({"leisure": "garden"}, POICategory.PARKS),
    ({"amenity": "marketplace"}, POICategory.LOCAL_MARKETS),
    ({"shop": "books"}, POICategory.SHOPPING),
    ({"historic": "fort"}, POICategory.HISTORIC_SITES),
    ({"tourism": "viewpoint"}, POICategory.SCENIC_VIEWS),
    ({"amenity": "cinema"}, POICategory.ENTERTAINMENT),
    ({"amenity": "pub"}, POICategory.NIGHTLIFE),
    ({"natural": "peak"}, POICategory.OUTDOOR_ACTIVITIES),
    ({"office": "company"}, POICategory.OTHER),
])
def test_osm_category_mapping(tags, category):
    assert OverpassPOISource.map_category(tags) == category


@pytest.mark.parametrize("tags, level", [
    ({"amenity": "fast_food"}, 1),
    ({"amenity": "restaurant"}, 3),
    ({"tourism": "museum", "fee": "yes"}, 2),
    ({"leisure": "park", "fee": "no"}, 1),
    ({"historic": "fort", "fee": "yes"}, 3),
    ({"shop": "books"}, 2),
])
def test_osm_price_level(tags, level):
    assert OverpassPOISource.estimate_price_level(tags) == level


def test_overpass_record_without_coordinates_is_skipped():
    record = OverpassRecord({"type": "node", "id": 9, "tags": {"name": "Nowhere"}})
    assert OverpassPOISource(session=object()).normalize(record) is None


# =============================================================================
# SERPAPI
# =============================================================================

def test_serpapi_requires_a_key(monkeypatch):
    monkeypatch.setattr(config, "SERPAPI_API_KEY", None)

    with pytest.raises(ValueError):
        SerpApiPOISource()


def test_serpapi_search(fake_session, fake_response):
    result = {
        "title": "Red Fort", "place_id": "ChIJ123",
        "gps_coordinates": {"latitude": 28.6562, "longitude": 77.241},
        "type": "Historical landmark", "rating": 4.6, "price": "$$",
        "address": "Netaji Subhash Marg", "thumbnail": "https://img.example/red-fort.jpg",
        "hours": "Closes 6 PM",
    }
    session = fake_session(fake_response({"local_results": [result, {"title": "No GPS"}]}))
    source = SerpApiPOISource(api_key="test-key", session=session)

    pois = source.search(CENTER, ["Museums"], 10)

    assert len(pois) == 1
    fort = pois[0]
    assert fort.id == "serp_ChIJ123"
    assert fort.category == POICategory.HISTORIC_SITES
    assert fort.price_level == 2
    assert fort.rating == 4.6
    assert fort.photos == ["https://img.example/red-fort.jpg"]

    method, _, kwargs = session.calls[0]
    assert method == "GET"
    assert kwargs["params"]["engine"] == "google_maps"
    assert kwargs["params"]["ll"] == "@28.6,77.2,14z"
    assert kwargs["params"]["q"] == "museums galleries cultural sites near me"
    assert kwargs["params"]["api_key"] == "test-key"


def test_serpapi_error_payload_raises(fake_session, fake_response):
    session = fake_session(fake_response({"error": "Invalid API key."}))
    source = SerpApiPOISource(api_key="bad", session=session)

    with pytest.raises(RuntimeError, match="Invalid API key"):
        source.search(CENTER, [], 10)


@pytest.mark.parametrize("price, level", [
    ("$", 1), ("$$$", 3), ("$$$$", 4), ("$$$$$", 4), ("cheap", 2), (None, 2),
])
def test_serpapi_price_level(price, level):
    assert SerpApiPOISource.map_price_level(price) == level


@pytest.mark.parametrize("business_type, category", [
    ("Italian restaurant", POICategory.RESTAURANTS),
    ("Art gallery", POICategory.ART_GALLERIES),
    ("Movie theater", POICategory.ENTERTAINMENT),
    ("Bowling alley", POICategory.OTHER),
    ("", POICategory.OTHER),
])
def test_serpapi_category_mapping(business_type, category):
    assert SerpApiPOISource.map_category(business_type) == category


def test_serpapi_record_uses_data_id_when_place_id_missing():
    record = SerpApiRecord({"title": "Chai Point", "data_id": "0x1",
                            "gps_coordinates": {"latitude": 28.6, "longitude": 77.2}})

    poi = SerpApiPOISource(api_key="k", session=object()).normalize(record)

    assert poi.id == "serp_0x1"
    assert poi.description == "An interesting local attraction worth visiting."


# =============================================================================
# WEATHER
# =============================================================================

def test_suitability_is_perfect_for_mild_clear_weather(clear_weather):
    assert WeatherAnalyzer.suitability(clear_weather) == 1.0


def test_suitability_stacks_penalties():
    snapshot = WeatherSnapshot(temperature=3.0, condition=WeatherCondition.HEAVY_RAIN,
                               humidity=90.0, wind_speed=45.0)

    assert WeatherAnalyzer.suitability(snapshot) == pytest.approx(0.3 * 0.1 * 0.3)
    assert WeatherAnalyzer.should_recommend_indoor(snapshot)


def test_suitability_unknown_condition_is_neutral():
    snapshot = WeatherSnapshot(temperature=29.0, condition=WeatherCondition.UNKNOWN,
                               humidity=50.0, wind_speed=30.0)

    assert WeatherAnalyzer.suitability(snapshot) == pytest.approx(0.8 * 0.5 * 0.7)


def test_wttr_parses_current_condition(fake_session, fake_response):
    payload = {"current_condition": [{
        "temp_C": "31", "humidity": "62", "windspeedKmph": "14", "weatherCode": "116",
        "weatherDesc": [{"value": "Partly cloudy"}],
    }]}
    session = fake_session(fake_response(payload))
    client = WttrWeatherClient(session=session, base_url="https://wttr.test/")

    snapshot = client.fetch(Location(28.6, 77.2))

    assert snapshot == WeatherSnapshot(31.0, WeatherCondition.PARTLY_CLOUDY, 62.0, 14.0, "⛅")
    method, url, kwargs = session.calls[0]
    assert url == "https://wttr.test/28.6,77.2"
    assert kwargs["params"] == {"format": "j1"}


def test_wttr_falls_back_to_first_hourly_entry():
    payload = {"current_condition": [], "weather": [{
        "maxtempC": "18",
        "hourly": [{"weatherCode": "296", "weatherDesc": [{"value": "Light rain"}]}],
    }]}

    snapshot = WttrWeatherClient.parse_response(payload)

    assert snapshot.temperature == 18.0
    assert snapshot.condition == WeatherCondition.LIGHT_RAIN
    assert snapshot.icon == "🌧️"


def test_weather_is_cached_by_two_decimal_bucket(fixed_weather_client, clear_weather):
    client = fixed_weather_client(clear_weather)
    loader = WeatherDataLoader(client=client, cache=CacheManager(default_ttl=1800))

    first = loader.fetch(Location(28.6139, 77.2090))
    second = loader.fetch(Location(28.6141, 77.2093))

    assert first == second == clear_weather
    assert client.calls == 1
    assert loader.cache_key(Location(28.6139, 77.2090)) == "28.61,77.21"


def test_cached_weather_expires_after_thirty_minutes(fixed_weather_client, clear_weather):
    now = [0.0]
    client = fixed_weather_client(clear_weather)
    loader = WeatherDataLoader(client=client,
                               cache=CacheManager(default_ttl=1800, clock=lambda: now[0]))

    loader.fetch(CENTER)
    now[0] = 1799.0
    loader.fetch(CENTER)
    now[0] = 1800.0
    loader.fetch(CENTER)

    assert client.calls == 2


def test_failed_weather_falls_back_and_is_not_cached(failing_weather_client, rng):
    handler = ErrorHandler()
    client = failing_weather_client()
    loader = WeatherDataLoader(client=client, cache=CacheManager(default_ttl=1800),
                               fallback_generator=FallbackWeatherGenerator(rng),
                               error_handler=handler)

    snapshot = loader.fetch(CENTER)
    loader.fetch(CENTER)

    assert snapshot.condition in {condition for condition, _, _ in WEATHER_ARCHETYPES}
    assert client.calls == 2
    assert handler.get_error_statistics()["total_errors"] == 2


# =============================================================================
# GEOCODING
# =============================================================================

def test_geocoder_parses_nominatim_results(fake_session, fake_response):
    session = fake_session(fake_response([
        {"lat": "28.6139", "lon": "77.2090", "display_name": "New Delhi, Delhi, India",
         "place_id": 123},
    ]))
    geocoder = NominatimGeocoder(session=session, base_url="https://nominatim.test")

    results = geocoder.search("New Delhi")

    assert len(results) == 1
    assert (results[0].lat, results[0].lng) == (28.6139, 77.2090)
    assert results[0].place_id == "123"
    _, url, kwargs = session.calls[0]
    assert url == "https://nominatim.test/search"
    assert kwargs["params"]["limit"] == 5
    assert kwargs["params"]["countrycodes"] == "in,us,gb,ca,au"


def test_geocoder_ignores_too_short_queries(fake_session):
    session = fake_session()

    assert NominatimGeocoder(session=session).search(" a ") == []
    assert session.calls == []


def test_geocoder_falls_back_to_known_cities(fake_session):
    geocoder = NominatimGeocoder(session=fake_session(error=requests.ConnectionError("offline")))

    assert [r.address for r in geocoder.search("delhi")] == ["New Delhi, Delhi, India"]
    assert len(geocoder.search("Madhya Pradesh")) == 2
    assert geocoder.search("Atlantis") == []


def test_reverse_geocode(fake_session, fake_response):
    ok = NominatimGeocoder(session=fake_session(fake_response({"display_name": "Connaught Place"})))
    offline = NominatimGeocoder(session=fake_session(error=requests.Timeout("slow")))

    assert ok.reverse_geocode(28.63, 77.22) == "Connaught Place"
    assert offline.reverse_geocode(12.34567, 45.67891) == "12.3457, 45.6789"


# =============================================================================
# VALIDATION
# =============================================================================

def test_valid_route_input_is_returned(delhi_to_mumbai):
    assert DataValidator().validate_route_input(delhi_to_mumbai) is delhi_to_mumbai


@pytest.mark.parametrize("origin, destination, departure", [
    (None, Location(19.0, 72.8), datetime(2024, 4, 15, 9)),
    (Location(95.0, 77.2), Location(19.0, 72.8), datetime(2024, 4, 15, 9)),
    (Location(28.6, 77.2), Location(19.0, 200.0), datetime(2024, 4, 15, 9)),
    (Location(28.6, 77.2), Location(19.0, 72.8), None),
])
def test_invalid_route_input_is_rejected(origin, destination, departure):
    with pytest.raises(InputValidationError):
        DataValidator().validate_route_input(RouteInput(origin, destination, departure))


def test_missing_route_input_is_rejected():
    with pytest.raises(InputValidationError):
        DataValidator().validate_route_input(None)


def test_poi_batch_validation(make_poi):
    pois = [make_poi("Qutub Minar"), make_poi(""), make_poi("Hauz Khas", rating=7.0)]

    result = DataValidator().validate_poi_data(pois)

    assert result.is_valid
    assert (result.total_items, result.valid_items) == (3, 2)
    assert result.summary["dropped"] == 1
    assert len(result.issues) == 2
    assert not is_admissible_poi(None)

"""
Route Orchestrator
==================

Runs the route-to-recommendation pipeline end to end:

    route input -> checkpoints -> per-checkpoint weather + POIs
    -> distance enrichment -> scoring -> diversity filter -> saved trip plan

Key Features:
- Collaborators are injected at construction; nothing is a global singleton
- A failing weather or POI lookup only degrades its own checkpoint
- Optional fan-out of checkpoint enrichment with order-preserving merge
- Optional overall deadline; a timed-out run persists nothing
- Stage timings recorded on a PerformanceMonitor

Classes:
    RouteOrchestrator: Pipeline entry point

Functions:
    build_default_orchestrator: Wire the pipeline from configuration
    resolve_route_input: Geocode free-text endpoints into a RouteInput

Author: Route Recommender Team
"""

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..data_pipeline.data_models import (
    Location, POI, RouteCheckpoint, RouteInput, TripPlan
)
from ..data_pipeline.data_validator import DataValidator
from ..data_pipeline.fallback_generator import FallbackPOIGenerator, FallbackWeatherGenerator
from ..data_pipeline.geocoding import NominatimGeocoder
from ..data_pipeline.osm_loader import OverpassPOISource
from ..data_pipeline.poi_aggregator import POIAggregator
from ..data_pipeline.serp_loader import SerpApiPOISource
from ..data_pipeline.weather_loader import WeatherDataLoader, WttrWeatherClient
from ..ml_engine.checkpoint_planner import CheckpointPlanner
from ..ml_engine.diversity_selector import DiversitySelector
from ..ml_engine.poi_scorer import POIScorer
from ..utils.cache_manager import CacheManager
from ..utils.data_utils import closest_endpoint
from ..utils.error_handler import (
    ErrorHandler, ErrorCategory, ErrorSeverity, ErrorContext,
    InputValidationError, PersistenceError, PlanningTimeoutError, RoutePlannerError
)
from ..utils.performance_monitor import PerformanceMonitor
from .trip_store import TripStore, InMemoryTripStore

from config import config


class _RunState:
    """Coordinates a deadline-bound run with the caller waiting on it"""

    def __init__(self):
        self.lock = threading.Lock()
        self.cancelled = False
        self.committed = False

    def check(self) -> None:
        if self.cancelled:
            raise PlanningTimeoutError("Route processing was cancelled")


class RouteOrchestrator:
    """
    Main pipeline interface
    `process_route` is the single externally invoked operation
    """

    def __init__(self, trip_store: TripStore, poi_aggregator: POIAggregator,
                 weather_loader: WeatherDataLoader,
                 scorer: Optional[POIScorer] = None,
                 selector: Optional[DiversitySelector] = None,
                 checkpoint_planner: Optional[CheckpointPlanner] = None,
                 validator: Optional[DataValidator] = None,
                 fallback_weather: Optional[FallbackWeatherGenerator] = None,
                 monitor: Optional[PerformanceMonitor] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 id_factory: Optional[Callable[[], str]] = None,
                 checkpoint_workers: Optional[int] = None,
                 search_radius_km: Optional[float] = None):
        """
        Initialize Route Orchestrator

        Args:
            trip_store (TripStore): Where finished plans are saved
            poi_aggregator (POIAggregator): Multi-source POI search
            weather_loader (WeatherDataLoader): Per-checkpoint weather
            scorer (POIScorer): Scoring engine
            selector (DiversitySelector): Category cap and truncation
            checkpoint_planner (CheckpointPlanner): Route sampling
            validator (DataValidator): Route input validation
            fallback_weather (FallbackWeatherGenerator): Used if the weather loader raises
            monitor (PerformanceMonitor): Stage timings
            error_handler (ErrorHandler): Degradation and failure reporting
            clock (Callable): Timestamp source for created/updated times
            id_factory (Callable): Trip id source (default: store's generate_id)
            checkpoint_workers (int): >1 enriches checkpoints concurrently (default from config)
            search_radius_km (float): POI search radius (default from config)
        """
        self.logger = logging.getLogger(__name__)

        self.trip_store = trip_store
        self.poi_aggregator = poi_aggregator
        self.weather_loader = weather_loader
        self.scorer = scorer or POIScorer()
        self.selector = selector or DiversitySelector()
        self.checkpoint_planner = checkpoint_planner or CheckpointPlanner()
        self.validator = validator or DataValidator()
        self.fallback_weather = fallback_weather or FallbackWeatherGenerator()
        self.monitor = monitor or PerformanceMonitor()
        self.error_handler = error_handler or ErrorHandler()
        self.clock = clock
        self.id_factory = id_factory or trip_store.generate_id
        self.checkpoint_workers = checkpoint_workers or config.CHECKPOINT_WORKERS
        self.search_radius_km = search_radius_km or config.POI_SEARCH_RADIUS_KM

    def process_route(self, route_input: RouteInput,
                      timeout: Optional[float] = None) -> TripPlan:
        """
        Plan a route and persist the resulting trip plan

        Args:
            route_input (RouteInput): Origin, destination, departure time, preferences
            timeout (float): Overall deadline in seconds, None to wait indefinitely

        Returns:
            TripPlan: The saved plan

        Raises:
            InputValidationError: Before any stage runs, for invalid input
            PlanningTimeoutError: Deadline expired; nothing was persisted
            PersistenceError: The plan could not be saved
        """
        self.validator.validate_route_input(route_input)

        if timeout is None:
            return self._run(route_input, _RunState())

        state = _RunState()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="route")
        try:
            future = executor.submit(self._run, route_input, state)
            try:
                return future.result(timeout=timeout)
            except FuturesTimeoutError:
                with state.lock:
                    if not state.committed:
                        state.cancelled = True
                if state.cancelled:
                    self.logger.warning(f"Route processing exceeded {timeout}s; abandoned")
                    raise PlanningTimeoutError(
                        f"Route processing exceeded {timeout} seconds") from None
                # Save finished just as the deadline hit
                return future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, route_input: RouteInput, state: _RunState) -> TripPlan:
        self.logger.info(f"Starting route processing with preferences {list(route_input.preferences)}")

        with self.monitor.track("checkpoints"):
            checkpoints = self.checkpoint_planner.plan(route_input)
        state.check()

        with self.monitor.track("enrichment"):
            per_checkpoint = self._enrich_all(checkpoints, route_input, state)
        state.check()

        pool = self.flatten(per_checkpoint)
        self.logger.info(f"Collected {len(pool)} unique POIs from {len(checkpoints)} checkpoints")

        with self.monitor.track("scoring"):
            scored = self.scorer.score_pois(pool, route_input)

        with self.monitor.track("diversity"):
            selected = self.selector.select(scored)
        state.check()

        now = self.clock()
        plan = TripPlan(
            id=self.id_factory(),
            route=route_input,
            checkpoints=checkpoints,
            pois=selected,
            created_at=now,
            updated_at=now,
        )

        with self.monitor.track("persistence"):
            with state.lock:
                state.check()
                self._persist(plan)
                state.committed = True

        self.logger.info(f"Trip plan {plan.id} saved with {len(plan.pois)} recommendations")
        return plan

    def _enrich_all(self, checkpoints: List[RouteCheckpoint], route_input: RouteInput,
                    state: _RunState) -> List[List[POI]]:
        """Enrich every checkpoint; result order matches checkpoint order"""
        def enrich(checkpoint: RouteCheckpoint) -> List[POI]:
            state.check()
            return self.enrich_checkpoint(checkpoint, route_input)

        if self.checkpoint_workers <= 1 or len(checkpoints) <= 1:
            return [enrich(checkpoint) for checkpoint in checkpoints]

        with ThreadPoolExecutor(max_workers=self.checkpoint_workers,
                                thread_name_prefix="checkpoint") as executor:
            return list(executor.map(enrich, checkpoints))

    def enrich_checkpoint(self, checkpoint: RouteCheckpoint,
                          route_input: RouteInput) -> List[POI]:
        """
        Attach weather and endpoint distance to the POIs around one checkpoint

        Failures here never propagate: weather falls back to a synthetic
        snapshot and POIs fall back to an empty list.
        """
        location = checkpoint.location

        try:
            weather = self.weather_loader.fetch(location)
        except Exception as e:
            self._report_degraded("weather", location, e)
            weather = self.fallback_weather.generate()

        try:
            pois = self.poi_aggregator.search_near(location, route_input.preferences,
                                                   self.search_radius_km)
        except Exception as e:
            self._report_degraded("poi_search", location, e)
            pois = []

        enriched = []
        for poi in pois:
            distance, closest_to = closest_endpoint(poi.location, route_input.origin,
                                                    route_input.destination)
            enriched.append(replace(poi, distance_from_route=distance,
                                    closest_to=closest_to, weather=weather))

        self.logger.debug(f"{location.address}: {weather.condition.value} "
                          f"{weather.temperature:.0f}C, {len(enriched)} POIs")
        return enriched

    @staticmethod
    def flatten(per_checkpoint: Sequence[Sequence[POI]]) -> List[POI]:
        """Concatenate in checkpoint order, keeping the first POI seen per id"""
        seen_ids = set()
        pool = []
        for pois in per_checkpoint:
            for poi in pois:
                if poi.id in seen_ids:
                    continue
                seen_ids.add(poi.id)
                pool.append(poi)
        return pool

    def _persist(self, plan: TripPlan) -> None:
        try:
            self.trip_store.save(plan)
        except RoutePlannerError:
            raise
        except Exception as e:
            self.error_handler.handle_error(
                message=f"Failed to save trip plan {plan.id}",
                exception=e,
                category=ErrorCategory.PERSISTENCE_FAILED,
                severity=ErrorSeverity.HIGH,
                context=ErrorContext(stage="persistence", operation="save", details={"plan_id": plan.id}),
            )
            raise PersistenceError(f"Failed to save trip plan {plan.id}: {e}") from e

    def _report_degraded(self, step: str, location: Location, error: Exception) -> None:
        self.error_handler.handle_error(
            message=f"{step} failed at {location.address or 'checkpoint'}; continuing with fallback",
            exception=error,
            category=ErrorCategory.ENRICHMENT_FAILED,
            severity=ErrorSeverity.MEDIUM,
            context=ErrorContext(stage="enrichment", operation=step,
                                 details={"lat": location.lat, "lng": location.lng}),
        )


def build_default_orchestrator(trip_store: Optional[TripStore] = None,
                               seed: Optional[int] = None) -> RouteOrchestrator:
    """
    Wire the pipeline with the HTTP-backed collaborators from configuration

    Args:
        trip_store (TripStore): Store to use (default: a fresh InMemoryTripStore)
        seed (int): Seed for fallback data (default: config RANDOM_SEED)

    Returns:
        RouteOrchestrator: Ready-to-use orchestrator
    """
    rng = random.Random(seed if seed is not None else config.RANDOM_SEED)
    error_handler = ErrorHandler()
    fallback_weather = FallbackWeatherGenerator(rng)

    sources = [OverpassPOISource()]
    if config.SERPAPI_API_KEY:
        sources.append(SerpApiPOISource(config.SERPAPI_API_KEY))

    aggregator = POIAggregator(
        sources=sources,
        fallback_generator=FallbackPOIGenerator(rng),
        error_handler=error_handler,
    )
    weather_loader = WeatherDataLoader(
        client=WttrWeatherClient(),
        cache=CacheManager(default_ttl=config.WEATHER_CACHE_TTL),
        fallback_generator=fallback_weather,
        error_handler=error_handler,
    )

    return RouteOrchestrator(
        trip_store=trip_store if trip_store is not None else InMemoryTripStore(),
        poi_aggregator=aggregator,
        weather_loader=weather_loader,
        fallback_weather=fallback_weather,
        error_handler=error_handler,
    )


def resolve_route_input(geocoder: NominatimGeocoder, origin_query: str,
                        destination_query: str, departure_time: datetime,
                        preferences: Sequence[str] = ()) -> RouteInput:
    """
    Geocode free-text endpoints into a RouteInput

    The first match for each query is used.

    Raises:
        InputValidationError: When either query has no match
    """
    endpoints = []
    for label, query in (("origin", origin_query), ("destination", destination_query)):
        matches = geocoder.search(query)
        if not matches:
            raise InputValidationError(f"Could not resolve {label} '{query}'")
        best = matches[0]
        endpoints.append(Location(lat=best.lat, lng=best.lng, address=best.address))

    return RouteInput(
        origin=endpoints[0],
        destination=endpoints[1],
        departure_time=departure_time,
        preferences=tuple(preferences),
    )

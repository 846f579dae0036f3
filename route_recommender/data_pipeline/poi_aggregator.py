"""
POI Aggregator
==============

Queries every configured POI source around a location, merges the results
in source-priority order, and removes duplicates.

Key Features:
- Concurrent source queries with a bounded timeout per call
- A failing or slow source contributes nothing; the others are unaffected
- Synthetic fallback POIs when every source comes back empty
- Deduplication on normalized name and 4-decimal coordinates

Classes:
    POIAggregator: Multi-source POI search

Author: Route Recommender Team
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional, Sequence, Tuple

from .data_models import POI, POICategory, Location
from .data_validator import is_admissible_poi
from .fallback_generator import FallbackPOIGenerator
from .poi_sources import POISource
from ..utils.data_utils import normalize_name
from ..utils.error_handler import ErrorHandler

from config import config


def dedup_key(poi: POI) -> Tuple[str, float, float]:
    """Identity used for duplicate detection across sources"""
    return (normalize_name(poi.name),
            round(poi.location.lat, 4),
            round(poi.location.lng, 4))


class POIAggregator:
    """
    Main interface for multi-source POI search
    """

    def __init__(self, sources: Sequence[POISource] = (),
                 fallback_generator: Optional[FallbackPOIGenerator] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 source_timeout: Optional[float] = None,
                 max_results: Optional[int] = None):
        """
        Initialize POI Aggregator

        Args:
            sources (Sequence[POISource]): Providers; ordered by `priority`,
                ties keep the given order
            fallback_generator (FallbackPOIGenerator): Used when no source returns anything
            error_handler (ErrorHandler): Reports source failures
            source_timeout (float): Seconds to wait for sources (default from config)
            max_results (int): Result cap (default from config)
        """
        self.logger = logging.getLogger(__name__)

        self.sources = sorted(sources, key=lambda source: getattr(source, "priority", 100))
        self.fallback_generator = fallback_generator or FallbackPOIGenerator()
        self.error_handler = error_handler or ErrorHandler()
        self.source_timeout = source_timeout or config.SOURCE_TIMEOUT_SECONDS
        self.max_results = max_results or config.MAX_POI_RESULTS

        self.logger.info(f"POI Aggregator initialized with sources: "
                         f"{[source.name for source in self.sources]}")

    def search_near(self, location: Location, preference_tags: Sequence[str] = (),
                    radius_km: Optional[float] = None) -> List[POI]:
        """
        Search every source near a location

        Args:
            location (Location): Search center
            preference_tags (Sequence[str]): Category hints passed to each source
            radius_km (float): Search radius (default from config)

        Returns:
            List[POI]: Deduplicated POIs, at most `max_results`; never raises
            for source failures
        """
        radius_km = radius_km or config.POI_SEARCH_RADIUS_KM
        tags = list(preference_tags)

        pool = []
        for source_pois in self._query_sources(location, tags, radius_km):
            pool.extend(poi for poi in source_pois if is_admissible_poi(poi))

        if not pool:
            self.logger.info(f"No source results near {location.lat:.4f},{location.lng:.4f}; "
                             f"using fallback POIs")
            categories = self._fallback_categories(tags)
            pool = [poi for poi in self.fallback_generator.generate(location, categories)
                    if is_admissible_poi(poi)]

        unique = self.deduplicate(pool)
        return unique[:self.max_results]

    def _query_sources(self, location: Location, tags: List[str],
                       radius_km: float) -> List[List[POI]]:
        """Run all sources concurrently; results come back in priority order"""
        if not self.sources:
            return []

        results: List[List[POI]] = [[] for _ in self.sources]
        executor = ThreadPoolExecutor(max_workers=len(self.sources),
                                      thread_name_prefix="poi-source")
        try:
            futures = [executor.submit(source.search, location, tags, radius_km)
                       for source in self.sources]
            wait(futures, timeout=self.source_timeout)

            for index, (source, future) in enumerate(zip(self.sources, futures)):
                if not future.done():
                    future.cancel()
                    self.error_handler.handle_api_error(
                        source.name, "search",
                        TimeoutError(f"no response within {self.source_timeout}s"))
                    continue

                error = future.exception()
                if error is not None:
                    status_code = getattr(getattr(error, "response", None), "status_code", None)
                    self.error_handler.handle_api_error(source.name, "search", error, status_code)
                    continue

                results[index] = list(future.result() or [])
                self.logger.debug(f"{source.name} returned {len(results[index])} POIs")
        finally:
            # Slow sources are abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    @staticmethod
    def _fallback_categories(tags: Sequence[str]) -> List[POICategory]:
        categories = []
        for tag in tags:
            category = POICategory.from_label(tag)
            if category is not None and category not in categories:
                categories.append(category)
        return categories

    @staticmethod
    def deduplicate(pois: Sequence[POI]) -> List[POI]:
        """Drop POIs whose dedup key was already seen; first occurrence wins"""
        seen = set()
        unique = []
        for poi in pois:
            key = dedup_key(poi)
            if key in seen:
                continue
            seen.add(key)
            unique.append(poi)
        return unique

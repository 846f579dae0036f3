"""
POI Source Contract
===================

Abstract base for POI providers plus the raw-record variants they return.

Each provider hands back its own response shape; those shapes are wrapped in
a record type tagged with the provider, then normalized by that provider's
adapter into the canonical POI before anything else sees them.

Classes:
    SerpApiRecord: Raw SerpApi local_results entry
    OverpassRecord: Raw Overpass element
    POISource: Base class every POI provider implements

Author: Route Recommender Team
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .data_models import POI, Location


@dataclass(frozen=True)
class SerpApiRecord:
    """One entry of a SerpApi google_maps `local_results` list"""
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OverpassRecord:
    """One element of an Overpass API `elements` list"""
    payload: Dict[str, Any] = field(default_factory=dict)


RawRecord = Union[SerpApiRecord, OverpassRecord]


class POISource(ABC):
    """
    Base class for POI providers

    Subclasses fetch raw records and normalize each one. `search` is the
    collaborator call the aggregator makes; it may raise, the aggregator
    isolates that.

    Attributes:
        name (str): Provider name used in logs
        priority (int): Lower runs first when results are concatenated
    """

    name: str = "source"
    priority: int = 100

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def search(self, location: Location, category_hints: Sequence[str],
               radius_km: float) -> List[POI]:
        """
        Search the provider and return canonical POIs

        Args:
            location (Location): Search center
            category_hints (Sequence[str]): Preference tags from the route input
            radius_km (float): Search radius in kilometers

        Returns:
            List[POI]: Normalized POIs; records that fail to normalize are skipped
        """
        records = self.fetch_records(location, category_hints, radius_km)

        pois = []
        for record in records:
            try:
                poi = self.normalize(record)
            except (KeyError, TypeError, ValueError) as e:
                self.logger.debug(f"{self.name}: skipping malformed record: {e}")
                continue

            if poi is not None:
                pois.append(poi)

        self.logger.debug(f"{self.name}: {len(pois)} of {len(records)} records normalized")
        return pois

    @abstractmethod
    def fetch_records(self, location: Location, category_hints: Sequence[str],
                      radius_km: float) -> List[RawRecord]:
        """Query the provider and wrap its raw entries"""

    @abstractmethod
    def normalize(self, record: RawRecord) -> Optional[POI]:
        """Convert one raw record into a POI, None when it has no name or coordinates"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"

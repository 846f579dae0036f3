"""
Route Checkpoint Planner
========================

Samples evenly spaced checkpoints along the straight line between origin
and destination, with an estimated arrival time at each one.

Author: Route Recommender Team
"""

import logging
import math
from datetime import timedelta
from typing import List, Optional

from ..data_pipeline.data_models import RouteInput, RouteCheckpoint
from ..utils.data_utils import distance_km, interpolate
from config import config


class CheckpointPlanner:
    """
    Checkpoint sampling along a great-circle route approximation
    """

    def __init__(self, interval_km: Optional[float] = None,
                 average_speed_kmh: Optional[float] = None):
        """
        Args:
            interval_km (float): Target spacing between checkpoints (default from config)
            average_speed_kmh (float): Speed used for arrival estimates (default from config)
        """
        self.logger = logging.getLogger(__name__)

        self.interval_km = interval_km or config.CHECKPOINT_INTERVAL_KM
        self.average_speed_kmh = average_speed_kmh or config.AVERAGE_SPEED_KMH

    def checkpoint_count(self, total_km: float) -> int:
        """At least two checkpoints, then one per full interval"""
        return max(2, math.floor(total_km / self.interval_km))

    def plan(self, route_input: RouteInput) -> List[RouteCheckpoint]:
        """
        Generate checkpoints along the route

        Args:
            route_input (RouteInput): Validated route request

        Returns:
            List[RouteCheckpoint]: Ordered checkpoints; the first is exactly
            the origin and the last exactly the destination
        """
        origin, destination = route_input.origin, route_input.destination
        total_km = distance_km(origin, destination)
        count = self.checkpoint_count(total_km)

        checkpoints = []
        for i in range(count):
            progress = i / (count - 1) if count > 1 else 0.0
            travelled_km = progress * total_km

            checkpoints.append(RouteCheckpoint(
                location=interpolate(origin, destination, progress, address=f"Checkpoint {i + 1}"),
                distance_from_start=travelled_km,
                estimated_time=route_input.departure_time + timedelta(
                    hours=travelled_km / self.average_speed_kmh),
            ))

        self.logger.info(f"Planned {len(checkpoints)} checkpoints over {total_km:.1f} km")
        return checkpoints

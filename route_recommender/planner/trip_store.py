"""
Trip Store
==========

Keyed storage for finished trip plans. The in-memory implementation lives
for the lifetime of the process; a durable backend only needs to implement
the same four operations.

Author: Route Recommender Team
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import List, Optional

from ..data_pipeline.data_models import TripPlan


class TripStore(ABC):
    """Storage contract for trip plans"""

    @abstractmethod
    def save(self, plan: TripPlan) -> None:
        """Insert or replace the plan under its id"""

    @abstractmethod
    def get(self, trip_id: str) -> Optional[TripPlan]:
        """Return the plan, or None when absent"""

    @abstractmethod
    def list_all(self) -> List[TripPlan]:
        """All stored plans"""

    @abstractmethod
    def delete(self, trip_id: str) -> None:
        """Remove a plan; deleting an unknown id is a no-op"""

    @staticmethod
    def generate_id() -> str:
        return uuid.uuid4().hex


class InMemoryTripStore(TripStore):
    """
    Thread-safe in-memory store
    Plans are listed in first-save order; re-saving keeps the original slot
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._plans: "OrderedDict[str, TripPlan]" = OrderedDict()
        self._lock = threading.RLock()

    def save(self, plan: TripPlan) -> None:
        with self._lock:
            self._plans[plan.id] = plan
        self.logger.debug(f"Saved trip plan {plan.id}")

    def get(self, trip_id: str) -> Optional[TripPlan]:
        with self._lock:
            return self._plans.get(trip_id)

    def list_all(self) -> List[TripPlan]:
        with self._lock:
            return list(self._plans.values())

    def delete(self, trip_id: str) -> None:
        with self._lock:
            removed = self._plans.pop(trip_id, None)
        if removed is not None:
            self.logger.debug(f"Deleted trip plan {trip_id}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._plans)

"""
Planner Module
==============

Pipeline composition and trip plan storage.

Classes:
    RouteOrchestrator: Runs the full pipeline and saves the result
    TripStore: Storage contract for trip plans
    InMemoryTripStore: Process-lifetime, thread-safe store
"""

from .trip_store import TripStore, InMemoryTripStore
from .route_orchestrator import (
    RouteOrchestrator,
    build_default_orchestrator,
    resolve_route_input,
)

__all__ = [
    "TripStore",
    "InMemoryTripStore",
    "RouteOrchestrator",
    "build_default_orchestrator",
    "resolve_route_input",
]

"""
Utilities Module
===============

Common helpers used across all modules:
- In-memory caching with TTL and LRU eviction
- Error reporting and the exception hierarchy
- Stage timing and memory monitoring
- Geo math and name normalization

Classes:
    CacheManager: In-memory TTL cache
    ErrorHandler: Standardized error handling and reporting
    PerformanceMonitor: Tracks stage execution time
"""

__version__ = "1.0.0"
__module_name__ = "utils"

from .cache_manager import CacheManager
from .error_handler import (
    ErrorHandler,
    RoutePlannerError,
    InputValidationError,
    PersistenceError,
    PlanningTimeoutError,
)
from .performance_monitor import PerformanceMonitor, measure_time
from .data_utils import (
    validate_coordinates,
    distance_km,
    closest_endpoint,
    interpolate,
    format_distance,
    normalize_name,
)

__all__ = [
    "CacheManager",
    "ErrorHandler",
    "RoutePlannerError",
    "InputValidationError",
    "PersistenceError",
    "PlanningTimeoutError",
    "PerformanceMonitor",
    "measure_time",
    "validate_coordinates",
    "distance_km",
    "closest_endpoint",
    "interpolate",
    "format_distance",
    "normalize_name",
]

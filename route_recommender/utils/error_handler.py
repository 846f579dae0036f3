"""
Error Handler Utility
====================

Failure reporting for the route pipeline.

Two kinds of failure exist. Collaborator outages (POI sources, weather,
geocoding) and per-checkpoint enrichment failures are reported here and
then absorbed: the pipeline substitutes fallback data and keeps going.
Input rejection, persistence failure and deadline overrun are raised to
the caller as RoutePlannerError subclasses.

Failed calls are never retried.

Classes:
    RoutePlannerError: Base class for errors surfaced to callers
    InputValidationError: Route input rejected before any stage runs
    PersistenceError: Trip plan could not be saved
    PlanningTimeoutError: Route processing exceeded its deadline
    ErrorCategory: What failed
    ErrorSeverity: How loudly it is logged
    ErrorContext: Where in the pipeline it failed
    ErrorReport: One recorded failure
    ErrorHandler: Records, logs and counts failures

Author: Route Recommender Team
"""

import logging
import traceback
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import requests


class RoutePlannerError(Exception):
    """Base class for errors surfaced to the caller of process_route"""


class InputValidationError(RoutePlannerError, ValueError):
    """Route input is missing required fields or has invalid coordinates"""


class PersistenceError(RoutePlannerError):
    """Trip plan could not be saved; the plan is not considered produced"""


class PlanningTimeoutError(RoutePlannerError, TimeoutError):
    """Route processing was abandoned because it exceeded its deadline"""


class ErrorCategory(Enum):
    # Collaborator outages
    API_CONNECTION = "api_connection"
    API_TIMEOUT = "api_timeout"
    API_RATE_LIMIT = "api_rate_limit"
    API_AUTHENTICATION = "api_authentication"
    API_QUOTA_EXCEEDED = "api_quota_exceeded"

    # Pipeline stages
    ENRICHMENT_FAILED = "enrichment_failed"
    PERSISTENCE_FAILED = "persistence_failed"

    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# HTTP statuses with a more specific meaning than "source unreachable"
STATUS_CATEGORIES = {
    401: ErrorCategory.API_AUTHENTICATION,
    403: ErrorCategory.API_QUOTA_EXCEEDED,
    429: ErrorCategory.API_RATE_LIMIT,
}

LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

SUGGESTIONS = {
    ErrorCategory.API_CONNECTION: ["Fallback data was used; check the source URL and network"],
    ErrorCategory.API_TIMEOUT: ["Raise SOURCE_TIMEOUT_SECONDS or drop the slow source"],
    ErrorCategory.API_RATE_LIMIT: ["Space out route requests for this source"],
    ErrorCategory.API_AUTHENTICATION: ["Check SERPAPI_API_KEY in the environment or .env file"],
    ErrorCategory.API_QUOTA_EXCEEDED: ["The source quota is spent; other sources still answer"],
    ErrorCategory.ENRICHMENT_FAILED: ["The checkpoint kept fallback POIs and weather"],
    ErrorCategory.PERSISTENCE_FAILED: ["The plan was not returned; check the trip store"],
}


@dataclass
class ErrorContext:
    """
    Where a failure happened

    Attributes:
        stage (str): Pipeline stage or module name
        operation (str): Call that failed inside the stage
        details (Dict): Inputs worth logging (coordinates, endpoint, status)
        occurred_at (datetime): Wall-clock time of the failure
    """
    stage: str = "unknown"
    operation: str = "unknown"
    details: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.now)

    def describe(self) -> str:
        return f"{self.stage}.{self.operation}"


@dataclass
class ErrorReport:
    """One recorded failure, as logged"""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    cause: str
    context: ErrorContext
    traceback_text: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        """True when the pipeline continues after this failure"""
        return self.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)


class ErrorHandler:
    """
    Records pipeline failures

    One handler is shared by the aggregator, the weather loader, the
    geocoder and the orchestrator so statistics cover a whole run.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._counts: Counter = Counter()

    def handle_error(self, message: str, exception: Optional[BaseException] = None,
                     category: ErrorCategory = ErrorCategory.UNKNOWN,
                     severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                     context: Optional[ErrorContext] = None) -> ErrorReport:
        """
        Record and log a failure

        Args:
            message (str): What the pipeline could not do
            exception (Exception): Underlying exception, if any
            category (ErrorCategory): What failed
            severity (ErrorSeverity): Selects the log level
            context (ErrorContext): Where it failed

        Returns:
            ErrorReport: The recorded failure
        """
        self._counts[category] += 1

        report = ErrorReport(
            category=category,
            severity=severity,
            message=message,
            cause=repr(exception) if exception is not None else "no exception",
            context=context or ErrorContext(),
            traceback_text=self._format_traceback(exception),
            suggestions=list(SUGGESTIONS.get(category, [])),
        )
        self._log(report)
        return report

    def handle_api_error(self, api_name: str, endpoint: str = "",
                         exception: Optional[BaseException] = None,
                         status_code: Optional[int] = None) -> ErrorReport:
        """
        Record a collaborator outage; always logged as a warning

        Args:
            api_name (str): Collaborator name (e.g. "Overpass", "Weather")
            endpoint (str): Operation or cache key that failed
            exception (Exception): Underlying exception
            status_code (int): HTTP status if the server answered
        """
        if status_code in STATUS_CATEGORIES:
            category = STATUS_CATEGORIES[status_code]
        elif isinstance(exception, (TimeoutError, requests.Timeout)):
            category = ErrorCategory.API_TIMEOUT
        else:
            category = ErrorCategory.API_CONNECTION

        message = f"{api_name} unavailable"
        if status_code:
            message = f"{message} (HTTP {status_code})"

        context = ErrorContext(
            stage=api_name,
            operation=endpoint or "request",
            details={"status_code": status_code} if status_code else {},
        )
        return self.handle_error(message, exception, category, ErrorSeverity.MEDIUM, context)

    def get_error_statistics(self) -> Dict:
        """Failure counts for this handler's lifetime"""
        most_common = self._counts.most_common(1)
        return {
            "total_errors": sum(self._counts.values()),
            "errors_by_category": dict(self._counts),
            "most_common_error": most_common[0][0] if most_common else None,
        }

    def _log(self, report: ErrorReport) -> None:
        level = LOG_LEVELS[report.severity]
        self.logger.log(level, "%s [%s] %s: %s",
                        report.message, report.category.value,
                        report.context.describe(), report.cause)

        if not report.degraded and report.traceback_text:
            self.logger.debug("Traceback for %s:\n%s", report.category.value, report.traceback_text)

    @staticmethod
    def _format_traceback(exception: Optional[BaseException]) -> Optional[str]:
        if exception is None or exception.__traceback__ is None:
            return None
        return "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))

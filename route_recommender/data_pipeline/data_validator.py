"""
Data Validation Module
======================

Validates route requests before the pipeline starts and screens POI records
before they enter the pool.

Author: Route Recommender Team
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .data_models import POI, RouteInput, Location
from ..utils.data_utils import validate_coordinates
from ..utils.error_handler import InputValidationError


class ValidationLevel(Enum):
    """Validation severity levels"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ValidationIssue:
    """Data class representing a validation issue"""
    level: ValidationLevel
    category: str
    message: str
    field: Optional[str] = None
    value: Optional[Any] = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Data class representing validation results"""
    is_valid: bool
    total_items: int
    valid_items: int
    issues: List[ValidationIssue]
    summary: Dict


def is_admissible_poi(poi: Optional[POI]) -> bool:
    """A POI needs a non-blank name and a valid coordinate pair to enter the pool"""
    if poi is None or not poi.name or not poi.name.strip():
        return False
    if poi.location is None:
        return False
    return validate_coordinates(poi.location.lat, poi.location.lng)


class DataValidator:
    """Main class for validating route input and POI data"""

    def __init__(self):
        """Initialize Data Validator"""
        self.logger = logging.getLogger(__name__)

    def validate_route_input(self, route_input: Optional[RouteInput]) -> RouteInput:
        """
        Validate a route request

        Args:
            route_input (RouteInput): Request to check

        Returns:
            RouteInput: The same request, when valid

        Raises:
            InputValidationError: Missing endpoint or departure time, or bad coordinates
        """
        if route_input is None:
            raise InputValidationError("Route input is required")

        issues = []
        issues.extend(self._validate_endpoint(route_input.origin, "origin"))
        issues.extend(self._validate_endpoint(route_input.destination, "destination"))

        if not isinstance(route_input.departure_time, datetime):
            issues.append(ValidationIssue(
                level=ValidationLevel.CRITICAL,
                category="required_field",
                message="Missing or invalid departure time",
                field="departure_time",
                value=route_input.departure_time,
                suggestion="Provide the departure time as a datetime",
            ))

        blocking = [issue for issue in issues
                    if issue.level in (ValidationLevel.ERROR, ValidationLevel.CRITICAL)]
        if blocking:
            message = "; ".join(issue.message for issue in blocking)
            self.logger.info(f"Rejected route input: {message}")
            raise InputValidationError(message)

        return route_input

    def _validate_endpoint(self, location: Optional[Location], field: str) -> List[ValidationIssue]:
        if location is None:
            return [ValidationIssue(
                level=ValidationLevel.CRITICAL,
                category="required_field",
                message=f"Missing {field}",
                field=field,
                suggestion=f"Provide the route {field}",
            )]

        if not validate_coordinates(location.lat, location.lng):
            return [ValidationIssue(
                level=ValidationLevel.ERROR,
                category="coordinates",
                message=f"Invalid {field} coordinates",
                field=field,
                value=f"{location.lat}, {location.lng}",
                suggestion="Check coordinate values are within valid ranges",
            )]

        return []

    def validate_poi_data(self, pois: List[POI]) -> ValidationResult:
        """Validate a batch of POIs and summarize what was found"""
        issues = []
        valid_count = 0

        for index, poi in enumerate(pois):
            if is_admissible_poi(poi):
                valid_count += 1
                if poi.rating is not None and not 0 <= poi.rating <= 5:
                    issues.append(ValidationIssue(
                        level=ValidationLevel.WARNING,
                        category="range",
                        message=f"POI #{index}: Rating out of range",
                        field="rating",
                        value=poi.rating,
                    ))
            else:
                issues.append(ValidationIssue(
                    level=ValidationLevel.CRITICAL,
                    category="required_field",
                    message=f"POI #{index}: Missing name or coordinates",
                    field="name/location",
                    suggestion="Record is dropped from the pool",
                ))

        summary = {
            "categories": sorted({poi.category.value for poi in pois if is_admissible_poi(poi)}),
            "dropped": len(pois) - valid_count,
        }

        return ValidationResult(
            is_valid=valid_count > 0,
            total_items=len(pois),
            valid_items=valid_count,
            issues=issues,
            summary=summary,
        )

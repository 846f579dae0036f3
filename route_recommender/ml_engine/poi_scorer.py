"""
POI Scoring Algorithm
====================

Multi-criteria POI scoring using weighted evaluation:
- Weather Suitability (25%): How well the POI's weather suits its category
- Preference Match (30%): Alignment with the traveler's preference tags
- Time Relevance (15%): Fit for the time of day
- Seasonal Relevance (10%): Fit for the season
- Popularity (15%): Rating, price level and listing completeness
- Accessibility (5%): Detour distance and contact information

Each POI also gets a one-sentence recommendation built from the sub-scores
that stand out.

Author: Route Recommender Team
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Dict, Optional, Sequence, Tuple

from ..data_pipeline.data_models import (
    POI, POICategory, RouteInput, ScoredPOI, ScoreBreakdown
)
from ..data_pipeline.weather_loader import WeatherAnalyzer
from config import config


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        if 6 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 22:
            return cls.EVENING
        return cls.NIGHT


class Season(Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"

    @classmethod
    def from_month(cls, month: int) -> "Season":
        if 3 <= month <= 5:
            return cls.SPRING
        if 6 <= month <= 8:
            return cls.SUMMER
        if 9 <= month <= 11:
            return cls.FALL
        return cls.WINTER


C = POICategory

WEATHER_SENSITIVITY: Dict[POICategory, float] = {
    C.PARKS: 1.0,
    C.OUTDOOR_ACTIVITIES: 1.0,
    C.SCENIC_VIEWS: 0.9,
    C.LOCAL_MARKETS: 0.8,
    C.HISTORIC_SITES: 0.6,
    C.RESTAURANTS: 0.4,
    C.SHOPPING: 0.3,
    C.ENTERTAINMENT: 0.3,
    C.COFFEE_SHOPS: 0.3,
    C.MUSEUMS: 0.2,
    C.ART_GALLERIES: 0.2,
    C.NIGHTLIFE: 0.1,
}
DEFAULT_SENSITIVITY = 0.5

TIME_AFFINITY: Dict[TimeOfDay, Dict[POICategory, float]] = {
    TimeOfDay.MORNING: {
        C.COFFEE_SHOPS: 1.0, C.PARKS: 0.9, C.MUSEUMS: 0.8, C.HISTORIC_SITES: 0.8,
        C.RESTAURANTS: 0.6, C.SHOPPING: 0.7, C.NIGHTLIFE: 0.1,
    },
    TimeOfDay.AFTERNOON: {
        C.RESTAURANTS: 1.0, C.SHOPPING: 0.9, C.MUSEUMS: 0.9, C.PARKS: 0.8,
        C.ART_GALLERIES: 0.9, C.LOCAL_MARKETS: 0.8, C.COFFEE_SHOPS: 0.7, C.NIGHTLIFE: 0.2,
    },
    TimeOfDay.EVENING: {
        C.RESTAURANTS: 1.0, C.ENTERTAINMENT: 0.9, C.NIGHTLIFE: 0.8, C.SCENIC_VIEWS: 0.7,
        C.COFFEE_SHOPS: 0.6, C.SHOPPING: 0.4, C.MUSEUMS: 0.3,
    },
    TimeOfDay.NIGHT: {
        C.NIGHTLIFE: 1.0, C.ENTERTAINMENT: 0.8, C.RESTAURANTS: 0.6, C.COFFEE_SHOPS: 0.3,
        C.MUSEUMS: 0.1, C.PARKS: 0.2, C.SHOPPING: 0.1,
    },
}
DEFAULT_TIME_AFFINITY = 0.5

SEASON_AFFINITY: Dict[Season, Dict[POICategory, float]] = {
    Season.SPRING: {
        C.PARKS: 1.0, C.OUTDOOR_ACTIVITIES: 0.9, C.SCENIC_VIEWS: 0.9, C.LOCAL_MARKETS: 0.8,
        C.MUSEUMS: 0.7, C.RESTAURANTS: 0.8,
    },
    Season.SUMMER: {
        C.PARKS: 1.0, C.OUTDOOR_ACTIVITIES: 1.0, C.SCENIC_VIEWS: 1.0, C.LOCAL_MARKETS: 0.9,
        C.ENTERTAINMENT: 0.8, C.RESTAURANTS: 0.9,
    },
    Season.FALL: {
        C.SCENIC_VIEWS: 1.0, C.PARKS: 0.9, C.MUSEUMS: 0.9, C.ART_GALLERIES: 0.9,
        C.HISTORIC_SITES: 0.8, C.COFFEE_SHOPS: 0.8,
    },
    Season.WINTER: {
        C.MUSEUMS: 1.0, C.ART_GALLERIES: 1.0, C.SHOPPING: 0.9, C.RESTAURANTS: 0.9,
        C.ENTERTAINMENT: 0.8, C.COFFEE_SHOPS: 0.9, C.PARKS: 0.4, C.OUTDOOR_ACTIVITIES: 0.3,
    },
}
DEFAULT_SEASON_AFFINITY = 0.7

# Concept word -> categories it implies, checked in order
SEMANTIC_CONCEPTS: List[Tuple[str, Tuple[POICategory, ...]]] = [
    ("food", (C.RESTAURANTS, C.COFFEE_SHOPS, C.LOCAL_MARKETS)),
    ("culture", (C.MUSEUMS, C.ART_GALLERIES, C.HISTORIC_SITES)),
    ("nature", (C.PARKS, C.SCENIC_VIEWS, C.OUTDOOR_ACTIVITIES)),
    ("shopping", (C.SHOPPING, C.LOCAL_MARKETS)),
    ("entertainment", (C.ENTERTAINMENT, C.NIGHTLIFE)),
    ("history", (C.HISTORIC_SITES, C.MUSEUMS)),
    ("art", (C.ART_GALLERIES, C.MUSEUMS)),
    ("outdoor", (C.PARKS, C.OUTDOOR_ACTIVITIES, C.SCENIC_VIEWS)),
    ("dining", (C.RESTAURANTS, C.COFFEE_SHOPS)),
    ("nightlife", (C.NIGHTLIFE, C.ENTERTAINMENT)),
    ("family", (C.PARKS, C.MUSEUMS, C.ENTERTAINMENT)),
    ("adventure", (C.OUTDOOR_ACTIVITIES, C.SCENIC_VIEWS)),
    ("relaxation", (C.PARKS, C.COFFEE_SHOPS, C.SCENIC_VIEWS)),
]

NEUTRAL_PREFERENCE_SCORE = 0.6
DEFAULT_WEATHER_SCORE = 0.7
MAX_REASONS = 3


@dataclass(frozen=True)
class ScoringContext:
    """Everything about the trip that scoring depends on, besides the POI itself"""
    time_of_day: TimeOfDay
    season: Season
    preferences: Tuple[str, ...] = ()

    @classmethod
    def build(cls, route_input: RouteInput,
              scoring_time: Optional[datetime] = None) -> "ScoringContext":
        when = scoring_time or route_input.departure_time
        return cls(
            time_of_day=TimeOfDay.from_hour(when.hour),
            season=Season.from_month(when.month),
            preferences=tuple(route_input.preferences),
        )


class POIScorer:
    """
    Main POI scoring engine using multi-criteria evaluation
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None,
                 analyzer: Optional[WeatherAnalyzer] = None):
        """
        Initialize POI Scorer

        Args:
            weights (Dict[str, float]): Sub-score weights keyed by breakdown
                field name (default from config); must sum to 1.0
            analyzer (WeatherAnalyzer): Weather suitability function
        """
        self.logger = logging.getLogger(__name__)

        self.weights = dict(weights or config.scoring_weights())
        self.analyzer = analyzer or WeatherAnalyzer()

        expected = set(ScoreBreakdown.__dataclass_fields__)
        if set(self.weights) != expected:
            raise ValueError(f"Scoring weights must cover exactly {sorted(expected)}")

        weight_sum = sum(self.weights.values())
        if not 0.999 <= weight_sum <= 1.001:
            raise ValueError(f"Scoring weights must sum to 1.0, got {weight_sum}")

        self.logger.info("POI Scorer initialized with config weights")

    def score_pois(self, pois: Sequence[POI], route_input: RouteInput,
                   scoring_time: Optional[datetime] = None) -> List[ScoredPOI]:
        """
        Score and rank POIs

        Args:
            pois (Sequence[POI]): Enriched POIs
            route_input (RouteInput): Request supplying preferences and departure time
            scoring_time (datetime): Timestamp for time-of-day and season
                buckets (default: departure time)

        Returns:
            List[ScoredPOI]: Sorted by descending score; equal scores keep input order
        """
        if not pois:
            self.logger.warning("No POIs to score")
            return []

        context = ScoringContext.build(route_input, scoring_time)
        self.logger.info(f"Scoring {len(pois)} POIs ({context.time_of_day.value}, "
                         f"{context.season.value})")

        scored = [self.score_poi(poi, context) for poi in pois]
        ranked = sorted(scored, key=lambda item: item.ai_score, reverse=True)

        self.logger.info(f"Top POI: {ranked[0].name} (score {ranked[0].ai_score})")
        return ranked

    def score_poi(self, poi: POI, context: ScoringContext) -> ScoredPOI:
        """Score a single POI"""
        breakdown = ScoreBreakdown(
            weather_suitability=self.weather_suitability(poi),
            preference_match=self.preference_match(poi, context.preferences),
            time_relevance=self.time_relevance(poi, context.time_of_day),
            seasonal_relevance=self.seasonal_relevance(poi, context.season),
            popularity_score=self.popularity_score(poi),
            accessibility_score=self.accessibility_score(poi),
        )

        total = sum(value * self.weights[name] for name, value in breakdown.as_dict().items())

        return ScoredPOI(
            poi=poi,
            ai_score=round(total, 2),
            score_breakdown=breakdown,
            recommendation_reason=self.recommendation_reason(poi, breakdown, context),
        )

    # =========================================================================
    # SUB-SCORES
    # =========================================================================

    def weather_suitability(self, poi: POI) -> float:
        """Blend weather suitability with a neutral 0.8 by category sensitivity"""
        if poi.weather is None:
            return DEFAULT_WEATHER_SCORE

        sensitivity = WEATHER_SENSITIVITY.get(poi.category, DEFAULT_SENSITIVITY)
        suitability = self.analyzer.suitability(poi.weather)
        return sensitivity * suitability + (1 - sensitivity) * 0.8

    def preference_match(self, poi: POI, preferences: Sequence[str]) -> float:
        """Average per-tag match, 0.6 when no preferences were given"""
        if not preferences:
            return NEUTRAL_PREFERENCE_SCORE

        category_label = poi.category.value.lower()
        total = 0.0
        for preference in preferences:
            if preference.lower() in category_label:
                total += 1.0
            else:
                total += self._semantic_match(poi, preference)

        return min(1.0, total / len(preferences))

    @staticmethod
    def _semantic_match(poi: POI, preference: str) -> float:
        wanted = preference.lower()

        for concept, categories in SEMANTIC_CONCEPTS:
            if (concept in wanted or wanted in concept) and poi.category in categories:
                return 0.7

        search_text = f"{poi.name} {poi.description}".lower()
        if wanted in search_text:
            return 0.5

        return 0.0

    @staticmethod
    def time_relevance(poi: POI, time_of_day: TimeOfDay) -> float:
        return TIME_AFFINITY[time_of_day].get(poi.category, DEFAULT_TIME_AFFINITY)

    @staticmethod
    def seasonal_relevance(poi: POI, season: Season) -> float:
        return SEASON_AFFINITY[season].get(poi.category, DEFAULT_SEASON_AFFINITY)

    @staticmethod
    def popularity_score(poi: POI) -> float:
        """Rating (60%), price level (20%) and listing completeness (20%)"""
        score = 0.0

        if poi.rating is not None:
            score += (poi.rating / 5.0) * 0.6
        else:
            score += 0.3

        if poi.price_level is not None:
            score += (1.0 if poi.price_level in (2, 3) else 0.7) * 0.2
        else:
            score += 0.14

        bonus = 0.0
        if poi.website:
            bonus += 0.3
        if poi.phone:
            bonus += 0.3
        if len(poi.photos) > 1:
            bonus += 0.2
        if poi.opening_hours:
            bonus += 0.2
        score += min(1.0, bonus) * 0.2

        return max(0.0, min(1.0, score))

    @staticmethod
    def accessibility_score(poi: POI) -> float:
        score = 0.7

        if poi.distance_from_route:
            score -= min(0.3, poi.distance_from_route / 10)

        if poi.phone:
            score += 0.1
        if poi.website:
            score += 0.1
        if poi.opening_hours:
            score += 0.1

        return max(0.0, min(1.0, score))

    # =========================================================================
    # RECOMMENDATION TEXT
    # =========================================================================

    def recommendation_reason(self, poi: POI, breakdown: ScoreBreakdown,
                              context: ScoringContext) -> str:
        """
        Build a one-sentence justification from the standout sub-scores

        At most three reasons are used, in rule order.
        """
        category = poi.category.value.lower()
        reasons = []

        if breakdown.weather_suitability > 0.8:
            reasons.append(f"perfect weather conditions for {category}")
        elif breakdown.weather_suitability < 0.4 and poi.weather is not None:
            reasons.append(f"indoor alternative due to {poi.weather.condition.value.lower()}")

        if breakdown.preference_match > 0.8:
            reasons.append(f"matches your interest in {' and '.join(context.preferences).lower()}")

        if breakdown.time_relevance > 0.8:
            reasons.append(f"ideal for {context.time_of_day.value} visits")

        if breakdown.popularity_score > 0.8 and poi.rating is not None and poi.rating >= 4.5:
            reasons.append(f"highly rated ({poi.rating}/5.0) local favorite")

        if breakdown.seasonal_relevance > 0.8:
            reasons.append(f"especially beautiful during {context.season.value}")

        if not reasons:
            reasons.append(f"interesting {category} along your route")

        return f"Recommended for {join_reasons(reasons[:MAX_REASONS])}."


def join_reasons(reasons: Sequence[str]) -> str:
    """Join phrases as "X", "X and Y" or "X, Y, and Z" """
    if len(reasons) == 1:
        return reasons[0]
    if len(reasons) == 2:
        return f"{reasons[0]} and {reasons[1]}"
    return f"{', '.join(reasons[:-1])}, and {reasons[-1]}"

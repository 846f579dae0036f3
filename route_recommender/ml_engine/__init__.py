"""
Machine Learning Engine Module
==============================

Ranking logic for route recommendations:
- Checkpoint sampling along the route
- POI scoring using weighted multi-criteria evaluation
- Category diversity filtering

Classes:
    CheckpointPlanner: Samples checkpoints with arrival estimates
    POIScorer: Multi-criteria scoring and recommendation text
    DiversitySelector: Per-category cap and result truncation
"""

__version__ = "1.0.0"
__module_name__ = "ml_engine"

from .checkpoint_planner import CheckpointPlanner
from .poi_scorer import POIScorer, ScoringContext, TimeOfDay, Season
from .diversity_selector import DiversitySelector

__all__ = [
    "CheckpointPlanner",
    "POIScorer",
    "ScoringContext",
    "TimeOfDay",
    "Season",
    "DiversitySelector",
]


def get_scoring_weights():
    """Return the configured scoring weights"""
    from config import config
    return config.scoring_weights()

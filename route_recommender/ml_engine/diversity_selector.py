"""
Diversity Selector
==================

Caps how many recommendations any single category may contribute and
bounds the total list length, keeping score order.

Author: Route Recommender Team
"""

import logging
from collections import Counter
from typing import List, Optional, Sequence

from ..data_pipeline.data_models import ScoredPOI
from config import config


class DiversitySelector:
    """Per-category cap plus overall truncation"""

    def __init__(self, max_per_category: Optional[int] = None,
                 max_results: Optional[int] = None):
        self.logger = logging.getLogger(__name__)

        self.max_per_category = max_per_category or config.MAX_PER_CATEGORY
        self.max_results = max_results or config.MAX_RECOMMENDATIONS

    def select(self, scored_pois: Sequence[ScoredPOI]) -> List[ScoredPOI]:
        """
        Walk the score-sorted list and admit POIs while their category has room

        Args:
            scored_pois (Sequence[ScoredPOI]): POIs sorted by descending score

        Returns:
            List[ScoredPOI]: Admitted POIs in input order
        """
        selected = []
        category_counts = Counter()

        for scored in scored_pois:
            if len(selected) >= self.max_results:
                break
            if category_counts[scored.category] >= self.max_per_category:
                continue

            selected.append(scored)
            category_counts[scored.category] += 1

        self.logger.info(f"Diversity filter kept {len(selected)} of {len(scored_pois)} POIs "
                         f"across {len(category_counts)} categories")
        return selected

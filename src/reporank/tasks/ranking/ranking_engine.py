# src/reporank/tasks/ranking/ranking_engine.py
"""
Ranking engine for scored repositories.

For every criterion, each participating repository is ranked by the position
of its value among the distinct observed values, scaled by the participant
count per distinct value. Repositories are then ordered by the weighted sum
of their ranks.
"""

import logging
from typing import List

from .models import RankedRepository

logger = logging.getLogger(__name__)


class RankingEngine:
    """
    Assigns distinct-value ranks per criterion and orders repositories by total score.
    """

    def __init__(self):
        """Initialize the ranking engine."""
        self.ranking_warnings: List[str] = []

    def rank(self, entities: List[RankedRepository]) -> List[RankedRepository]:
        """
        Rank all criteria across the full set and sort by total score.

        Ranks are written onto the entities' criteria in place. Must only be
        called once every repository has been collected.

        Args:
            entities: All repositories to rank

        Returns:
            New list sorted by total score, highest first; ties keep input order
        """
        self.ranking_warnings = []

        for criterion_name in self.criterion_names(entities):
            self._rank_criterion(criterion_name, entities)

        ranked = sorted(entities, key=lambda e: e.total_score, reverse=True)
        logger.info(f"Ranked {len(ranked)} repositories")
        return ranked

    @staticmethod
    def criterion_names(entities: List[RankedRepository]) -> List[str]:
        """Union of criterion names across entities, in first-seen order."""
        names: List[str] = []
        seen = set()
        for entity in entities:
            for criterion in entity.criteria:
                if criterion.name not in seen:
                    seen.add(criterion.name)
                    names.append(criterion.name)
        return names

    def _rank_criterion(self, criterion_name: str, entities: List[RankedRepository]):
        participants = [
            entity.get_criterion(criterion_name)
            for entity in entities
            if entity.has_criterion(criterion_name)
        ]
        if not participants:
            return

        distinct_sorted_values = sorted({c.value for c in participants})
        if not distinct_sorted_values:
            warning = f"No distinct values for criterion {criterion_name} with {len(participants)} participants, skipping"
            logger.warning(warning)
            self.ranking_warnings.append(warning)
            return

        total_count = len(participants)
        for criterion in participants:
            criterion.set_distinct_rank(distinct_sorted_values, total_count)

        logger.debug(f"Ranked {criterion_name}: {total_count} participants, "
                     f"{len(distinct_sorted_values)} distinct values")


def rank(entities: List[RankedRepository]) -> List[RankedRepository]:
    """Module-level shortcut for RankingEngine().rank."""
    return RankingEngine().rank(entities)

# src/reporank/tasks/ranking/models.py
"""
Data containers for repository ranking.
Repository records from the source, scored criteria and ranked repositories.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class CriterionValue:
    """One repository's realized value and rank for a criterion."""
    name: str
    description: str
    weight: float
    value: int
    rank: int = 0

    @property
    def weighted_contribution(self) -> float:
        """Rank multiplied by the criterion weight."""
        return self.rank * self.weight

    def set_distinct_rank(self, distinct_sorted_values: List[int], total_count: int):
        """
        Set the rank from this value's position among the distinct values.

        Args:
            distinct_sorted_values: Distinct observed values, ascending
            total_count: Number of participants, duplicates included
        """
        index = distinct_sorted_values.index(self.value)
        avg = total_count // len(distinct_sorted_values)
        self.rank = avg * index


def _to_snake_case(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


@dataclass
class RepoRecord:
    """Repository metadata as returned by the repository source."""
    id: int
    name: str
    url: str
    language: Optional[str] = None
    description: Optional[str] = None
    pushed_at: Optional[datetime] = None
    open_issues_count: int = 0
    fields: Dict[str, Any] = field(default_factory=dict)

    def get_field(self, field_name: str) -> Any:
        """
        Look up a raw metadata field by name.

        Accepts the API key ("stargazers_count") or its PascalCase
        spelling ("StargazersCount").

        Args:
            field_name: Field to look up

        Returns:
            The raw value, or None when the field is unknown
        """
        if field_name in self.fields:
            return self.fields[field_name]
        return self.fields.get(_to_snake_case(field_name))


@dataclass
class RankedRepository:
    """A repository with its criteria, ready for ranking and reporting."""
    name: str
    url: str
    language: Optional[str] = None
    summary: Optional[str] = None
    last_modified: Optional[datetime] = None
    open_issues_count: int = 0
    free_text_summary: str = ""
    service_names: str = ""
    is_deprecated: bool = False
    criteria: List[CriterionValue] = field(default_factory=list)
    data_warnings: List[str] = field(default_factory=list)

    @property
    def total_score(self) -> float:
        """Sum of the current weighted contributions."""
        return sum(c.weighted_contribution for c in self.criteria)

    def has_criterion(self, name: str) -> bool:
        return any(c.name == name for c in self.criteria)

    def get_criterion(self, name: str) -> Optional[CriterionValue]:
        for criterion in self.criteria:
            if criterion.name == name:
                return criterion
        return None

    def add_criterion(self, name: str, description: str, weight: float, value: int) -> bool:
        """
        Add a criterion value unless one with the same name exists.

        Returns:
            True if added, False if the name was already present
        """
        if self.has_criterion(name):
            return False
        self.criteria.append(CriterionValue(
            name=name,
            description=description,
            weight=weight,
            value=value
        ))
        return True

    def to_output_row(self) -> Dict[str, Any]:
        """Flatten into an ordered report row."""
        row: Dict[str, Any] = {
            "Name": self.name,
            "Url": self.url,
            "Language": self.language,
            "Summary": self.summary,
            "GeneratedSummary": self.free_text_summary,
            "Modified": self.last_modified.strftime("%Y-%m-%d") if self.last_modified else "",
            "ServiceNames": self.service_names,
            "OpenIssuesCount": self.open_issues_count,
        }
        for criterion in self.criteria:
            row[f"{criterion.name}_Rank"] = criterion.rank
            row[f"{criterion.name}_Value"] = criterion.value
            row[f"{criterion.name}_WeightRank"] = criterion.weighted_contribution
        row["TotalWeightCalc"] = self.total_score
        return row

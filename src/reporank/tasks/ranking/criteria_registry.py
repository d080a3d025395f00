# src/reporank/tasks/ranking/criteria_registry.py
"""
Criteria registry for repository ranking.
Holds the immutable, validated list of ranking criteria loaded from configuration.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from reporank.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class CriterionKind(str, Enum):
    """Value kind a criterion is requested and ranked as."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"


@dataclass(frozen=True)
class CriterionSpec:
    """Declarative definition of one scoring dimension."""
    name: str
    kind: CriterionKind
    description: str = ""
    weight: float = 0.0
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    data_field: Optional[str] = None  # metadata criteria only

    @property
    def is_ranked(self) -> bool:
        """String criteria are narrative only and never ranked."""
        return self.kind is not CriterionKind.STRING


class CriteriaRegistry:
    """
    Ordered, validated collection of CriterionSpec.
    Built once at configuration load; never mutated afterwards.
    """

    def __init__(self, specs: List[CriterionSpec]):
        """
        Validate and store the criteria.

        Args:
            specs: Criteria in configuration order

        Raises:
            ConfigurationError: On duplicate names or invalid integer bounds
        """
        self._validate(specs)
        self._specs: Tuple[CriterionSpec, ...] = tuple(specs)
        self._by_name: Dict[str, CriterionSpec] = {s.name: s for s in self._specs}
        logger.debug(f"Criteria registry loaded with {len(self._specs)} criteria")

    @classmethod
    def from_genai_config(cls, entries: List[Dict[str, Any]]) -> "CriteriaRegistry":
        """
        Build a registry of model-derived criteria.

        Args:
            entries: Dicts with name, type, description, weight, minimum, maximum

        Returns:
            CriteriaRegistry
        """
        specs = []
        for entry in entries:
            kind_value = str(entry.get("type", "")).strip().lower()
            try:
                kind = CriterionKind(kind_value)
            except ValueError:
                raise ConfigurationError(
                    f"Criterion '{entry.get('name')}' has unknown type '{entry.get('type')}'"
                )

            specs.append(CriterionSpec(
                name=str(entry.get("name") or "").strip(),
                kind=kind,
                description=entry.get("description") or "",
                weight=float(entry.get("weight") or 0.0),
                minimum=entry.get("minimum"),
                maximum=entry.get("maximum"),
            ))
        return cls(specs)

    @classmethod
    def from_repo_config(cls, entries: List[Dict[str, Any]]) -> "CriteriaRegistry":
        """
        Build a registry of metadata-derived criteria.

        Args:
            entries: Dicts with name, description, data_field, weight

        Returns:
            CriteriaRegistry
        """
        specs = []
        for entry in entries:
            data_field = entry.get("data_field") or entry.get("dataField")
            if not data_field:
                raise ConfigurationError(
                    f"Repository criterion '{entry.get('name')}' has no data field"
                )

            specs.append(CriterionSpec(
                name=str(entry.get("name") or "").strip(),
                kind=CriterionKind.INTEGER,
                description=entry.get("description") or "",
                weight=float(entry.get("weight") or 0.0),
                data_field=data_field,
            ))
        return cls(specs)

    @staticmethod
    def _validate(specs: List[CriterionSpec]):
        seen = set()
        for spec in specs:
            if not spec.name:
                raise ConfigurationError("Criterion name cannot be empty")

            if spec.name in seen:
                raise ConfigurationError(f"Duplicate criterion name: {spec.name}")
            seen.add(spec.name)

            if spec.weight < 0:
                raise ConfigurationError(
                    f"Criterion '{spec.name}' has negative weight {spec.weight}"
                )

            if spec.kind is CriterionKind.INTEGER and spec.data_field is None:
                if spec.minimum is None or spec.maximum is None:
                    raise ConfigurationError(
                        f"Integer criterion '{spec.name}' requires minimum and maximum"
                    )
                if spec.minimum > spec.maximum:
                    raise ConfigurationError(
                        f"Integer criterion '{spec.name}' has minimum {spec.minimum} "
                        f"greater than maximum {spec.maximum}"
                    )

    @property
    def specs(self) -> Tuple[CriterionSpec, ...]:
        return self._specs

    @property
    def names(self) -> List[str]:
        return [s.name for s in self._specs]

    def get(self, name: str) -> Optional[CriterionSpec]:
        return self._by_name.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[CriterionSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

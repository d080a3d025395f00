# src/reporank/tasks/ranking/answer_extractor.py
"""
Answer extractor for model tool responses.
Maps the untyped tool argument map onto typed criterion values.
Malformed or missing fields fall back to defaults and never fail extraction.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from reporank.core.errors import ToolNotUsedError

from .criteria_registry import CriterionKind, CriterionSpec
from .models import CriterionValue
from .schema_builder import DEPRECATED_FIELD, SERVICES_FIELD

logger = logging.getLogger(__name__)


class AnswerKind(str, Enum):
    """Tag of a single answer value."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    LIST = "list"
    OTHER = "other"
    MISSING = "missing"


@dataclass(frozen=True)
class AnswerValue:
    """A raw answer value together with its tag."""
    kind: AnswerKind
    raw: Any = None

    @classmethod
    def classify(cls, raw: Any) -> "AnswerValue":
        # bool is checked first: it is a subclass of int
        if isinstance(raw, bool):
            return cls(AnswerKind.BOOLEAN, raw)
        if isinstance(raw, int):
            return cls(AnswerKind.INTEGER, raw)
        if isinstance(raw, str):
            return cls(AnswerKind.STRING, raw)
        if isinstance(raw, (list, tuple)):
            return cls(AnswerKind.LIST, list(raw))
        return cls(AnswerKind.OTHER, raw)

    @property
    def is_missing(self) -> bool:
        return self.kind is AnswerKind.MISSING

    def as_text(self) -> str:
        """String-coerce the value."""
        if self.raw is None:
            return ""
        if self.kind is AnswerKind.LIST:
            return ",".join(str(item) for item in self.raw)
        return str(self.raw)


MISSING = AnswerValue(AnswerKind.MISSING)


class AnswerMap:
    """Read-only, tag-checked view over a tool argument map."""

    def __init__(self, raw: Mapping[str, Any]):
        self._values: Dict[str, AnswerValue] = {
            str(key): AnswerValue.classify(value) for key, value in raw.items()
        }

    def get(self, key: str) -> AnswerValue:
        return self._values.get(key, MISSING)

    def get_bool(self, key: str, default: Optional[bool] = False) -> Optional[bool]:
        value = self.get(key)
        return value.raw if value.kind is AnswerKind.BOOLEAN else default

    def get_int(self, key: str, default: Optional[int] = 0) -> Optional[int]:
        value = self.get(key)
        return value.raw if value.kind is AnswerKind.INTEGER else default

    def get_list(self, key: str) -> List[str]:
        value = self.get(key)
        if value.kind is not AnswerKind.LIST:
            return []
        return [str(item) for item in value.raw]


@dataclass
class ExtractedResult:
    """Typed view of one model answer."""
    deprecated: bool = False
    services: List[str] = field(default_factory=list)
    criteria: List[CriterionValue] = field(default_factory=list)
    free_text_summary: Optional[str] = None
    extraction_warnings: List[str] = field(default_factory=list)

    @property
    def service_names(self) -> str:
        """Services joined for reporting."""
        return ",".join(self.services)


class AnswerExtractor:
    """
    Converts tool answers into criterion values using the criteria definitions.
    """

    def extract(self, answer: Optional[Mapping[str, Any]],
                specs: Iterable[CriterionSpec]) -> ExtractedResult:
        """
        Extract typed criteria from a tool answer.

        Args:
            answer: Tool argument map from the model client
            specs: Model-derived criteria

        Returns:
            ExtractedResult with fixed fields and one value per answered
            boolean/integer criterion

        Raises:
            ToolNotUsedError: If there is no answer at all
        """
        if answer is None:
            raise ToolNotUsedError("No tool answer to extract")

        answers = answer if isinstance(answer, AnswerMap) else AnswerMap(answer)
        result = ExtractedResult(
            deprecated=answers.get_bool(DEPRECATED_FIELD),
            services=answers.get_list(SERVICES_FIELD),
        )

        for spec in specs:
            value = answers.get(spec.name)
            if value.is_missing:
                logger.debug(f"Answer has no value for {spec.name}, skipping")
                continue

            if spec.kind is CriterionKind.STRING:
                result.free_text_summary = value.as_text()
                continue

            if spec.kind is CriterionKind.BOOLEAN:
                flag = answers.get_bool(spec.name, default=None)
                observed = None if flag is None else int(flag)
            else:
                observed = answers.get_int(spec.name, default=None)

            # Wrong type counts as 0
            if observed is None:
                observed = 0
                result.extraction_warnings.append(
                    f"{spec.name}: expected {spec.kind.value}, got {value.kind.value}"
                )

            result.criteria.append(CriterionValue(
                name=spec.name,
                description=spec.description,
                weight=spec.weight,
                value=observed
            ))

        if result.extraction_warnings:
            logger.debug(f"Extraction warnings: {result.extraction_warnings}")

        return result


def extract(answer: Optional[Mapping[str, Any]], specs: Iterable[CriterionSpec]) -> ExtractedResult:
    """Module-level shortcut for AnswerExtractor().extract."""
    return AnswerExtractor().extract(answer, specs)
